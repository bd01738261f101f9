"""Benchmark tests."""

from collections.abc import Callable
from pathlib import Path
from typing import Any

import pytest

from timetable_pipeline import extract
from timetable_pipeline.geometry.overrides import build_override_table
from timetable_pipeline.geometry.splicer import apply_overrides
from timetable_pipeline.gtfs.models import ExtractConfig


@pytest.mark.benchmark
def test_bench_apply_overrides(benchmark: Any) -> None:
    """Benchmark splicing segment overrides into many patterns."""
    stop_ids = [f"S{i}" for i in range(40)]
    geometries = {}
    for offset in range(200):
        key = "|".join(stop_ids[offset % 10 :])
        geometries[f"{key}|E{offset}"] = {
            "coordinates": [[float(i), 0.0] for i in range(500)],
            "stop_indices": [i * 10 for i in range(len(stop_ids) - offset % 10)] + [499],
        }
    table = build_override_table(
        {
            f"S{i}|...|S{i + 1}": {"coordinates": [[float(i), 1.0], [float(i) + 0.5, 1.0]]}
            for i in range(10, 30, 3)
        }
    )

    result = benchmark(apply_overrides, geometries, table)

    assert result.patched == len(geometries)


@pytest.mark.benchmark
def test_bench_extract_minimal(
    gtfs_minimal: Path, tmp_path: Path, make_router: Callable[..., Any], benchmark: Any
) -> None:
    """Benchmark extraction of minimal fixture with a stub router."""

    def do_extract() -> None:
        output = tmp_path / "bench_minimal"
        output.mkdir(exist_ok=True)
        extract(
            ExtractConfig(
                input_path=str(gtfs_minimal),
                output_path=str(output),
                overrides_path=str(tmp_path / "manual_shapes.json"),
                request_delay=0,
            ),
            router=make_router(),
        )

    benchmark(do_extract)
