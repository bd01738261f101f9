"""Pytest configuration and fixtures."""

import csv
import shutil
from collections.abc import Callable, Sequence
from pathlib import Path

import pytest

from timetable_pipeline.geometry.routing import RoutingError


class StubRouter:
    """Routing service stand-in that returns the requested points as the path."""

    def __init__(self, fail_calls: Sequence[int] = ()) -> None:
        self.calls: list[list[list[float]]] = []
        self.fail_calls = set(fail_calls)

    def route(self, points: Sequence[Sequence[float]]) -> list[list[float]]:
        self.calls.append([list(p) for p in points])
        if len(self.calls) in self.fail_calls:
            raise RoutingError("stub failure")
        return [list(p) for p in points]


@pytest.fixture
def gtfs_minimal() -> Path:
    """Path to minimal GTFS fixture."""
    return Path(__file__).parent / "fixtures" / "gtfs_minimal"


@pytest.fixture
def gtfs_edgecases() -> Path:
    """Path to edge cases GTFS fixture."""
    return Path(__file__).parent / "fixtures" / "gtfs_edgecases"


@pytest.fixture
def tmp_output(tmp_path: Path) -> Path:
    """Temporary output directory."""
    output_dir = tmp_path / "viewer_data"
    output_dir.mkdir()
    yield output_dir
    # Cleanup
    if output_dir.exists():
        shutil.rmtree(output_dir)


@pytest.fixture
def make_router() -> Callable[..., StubRouter]:
    """Factory for stub routers; ``fail_calls`` lists 1-based calls that fail."""
    return StubRouter


@pytest.fixture
def gtfs_long(tmp_path: Path) -> Path:
    """Feed with one 25-stop trip, long enough to need two routing requests."""
    feed = tmp_path / "gtfs_long"
    feed.mkdir()
    stop_ids = [f"L{i:02d}" for i in range(25)]

    _write_table(
        feed / "stops.txt",
        ["stop_id", "stop_name", "stop_lat", "stop_lon"],
        [
            [stop_id, f"Stop {i}", f"{35 + i * 0.001:.3f}", f"{139 + i * 0.001:.3f}"]
            for i, stop_id in enumerate(stop_ids)
        ],
    )
    _write_table(feed / "routes.txt", ["route_id", "route_short_name"], [["RL", "L"]])
    _write_table(
        feed / "trips.txt",
        ["route_id", "service_id", "trip_id", "trip_headsign"],
        [["RL", "WD", "TL1", "Terminal"]],
    )
    _write_table(
        feed / "stop_times.txt",
        ["trip_id", "departure_time", "stop_id", "stop_sequence"],
        [["TL1", f"07:{i:02d}:00", stop_id, str(i + 1)] for i, stop_id in enumerate(stop_ids)],
    )
    return feed


def _write_table(path: Path, header: list[str], rows: list[list[str]]) -> None:
    with open(path, "w", encoding="utf-8", newline="") as f:
        writer = csv.writer(f)
        writer.writerow(header)
        writer.writerows(rows)


@pytest.fixture
def gtfs_stray_stops(tmp_path: Path) -> Path:
    """Feed whose unknown stops sit only on trips that are not extracted."""
    feed = tmp_path / "gtfs_stray_stops"
    feed.mkdir()

    _write_table(
        feed / "stops.txt",
        ["stop_id", "stop_name", "stop_lat", "stop_lon"],
        [["S1", "North", "35.0", "139.0"], ["S2", "South", "35.1", "139.1"]],
    )
    _write_table(
        feed / "routes.txt", ["route_id", "route_short_name"], [["R1", "1"], ["R2", "2"]]
    )
    _write_table(
        feed / "trips.txt",
        ["route_id", "service_id", "trip_id"],
        [["R1", "WD", "T1"], ["R2", "WD", "T2"]],
    )
    _write_table(
        feed / "stop_times.txt",
        ["trip_id", "departure_time", "stop_id", "stop_sequence"],
        [
            ["T1", "08:00:00", "S1", "1"],
            ["T1", "08:05:00", "S2", "2"],
            ["T2", "09:00:00", "S1", "1"],
            ["T2", "09:05:00", "GONE", "2"],
            ["ORPHAN", "10:00:00", "GONE", "1"],
        ],
    )
    return feed
