"""Manual shape override table.

The table maps keys to geometry records. A plain pattern key replaces that
pattern's geometry outright. A template key such as ``A|...|B`` or
``A|...|B|...|C`` describes hand-drawn paths between consecutive named stops
and is decomposed into one segment override per stop pair.
"""

import json
import logging
from pathlib import Path
from typing import Any

from timetable_pipeline.gtfs.models import PATTERN_SEPARATOR, TEMPLATE_MARKER, OverrideTable, SegmentOverride
from timetable_pipeline.transform.patterns import is_template_key

logger = logging.getLogger(__name__)


def load_overrides(path: str | Path, required: bool = False) -> dict[str, dict[str, Any]]:
    """Read the override document; a missing file is an empty table unless required."""
    file_path = Path(path)
    if not file_path.exists():
        if required:
            raise FileNotFoundError(f"Override table not found: {file_path}")
        logger.info(f"{file_path} not found, no manual shapes")
        return {}

    with open(file_path, encoding="utf-8") as f:
        data = json.load(f)

    if not isinstance(data, dict):
        raise ValueError(f"Override table must be a JSON object: {file_path}")

    logger.info(f"Loaded {len(data)} manual shapes from {file_path}")
    return data


def decompose_template(key: str, data: dict[str, Any]) -> list[SegmentOverride]:
    """Split a template override into consecutive stop-pair segments."""
    stop_ids = key.split(TEMPLATE_MARKER)
    if any(not stop_id or PATTERN_SEPARATOR in stop_id for stop_id in stop_ids):
        raise ValueError(f"Malformed template key: {key}")

    coordinates = [tuple(point) for point in data["coordinates"]]

    if len(stop_ids) == 2:
        return [SegmentOverride(stop_ids[0], stop_ids[1], tuple(coordinates), source_key=key)]

    stop_indices = data.get("stop_indices")
    if not stop_indices or len(stop_indices) != len(stop_ids):
        raise ValueError(
            f"Template {key} names {len(stop_ids)} stops but has "
            f"{len(stop_indices or [])} stop_indices"
        )
    if list(stop_indices) != sorted(stop_indices):
        raise ValueError(f"Template {key} has decreasing stop_indices: {stop_indices}")
    if stop_indices[0] < 0 or stop_indices[-1] >= len(coordinates):
        raise ValueError(f"Template {key} has stop_indices outside its coordinates")

    segments = []
    for i in range(len(stop_ids) - 1):
        start, end = stop_indices[i], stop_indices[i + 1]
        segments.append(
            SegmentOverride(
                stop_ids[i],
                stop_ids[i + 1],
                tuple(coordinates[start : end + 1]),
                source_key=key,
            )
        )
    return segments


def build_override_table(raw: dict[str, dict[str, Any]]) -> OverrideTable:
    """Sort raw overrides into full-pattern replacements and segment overrides."""
    table = OverrideTable()

    for key, data in raw.items():
        if not isinstance(data, dict) or "coordinates" not in data:
            logger.warning(f"Manual shape {key} has no coordinates, skipping")
            continue

        if not is_template_key(key):
            table.full[key] = data
            continue

        try:
            segments = decompose_template(key, data)
        except ValueError as e:
            logger.warning(f"Skipping manual shape: {e}")
            continue

        for segment in segments:
            if segment.key in table.segments:
                logger.warning(
                    f"Segment {segment.key} from {key} replaces the one from "
                    f"{table.segments[segment.key].source_key}"
                )
            table.segments[segment.key] = segment

    logger.info(
        f"Override table: {len(table.full)} full-pattern shapes, "
        f"{len(table.segments)} segment overrides"
    )
    return table
