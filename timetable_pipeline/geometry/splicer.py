"""Apply manual shape overrides to generated geometry.

Splicing never touches its input: it always starts from the baseline geometry
produced by extraction and returns a new table, so re-running it with a
changed override table gives the same result as a first run.
"""

import copy
import logging
from typing import Any

from timetable_pipeline.gtfs.models import OverrideTable, SegmentOverride, SpliceResult
from timetable_pipeline.transform.patterns import split_pattern_key

logger = logging.getLogger(__name__)


def find_segment_span(stop_ids: list[str], segment: SegmentOverride) -> tuple[int, int] | None:
    """Return stop positions (start, end) of the segment in a pattern, or None.

    Uses the first occurrence of the start stop and the first occurrence of
    the end stop after it.
    """
    try:
        start = stop_ids.index(segment.start_stop_id)
        end = stop_ids.index(segment.end_stop_id, start + 1)
    except ValueError:
        return None
    return start, end


def splice_segment(
    coordinates: list[list[float]],
    stop_indices: list[int],
    start_pos: int,
    end_pos: int,
    new_coordinates: list[list[float]],
) -> tuple[list[list[float]], list[int]]:
    """Replace the path between two stops and shift the indices of later stops.

    Coordinates from the start stop's index through the end stop's index
    (inclusive) are replaced. Indices from the end stop onward move by the
    change in length; indices of stops between start and end are left as is.
    """
    start_idx = stop_indices[start_pos]
    end_idx = stop_indices[end_pos]

    spliced = coordinates[:start_idx] + new_coordinates + coordinates[end_idx + 1 :]
    diff = len(new_coordinates) - (end_idx - start_idx + 1)

    shifted = list(stop_indices)
    for i in range(end_pos, len(shifted)):
        shifted[i] += diff

    return spliced, shifted


def apply_segments(
    pattern_key: str,
    geometry: dict[str, Any],
    segments: list[SegmentOverride],
) -> tuple[dict[str, Any], int, int]:
    """Apply every matching segment override to one pattern geometry.

    Matching segments are applied in order of their start stop position.
    A segment starting before the end of an already applied one overlaps
    it and is rejected. Returns the new record and counts of applied and
    rejected segments.
    """
    stop_ids = split_pattern_key(pattern_key)
    coordinates = [list(point) for point in geometry.get("coordinates", [])]
    stop_indices = list(geometry.get("stop_indices", []))

    spans = []
    for segment in segments:
        span = find_segment_span(stop_ids, segment)
        if span is not None:
            spans.append((span[0], span[1], segment))

    if not spans:
        return geometry, 0, 0

    if len(stop_indices) != len(stop_ids):
        logger.warning(
            f"Pattern {pattern_key[:50]} has {len(stop_indices)} stop_indices for "
            f"{len(stop_ids)} stops, not splicing"
        )
        return geometry, 0, len(spans)

    spans.sort(key=lambda span: (span[0], span[1]))

    applied = 0
    rejected = 0
    last_end = -1
    for start_pos, end_pos, segment in spans:
        if start_pos < last_end:
            logger.warning(
                f"Segment override {segment.key} overlaps an earlier segment on "
                f"pattern {pattern_key[:50]}, skipping"
            )
            rejected += 1
            continue
        if stop_indices[end_pos] < stop_indices[start_pos]:
            logger.warning(
                f"Segment override {segment.key} has reversed path indices on "
                f"pattern {pattern_key[:50]}, skipping"
            )
            rejected += 1
            continue

        logger.debug(f"Applying segment override [{segment.key}] to pattern {pattern_key[:50]}")
        coordinates, stop_indices = splice_segment(
            coordinates,
            stop_indices,
            start_pos,
            end_pos,
            [list(point) for point in segment.coordinates],
        )
        last_end = end_pos
        applied += 1

    if not applied:
        return geometry, 0, rejected

    record = dict(geometry)
    record["coordinates"] = coordinates
    record["stop_indices"] = stop_indices
    return record, applied, rejected


def apply_overrides(
    geometries: dict[str, dict[str, Any]], table: OverrideTable
) -> SpliceResult:
    """Apply full-pattern and segment overrides to a geometry table."""
    logger.info(f"Applying overrides to {len(geometries)} pattern geometries")

    segments = list(table.segments.values())
    result = SpliceResult(geometries={})

    for key, geometry in geometries.items():
        if key in table.full:
            record = copy.deepcopy(table.full[key])
            record.setdefault("status", "manual")
            result.geometries[key] = record
            result.replaced += 1
            continue

        record, applied, rejected = apply_segments(key, geometry, segments)
        result.geometries[key] = copy.deepcopy(record)
        result.segments_applied += applied
        result.segments_rejected += rejected
        if applied:
            result.patched += 1

    logger.info(
        f"Replaced {result.replaced} geometries, patched {result.patched} "
        f"({result.segments_applied} segments applied, "
        f"{result.segments_rejected} rejected)"
    )
    return result
