"""Stop pattern keying and grouping.

A pattern is the ordered sequence of stops a trip visits. Its key is the stop
ids joined with ``|`` and is treated as opaque everywhere except the override
splicer, which splits it back into stop ids.
"""

import logging
from collections.abc import Iterable, Sequence

from timetable_pipeline.gtfs.models import PATTERN_SEPARATOR, TEMPLATE_MARKER, PatternInfo, StopTime, Trip

logger = logging.getLogger(__name__)


def pattern_key(stop_ids: Sequence[str]) -> str:
    """Build the pattern key for an ordered stop id sequence."""
    return PATTERN_SEPARATOR.join(stop_ids)


def split_pattern_key(key: str) -> list[str]:
    """Split a pattern key back into its stop ids."""
    return key.split(PATTERN_SEPARATOR)


def is_template_key(key: str) -> bool:
    """Template override keys mark elided stops with ``|...|``."""
    return TEMPLATE_MARKER in key


def group_patterns(trips: Iterable[tuple[Trip, list[StopTime]]]) -> dict[str, PatternInfo]:
    """Collapse trips into distinct patterns; the first trip seen represents each one."""
    patterns: dict[str, PatternInfo] = {}
    for trip, stop_times in trips:
        stop_ids = tuple(st.stop_id for st in stop_times)
        key = pattern_key(stop_ids)
        patterns.setdefault(
            key,
            PatternInfo(
                pattern_key=key,
                route_id=trip.route_id,
                headsign=trip.headsign,
                stop_ids=stop_ids,
            ),
        )

    logger.info(f"Found {len(patterns)} distinct stop patterns")
    return patterns
