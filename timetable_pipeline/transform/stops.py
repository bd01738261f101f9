"""Stop table document."""

import logging
from typing import Any

from timetable_pipeline.gtfs.reader import GTFSReader

logger = logging.getLogger(__name__)


def build_stops(reader: GTFSReader) -> dict[str, dict[str, Any]]:
    """Build stop id -> {name, lat, lng, platform}."""
    stops: dict[str, dict[str, Any]] = {}
    for stop in reader.stops:
        stops[stop.stop_id] = {
            "name": stop.name,
            "lat": stop.lat,
            "lng": stop.lon,
            "platform": stop.platform,
        }

    logger.info(f"Built {len(stops)} stops")
    return stops
