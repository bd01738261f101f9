"""Route table document and target route selection."""

import logging

from timetable_pipeline.gtfs.models import DEFAULT_ROUTE_COLOR
from timetable_pipeline.gtfs.reader import GTFSReader

logger = logging.getLogger(__name__)


def build_routes(
    reader: GTFSReader, default_color: str = DEFAULT_ROUTE_COLOR
) -> dict[str, dict[str, str]]:
    """Build route id -> {short_name, color, office_id}."""
    routes: dict[str, dict[str, str]] = {}
    for route in reader.routes:
        routes[route.route_id] = {
            "short_name": route.short_name,
            "color": route.color or default_color,
            "office_id": route.office_id,
        }

    logger.info(f"Built {len(routes)} routes")
    return routes


def select_target_routes(reader: GTFSReader, route_ids: list[str] | None = None) -> set[str]:
    """Return the route ids whose trips are extracted.

    With no explicit selection every route in routes.txt is a target. Requested
    ids missing from the feed are reported and ignored.
    """
    known = {route.route_id for route in reader.routes}
    if route_ids is None:
        return known

    missing = [route_id for route_id in route_ids if route_id not in known]
    if missing:
        logger.warning(f"Requested routes not found in feed: {', '.join(missing)}")
    return {route_id for route_id in route_ids if route_id in known}
