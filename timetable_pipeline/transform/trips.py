"""Trip selection and timetable document."""

import logging
from typing import Any

from timetable_pipeline.gtfs.models import StopTime, Trip
from timetable_pipeline.gtfs.reader import GTFSReader

logger = logging.getLogger(__name__)

MIN_STOP_TIMES = 2


def select_valid_trips(
    reader: GTFSReader, target_routes: set[str]
) -> list[tuple[Trip, list[StopTime]]]:
    """Return trips on a target route with at least two stop times, in feed order."""
    stop_times_by_trip = reader.stop_times_by_trip()

    valid: list[tuple[Trip, list[StopTime]]] = []
    dropped_route = 0
    dropped_short = 0
    for trip in reader.trips:
        if trip.route_id not in target_routes:
            dropped_route += 1
            continue

        stop_times = stop_times_by_trip.get(trip.trip_id, [])
        if len(stop_times) < MIN_STOP_TIMES:
            logger.debug(f"Trip {trip.trip_id} has {len(stop_times)} stop times, skipping")
            dropped_short += 1
            continue

        valid.append((trip, stop_times))

    logger.info(
        f"Selected {len(valid)} trips "
        f"({dropped_route} outside target routes, {dropped_short} with fewer than "
        f"{MIN_STOP_TIMES} stop times)"
    )
    return valid


def build_timetables(
    reader: GTFSReader,
    trips: list[tuple[Trip, list[StopTime]]],
    target_routes: set[str] | None = None,
) -> dict[str, dict[str, dict[str, Any]]]:
    """Build route id -> trip id -> {headsign, service_id, office_id, via, stops}.

    Every target route with a trip in the feed gets an entry, empty when all
    of its trips were too short to keep.
    """
    timetables: dict[str, dict[str, dict[str, Any]]] = {}
    if target_routes is not None:
        for trip in reader.trips:
            if trip.route_id in target_routes and trip.route_id not in timetables:
                timetables[trip.route_id] = {}

    for trip, stop_times in trips:
        if trip.route_id not in timetables:
            timetables[trip.route_id] = {}

        timetables[trip.route_id][trip.trip_id] = {
            "headsign": trip.headsign,
            "service_id": trip.service_id,
            "office_id": trip.office_id,
            "via": reader.pattern_vias.get(trip.pattern_id, ""),
            "stops": [{"time": st.departure_time, "stop_id": st.stop_id} for st in stop_times],
        }

    logger.info(f"Built timetables for {len(timetables)} routes")
    return timetables
