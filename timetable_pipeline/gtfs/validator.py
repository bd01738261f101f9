"""GTFS data validator."""

import logging

from timetable_pipeline.gtfs.models import ValidationReport
from timetable_pipeline.gtfs.reader import GTFSReader

logger = logging.getLogger(__name__)


class GTFSValidator:
    """Validate feed data before extraction."""

    def __init__(self, reader: GTFSReader, target_routes: set[str] | None = None) -> None:
        """Initialize validator with GTFS reader and the routes being extracted.

        With no target routes every route in routes.txt is extracted.
        """
        self.reader = reader
        if target_routes is None:
            target_routes = {route.route_id for route in reader.routes}
        self.target_routes = target_routes
        self.errors: list[str] = []
        self.warnings: list[str] = []

    def validate(self) -> ValidationReport:
        """Run all validation checks."""
        logger.info("Validating GTFS data")

        self._validate_stops()
        self._validate_trips()
        self._validate_stop_times()

        valid = len(self.errors) == 0

        stats = {
            "stops": len(self.reader.stops),
            "routes": len(self.reader.routes),
            "trips": len(self.reader.trips),
            "stop_times": len(self.reader.stop_times),
        }

        report = ValidationReport(
            valid=valid,
            errors=self.errors.copy(),
            warnings=self.warnings.copy(),
            stats=stats,
        )

        if not valid:
            logger.error(f"Validation failed with {len(self.errors)} errors")
        elif self.warnings:
            logger.warning(f"Validation passed with {len(self.warnings)} warnings")
        else:
            logger.info("Validation passed")

        return report

    def _validate_stops(self) -> None:
        """Validate stops have valid coordinates."""
        for stop in self.reader.stops:
            if not (-90 <= stop.lat <= 90):
                self.errors.append(f"Stop {stop.stop_id} has invalid latitude: {stop.lat}")
            if not (-180 <= stop.lon <= 180):
                self.errors.append(f"Stop {stop.stop_id} has invalid longitude: {stop.lon}")
            if not stop.name:
                self.warnings.append(f"Stop {stop.stop_id} has empty name")

    def _validate_trips(self) -> None:
        """Flag trips whose route is unknown; they are dropped during extraction."""
        route_ids = {route.route_id for route in self.reader.routes}

        for trip in self.reader.trips:
            if trip.route_id not in route_ids:
                self.warnings.append(
                    f"Trip {trip.trip_id} references non-existent route {trip.route_id}"
                )

    def _validate_stop_times(self) -> None:
        """Validate stop_times of extracted trips reference known stops.

        Stop times belonging to trips that extraction drops (outside the target
        routes, fewer than 2 stop times, or absent from trips.txt) only warn.
        """
        stop_ids = {stop.stop_id for stop in self.reader.stops}
        stop_times_by_trip = self.reader.stop_times_by_trip()

        extracted: set[str] = set()
        for trip in self.reader.trips:
            count = len(stop_times_by_trip.get(trip.trip_id, []))
            if count < 2:
                self.warnings.append(f"Trip {trip.trip_id} has fewer than 2 stop times")
            elif trip.route_id in self.target_routes:
                extracted.add(trip.trip_id)

        for trip_id, stop_times in stop_times_by_trip.items():
            for st in stop_times:
                if st.stop_id in stop_ids:
                    continue
                message = f"Stop time for trip {trip_id} references non-existent stop {st.stop_id}"
                if trip_id in extracted:
                    self.errors.append(message)
                else:
                    self.warnings.append(f"{message} (trip not extracted)")
