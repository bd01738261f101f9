"""Feed table reader."""

import csv
import logging
from collections.abc import Iterator
from pathlib import Path

from timetable_pipeline.gtfs.models import Calendar, Office, Route, Stop, StopTime, Trip

logger = logging.getLogger(__name__)

DAY_COLUMNS = ("monday", "tuesday", "wednesday", "thursday", "friday", "saturday", "sunday")


class GTFSReader:
    """Read a GTFS-JP feed directory into memory.

    Every table is optional: a missing file leaves the corresponding list empty.
    Records keep the order in which they appear in the feed.
    """

    def __init__(self, gtfs_path: str) -> None:
        """Initialize reader with GTFS directory path."""
        self.gtfs_path = Path(gtfs_path)
        if not self.gtfs_path.is_dir():
            raise ValueError(f"GTFS path not found or not a directory: {gtfs_path}")

        self.stops: list[Stop] = []
        self.routes: list[Route] = []
        self.trips: list[Trip] = []
        self.stop_times: list[StopTime] = []
        self.calendar: list[Calendar] = []
        self.calendar_dates: list[dict[str, str]] = []
        self.offices: list[Office] = []
        self.pattern_vias: dict[str, str] = {}

    def read_all(self) -> None:
        """Read all feed files."""
        logger.info(f"Reading GTFS data from {self.gtfs_path}")
        self.read_stops()
        self.read_routes()
        self.read_offices()
        self.read_patterns()
        self.read_calendar()
        self.read_calendar_dates()
        self.read_trips()
        self.read_stop_times()
        logger.info(
            f"Loaded {len(self.stops)} stops, {len(self.routes)} routes, "
            f"{len(self.trips)} trips, {len(self.stop_times)} stop_times, "
            f"{len(self.calendar)} calendar entries, "
            f"{len(self.calendar_dates)} calendar date exceptions, "
            f"{len(self.offices)} offices"
        )

    def _rows(self, filename: str) -> Iterator[dict[str, str]]:
        file_path = self.gtfs_path / filename
        if not file_path.exists():
            logger.info(f"{filename} not found, skipping")
            return

        with open(file_path, encoding="utf-8-sig", newline="") as f:
            yield from csv.DictReader(f)

    def read_stops(self) -> None:
        """Read stops.txt."""
        for row in self._rows("stops.txt"):
            stop = Stop(
                stop_id=row["stop_id"],
                name=row.get("stop_name", ""),
                lat=self._parse_coordinate(row, "stop_lat"),
                lon=self._parse_coordinate(row, "stop_lon"),
                platform=row.get("platform_code") or "",
            )
            self.stops.append(stop)

    def read_routes(self) -> None:
        """Read routes.txt."""
        for row in self._rows("routes.txt"):
            route = Route(
                route_id=row["route_id"],
                short_name=row.get("route_short_name", ""),
                color=row.get("route_color") or "",
                office_id=row.get("jp_office_id", ""),
            )
            self.routes.append(route)

    def read_offices(self) -> None:
        """Read office_jp.txt."""
        for row in self._rows("office_jp.txt"):
            self.offices.append(Office(office_id=row["office_id"], office_name=row["office_name"]))

    def read_patterns(self) -> None:
        """Read pattern_jp.txt, keeping only the via-stop annotation."""
        for row in self._rows("pattern_jp.txt"):
            self.pattern_vias[row["jp_pattern_id"]] = row.get("via_stop") or ""

    def read_calendar(self) -> None:
        """Read calendar.txt."""
        for row in self._rows("calendar.txt"):
            calendar = Calendar(
                service_id=row["service_id"],
                days=tuple(row.get(day, "") for day in DAY_COLUMNS),  # type: ignore[arg-type]
                start_date=row.get("start_date", ""),
                end_date=row.get("end_date", ""),
            )
            self.calendar.append(calendar)

    def read_calendar_dates(self) -> None:
        """Read calendar_dates.txt verbatim."""
        self.calendar_dates = [dict(row) for row in self._rows("calendar_dates.txt")]

    def read_trips(self) -> None:
        """Read trips.txt."""
        for row in self._rows("trips.txt"):
            trip = Trip(
                trip_id=row["trip_id"],
                route_id=row["route_id"],
                service_id=row.get("service_id", ""),
                headsign=row.get("trip_headsign", ""),
                office_id=row.get("jp_office_id", ""),
                pattern_id=row.get("jp_pattern_id", ""),
            )
            self.trips.append(trip)

    def read_stop_times(self) -> None:
        """Read stop_times.txt, ordered by trip then numeric stop_sequence."""
        stop_times_raw: list[StopTime] = []
        for row in self._rows("stop_times.txt"):
            stop_time = StopTime(
                trip_id=row["trip_id"],
                stop_id=row["stop_id"],
                departure_time=row.get("departure_time", ""),
                stop_sequence=self._parse_sequence(row["stop_sequence"]),
            )
            stop_times_raw.append(stop_time)

        # Sequence order within a trip; feed order of trips comes from reader.trips
        stop_times_raw.sort(key=lambda st: (st.trip_id, st.stop_sequence))
        self.stop_times = stop_times_raw

    @staticmethod
    def _parse_coordinate(row: dict[str, str], column: str) -> float:
        try:
            return float(row[column])
        except (TypeError, ValueError):
            raise ValueError(
                f"Invalid {column} for stop {row.get('stop_id')}: {row[column]!r}"
            ) from None

    @staticmethod
    def _parse_sequence(value: str) -> int:
        """Parse stop_sequence numerically so that 10 sorts after 9."""
        try:
            return int(value.strip())
        except ValueError:
            raise ValueError(f"Invalid stop_sequence: {value!r}") from None

    def stop_times_by_trip(self) -> dict[str, list[StopTime]]:
        """Group stop times by trip id, each list in stop_sequence order."""
        grouped: dict[str, list[StopTime]] = {}
        for st in self.stop_times:
            if st.trip_id not in grouped:
                grouped[st.trip_id] = []
            grouped[st.trip_id].append(st)
        return grouped
