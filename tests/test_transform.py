"""Tests for transform modules."""

from pathlib import Path

import pytest

from timetable_pipeline.gtfs.reader import GTFSReader
from timetable_pipeline.transform.calendar import build_calendar, build_extra
from timetable_pipeline.transform.routes import build_routes, select_target_routes
from timetable_pipeline.transform.stops import build_stops
from timetable_pipeline.transform.trips import build_timetables, select_valid_trips


@pytest.fixture
def reader(gtfs_minimal: Path) -> GTFSReader:
    reader = GTFSReader(str(gtfs_minimal))
    reader.read_all()
    return reader


def test_build_stops(reader: GTFSReader) -> None:
    """Test stop table records."""
    stops = build_stops(reader)

    assert list(stops) == ["S1", "S2", "S3"]
    assert stops["S1"] == {"name": "駅前", "lat": 0.0, "lng": 0.0, "platform": "1"}
    assert stops["S2"]["platform"] == ""


def test_build_routes_default_color(reader: GTFSReader) -> None:
    """Test routes without a color get the fallback."""
    routes = build_routes(reader)

    assert routes["R1"] == {"short_name": "1", "color": "00703c", "office_id": "OF1"}
    assert routes["R2"]["color"] == "ff0000"


def test_build_routes_custom_default_color(reader: GTFSReader) -> None:
    """Test the fallback color is configurable."""
    routes = build_routes(reader, default_color="123456")

    assert routes["R1"]["color"] == "123456"


def test_select_target_routes_all(reader: GTFSReader) -> None:
    """Test every route is a target by default."""
    assert select_target_routes(reader) == {"R1", "R2"}


def test_select_target_routes_explicit(reader: GTFSReader) -> None:
    """Test unknown requested routes are ignored."""
    assert select_target_routes(reader, ["R2", "NOPE"]) == {"R2"}


def test_select_valid_trips(reader: GTFSReader) -> None:
    """Test short trips and trips outside target routes are dropped."""
    trips = select_valid_trips(reader, select_target_routes(reader))

    assert [trip.trip_id for trip, _ in trips] == ["T1", "T2", "T3"]
    assert all(len(stop_times) >= 2 for _, stop_times in trips)


def test_select_valid_trips_restricted(reader: GTFSReader) -> None:
    """Test restricting the target route set."""
    trips = select_valid_trips(reader, {"R2"})

    assert trips == []


def test_build_timetables(reader: GTFSReader) -> None:
    """Test timetable records."""
    trips = select_valid_trips(reader, select_target_routes(reader))
    timetables = build_timetables(reader, trips)

    assert list(timetables) == ["R1"]
    assert list(timetables["R1"]) == ["T1", "T2", "T3"]

    t1 = timetables["R1"]["T1"]
    assert t1["headsign"] == "Hospital"
    assert t1["service_id"] == "WD"
    assert t1["office_id"] == "OF1"
    assert t1["via"] == "City Hall"
    assert t1["stops"] == [
        {"time": "08:00:00", "stop_id": "S1"},
        {"time": "08:05:00", "stop_id": "S2"},
        {"time": "08:10:00", "stop_id": "S3"},
    ]
    assert timetables["R1"]["T3"]["via"] == ""


def test_build_calendar(reader: GTFSReader) -> None:
    """Test calendar records pass values through."""
    calendar = build_calendar(reader)

    assert calendar == {
        "WD": {
            "days": ["1", "1", "1", "1", "1", "0", "0"],
            "start": "20260401",
            "end": "20270331",
        }
    }


def test_build_extra(reader: GTFSReader) -> None:
    """Test auxiliary document."""
    extra = build_extra(reader)

    assert extra["offices"] == {"OF1": "Central Office"}
    assert extra["calendar_dates"] == [
        {"service_id": "WD", "date": "20260429", "exception_type": "2"}
    ]


def test_build_timetables_keeps_routes_without_valid_trips(reader: GTFSReader) -> None:
    """Test a target route whose trips are all too short gets an empty entry."""
    target_routes = select_target_routes(reader)
    trips = select_valid_trips(reader, target_routes)
    timetables = build_timetables(reader, trips, target_routes)

    assert list(timetables) == ["R1", "R2"]
    assert timetables["R2"] == {}
    assert "X9" not in timetables
