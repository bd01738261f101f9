"""Tests for GTFS validator."""

from pathlib import Path

from timetable_pipeline.gtfs.reader import GTFSReader
from timetable_pipeline.gtfs.validator import GTFSValidator


def test_validator_valid_data(gtfs_minimal: Path) -> None:
    """Test validator passes on valid data."""
    reader = GTFSReader(str(gtfs_minimal))
    reader.read_all()

    report = GTFSValidator(reader).validate()

    assert report.valid
    assert len(report.errors) == 0
    assert report.stats["stops"] == 3
    assert report.stats["routes"] == 2


def test_validator_dropped_trips_are_warnings(gtfs_minimal: Path) -> None:
    """Test unknown routes and short trips only warn."""
    reader = GTFSReader(str(gtfs_minimal))
    reader.read_all()

    report = GTFSValidator(reader).validate()

    assert any("T5" in w and "non-existent route" in w for w in report.warnings)
    assert any("T4" in w and "fewer than 2" in w for w in report.warnings)


def test_validator_invalid_coordinates(gtfs_edgecases: Path) -> None:
    """Test validator catches invalid coordinates."""
    reader = GTFSReader(str(gtfs_edgecases))
    reader.read_all()

    report = GTFSValidator(reader).validate()

    assert not report.valid
    assert any("latitude" in err.lower() for err in report.errors)
    assert any("longitude" in err.lower() for err in report.errors)


def test_validator_unknown_stop(gtfs_edgecases: Path) -> None:
    """Test validator catches stop times referencing unknown stops."""
    reader = GTFSReader(str(gtfs_edgecases))
    reader.read_all()

    report = GTFSValidator(reader).validate()

    assert any("non-existent stop S4" in err for err in report.errors)


def test_validator_warnings(gtfs_edgecases: Path) -> None:
    """Test validator generates warnings for edge cases."""
    reader = GTFSReader(str(gtfs_edgecases))
    reader.read_all()

    report = GTFSValidator(reader).validate()

    assert any("empty name" in w for w in report.warnings)
    assert any("non-existent route R9" in w for w in report.warnings)


def test_validator_unknown_stop_on_dropped_trips(gtfs_stray_stops: Path) -> None:
    """Test unknown stops on trips outside the target routes or trips.txt only warn."""
    reader = GTFSReader(str(gtfs_stray_stops))
    reader.read_all()

    report = GTFSValidator(reader, {"R1"}).validate()

    assert report.valid
    assert any("trip T2" in w and "GONE" in w for w in report.warnings)
    assert any("trip ORPHAN" in w and "GONE" in w for w in report.warnings)


def test_validator_unknown_stop_on_target_route(gtfs_stray_stops: Path) -> None:
    """Test the same stop is an error once its trip is extracted."""
    reader = GTFSReader(str(gtfs_stray_stops))
    reader.read_all()

    report = GTFSValidator(reader).validate()

    assert not report.valid
    assert report.errors == ["Stop time for trip T2 references non-existent stop GONE"]
