"""Timetable Pipeline - Convert transit feeds into map and timetable viewer JSON."""

from timetable_pipeline.api import extract, splice, validate
from timetable_pipeline.version import SCHEMA_VERSION, VERSION

__version__ = VERSION
__all__ = ["SCHEMA_VERSION", "VERSION", "extract", "splice", "validate"]
