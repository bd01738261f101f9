"""Calendar and auxiliary documents."""

import logging
from typing import Any

from timetable_pipeline.gtfs.reader import GTFSReader

logger = logging.getLogger(__name__)


def build_calendar(reader: GTFSReader) -> dict[str, dict[str, Any]]:
    """Build service id -> {days[7], start, end}, values passed through unparsed."""
    calendar: dict[str, dict[str, Any]] = {}
    for cal in reader.calendar:
        calendar[cal.service_id] = {
            "days": list(cal.days),
            "start": cal.start_date,
            "end": cal.end_date,
        }

    logger.info(f"Built {len(calendar)} calendar entries")
    return calendar


def build_extra(reader: GTFSReader) -> dict[str, Any]:
    """Build the auxiliary document: office names and raw calendar_dates rows."""
    return {
        "offices": {office.office_id: office.office_name for office in reader.offices},
        "calendar_dates": reader.calendar_dates,
    }
