"""JSON document output for the viewer."""

import json
import logging
from pathlib import Path
from typing import Any

logger = logging.getLogger(__name__)

STOPS_FILE = "stops.json"
ROUTES_FILE = "routes.json"
TIMETABLES_FILE = "timetables.json"
SHAPES_RAW_FILE = "shapes_raw.json"
SHAPES_FILE = "shapes.json"
CALENDAR_FILE = "calendar.json"
EXTRA_FILE = "extra.json"
MANIFEST_FILE = "manifest.json"


def write_json(path: Path, data: Any, pretty: bool = False) -> None:
    """Write one document, replacing any existing file.

    Keys keep insertion order, so trips and patterns appear in feed order.
    """
    with open(path, "w", encoding="utf-8") as f:
        if pretty:
            json.dump(data, f, ensure_ascii=False, indent=2)
        else:
            json.dump(data, f, ensure_ascii=False, separators=(",", ":"))
    logger.info(f"Wrote {path}")


def read_json(path: Path) -> Any:
    with open(path, encoding="utf-8") as f:
        return json.load(f)


def write_json_files(
    output_path: Path,
    documents: dict[str, Any],
    pretty: bool = False,
) -> dict[str, str]:
    """Write filename -> document pairs into ``output_path``."""
    logger.info(f"Writing {len(documents)} JSON files to {output_path}")

    output_path.mkdir(parents=True, exist_ok=True)

    files_written = {}
    for filename, data in documents.items():
        path = output_path / filename
        write_json(path, data, pretty)
        files_written[filename] = str(path)

    return files_written
