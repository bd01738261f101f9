"""Data models for feed records and derived viewer structures."""

from dataclasses import dataclass, field
from typing import Any

DEFAULT_ROUTE_COLOR = "00703c"
DEFAULT_ROUTING_URL = "https://router.project-osrm.org"

# Separator inside pattern keys and the marker used by template override keys
PATTERN_SEPARATOR = "|"
TEMPLATE_MARKER = "|...|"


@dataclass(frozen=True)
class Stop:
    """Feed stop with coordinates."""

    stop_id: str
    name: str
    lat: float
    lon: float
    platform: str = ""


@dataclass(frozen=True)
class Route:
    """Feed route."""

    route_id: str
    short_name: str
    color: str
    office_id: str


@dataclass(frozen=True)
class Trip:
    """Feed trip."""

    trip_id: str
    route_id: str
    service_id: str
    headsign: str = ""
    office_id: str = ""
    pattern_id: str = ""


@dataclass(frozen=True)
class StopTime:
    """Feed stop time. Times are kept as written in the feed."""

    trip_id: str
    stop_id: str
    departure_time: str
    stop_sequence: int


@dataclass(frozen=True)
class Calendar:
    """Feed calendar entry, day flags kept as provided."""

    service_id: str
    days: tuple[str, str, str, str, str, str, str]
    start_date: str
    end_date: str


@dataclass(frozen=True)
class Office:
    """Operator office (GTFS-JP office_jp.txt)."""

    office_id: str
    office_name: str


@dataclass(frozen=True)
class PatternInfo:
    """Representative trip of a stop pattern."""

    pattern_key: str
    route_id: str
    headsign: str
    stop_ids: tuple[str, ...]


@dataclass
class Geometry:
    """Road path of a pattern and the position of each stop along it."""

    coordinates: list[list[float]]  # [lon, lat] pairs
    stop_indices: list[int]
    status: str = "ok"  # ok, partial, failed, manual

    def to_dict(self) -> dict[str, Any]:
        """Serialize to the shapes document record."""
        return {
            "coordinates": self.coordinates,
            "stop_indices": self.stop_indices,
            "status": self.status,
        }


@dataclass(frozen=True)
class SegmentOverride:
    """Hand-drawn path between two stops, applied to every pattern visiting both in order."""

    start_stop_id: str
    end_stop_id: str
    coordinates: tuple[tuple[float, ...], ...]
    source_key: str = ""

    @property
    def key(self) -> str:
        return f"{self.start_stop_id}{PATTERN_SEPARATOR}{self.end_stop_id}"


@dataclass
class OverrideTable:
    """Manual corrections split into full-pattern replacements and segment overrides."""

    full: dict[str, dict[str, Any]] = field(default_factory=dict)
    segments: dict[str, SegmentOverride] = field(default_factory=dict)


@dataclass
class SpliceResult:
    """Outcome of applying an override table to a geometry table."""

    geometries: dict[str, dict[str, Any]]
    replaced: int = 0
    patched: int = 0
    segments_applied: int = 0
    segments_rejected: int = 0


@dataclass
class Manifest:
    """Build manifest with metadata and checksums."""

    schema_version: int
    tool_version: str
    created_at_iso: str
    inputs: dict[str, Any]
    outputs: dict[str, str]  # filename -> sha256
    stats: dict[str, int]
    build: dict[str, str]
    splice: dict[str, Any] = field(default_factory=dict)


@dataclass
class ValidationReport:
    """Report from validation process."""

    valid: bool
    errors: list[str] = field(default_factory=list)
    warnings: list[str] = field(default_factory=list)
    stats: dict[str, int] = field(default_factory=dict)


@dataclass
class ExtractConfig:
    """Configuration for the extraction run."""

    input_path: str = "gtfs_raw"
    output_path: str = "."
    overrides_path: str = "manual_shapes.json"
    routing_url: str = DEFAULT_ROUTING_URL
    routing_profile: str = "driving"
    routing_timeout: float = 30.0  # seconds
    max_points_per_request: int = 21
    request_delay: float = 1.5  # seconds between patterns
    max_retries: int = 3
    retry_delay: float = 1.0  # seconds, doubled per attempt
    route_ids: list[str] | None = None
    pretty: bool = False
    default_route_color: str = DEFAULT_ROUTE_COLOR


@dataclass
class SpliceConfig:
    """Configuration for the override splice run."""

    output_path: str = "."
    overrides_path: str = "manual_shapes.json"
    pretty: bool = False
