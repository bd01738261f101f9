"""Public API for timetable-pipeline."""

import hashlib
import logging
import platform
from datetime import UTC, datetime
from pathlib import Path
from typing import Any

from timetable_pipeline.geometry.generator import Router, generate_geometries
from timetable_pipeline.geometry.overrides import build_override_table, load_overrides
from timetable_pipeline.geometry.routing import OSRMClient
from timetable_pipeline.geometry.splicer import apply_overrides
from timetable_pipeline.gtfs.models import (
    ExtractConfig,
    Manifest,
    SpliceConfig,
    ValidationReport,
)
from timetable_pipeline.gtfs.reader import GTFSReader
from timetable_pipeline.gtfs.validator import GTFSValidator
from timetable_pipeline.output.json import (
    CALENDAR_FILE,
    EXTRA_FILE,
    MANIFEST_FILE,
    ROUTES_FILE,
    SHAPES_FILE,
    SHAPES_RAW_FILE,
    STOPS_FILE,
    TIMETABLES_FILE,
    read_json,
    write_json,
    write_json_files,
)
from timetable_pipeline.transform.calendar import build_calendar, build_extra
from timetable_pipeline.transform.patterns import group_patterns, is_template_key, split_pattern_key
from timetable_pipeline.transform.routes import build_routes, select_target_routes
from timetable_pipeline.transform.stops import build_stops
from timetable_pipeline.transform.trips import build_timetables, select_valid_trips
from timetable_pipeline.version import SCHEMA_VERSION, VERSION

logger = logging.getLogger(__name__)

REQUIRED_OUTPUTS = [
    STOPS_FILE,
    ROUTES_FILE,
    TIMETABLES_FILE,
    SHAPES_FILE,
    CALENDAR_FILE,
    EXTRA_FILE,
    MANIFEST_FILE,
]


def _sha256(path: Path) -> str:
    with open(path, "rb") as f:
        return hashlib.sha256(f.read()).hexdigest()


def _manifest_to_dict(manifest: Manifest) -> dict[str, Any]:
    data = {
        "schema_version": manifest.schema_version,
        "tool_version": manifest.tool_version,
        "created_at": manifest.created_at_iso,
        "inputs": manifest.inputs,
        "outputs": manifest.outputs,
        "stats": manifest.stats,
        "build": manifest.build,
    }
    if manifest.splice:
        data["splice"] = manifest.splice
    return data


def _manifest_from_dict(data: dict[str, Any]) -> Manifest:
    return Manifest(
        schema_version=data.get("schema_version", SCHEMA_VERSION),
        tool_version=data.get("tool_version", VERSION),
        created_at_iso=data.get("created_at", ""),
        inputs=data.get("inputs", {}),
        outputs=data.get("outputs", {}),
        stats=data.get("stats", {}),
        build=data.get("build", {}),
        splice=data.get("splice", {}),
    )


def _build_info() -> dict[str, str]:
    return {
        "python": platform.python_version(),
        "platform": platform.platform(),
    }


def extract(config: ExtractConfig | None = None, router: Router | None = None) -> Manifest:
    """
    Convert a feed into the viewer's JSON documents, including road geometry.

    Args:
        config: Extraction configuration (defaults read ./gtfs_raw and write to .)
        router: Routing service used for geometry; an OSRMClient built from the
            configuration when omitted

    Returns:
        Manifest with build metadata
    """
    if config is None:
        config = ExtractConfig()

    logger.info(f"Starting extraction: {config.input_path} -> {config.output_path}")
    start_time = datetime.now(UTC)

    # Read feed
    reader = GTFSReader(config.input_path)
    reader.read_all()

    target_routes = select_target_routes(reader, config.route_ids)

    # Validate
    validator = GTFSValidator(reader, target_routes)
    validation_report = validator.validate()
    if not validation_report.valid:
        for error in validation_report.errors:
            logger.error(error)
        raise ValueError(f"GTFS validation failed with {len(validation_report.errors)} errors")

    # Transform
    stops = build_stops(reader)
    routes = build_routes(reader, config.default_route_color)
    trips = select_valid_trips(reader, target_routes)
    timetables = build_timetables(reader, trips, target_routes)
    calendar = build_calendar(reader)
    extra = build_extra(reader)

    patterns = group_patterns(trips)

    # Geometry
    overrides_path = Path(config.overrides_path)
    raw_overrides = load_overrides(overrides_path)
    table = build_override_table(raw_overrides)

    client = None
    if router is None:
        client = OSRMClient(
            base_url=config.routing_url,
            profile=config.routing_profile,
            timeout=config.routing_timeout,
            max_retries=config.max_retries,
            retry_delay=config.retry_delay,
        )
        router = client
    try:
        shapes_raw = generate_geometries(
            patterns,
            stops,
            router,
            manual_shapes=table.full,
            max_points=config.max_points_per_request,
            request_delay=config.request_delay,
        )
    finally:
        if client is not None:
            client.close()

    splice_result = apply_overrides(shapes_raw, table)

    # Write outputs
    output_dir = Path(config.output_path)
    files_written = write_json_files(
        output_dir,
        {
            STOPS_FILE: stops,
            ROUTES_FILE: routes,
            TIMETABLES_FILE: timetables,
            SHAPES_RAW_FILE: shapes_raw,
            SHAPES_FILE: splice_result.geometries,
            CALENDAR_FILE: calendar,
            EXTRA_FILE: extra,
        },
        pretty=config.pretty,
    )

    checksums = {filename: _sha256(Path(filepath)) for filename, filepath in files_written.items()}

    statuses = [record.get("status", "ok") for record in shapes_raw.values()]
    stats = {
        "stops": len(stops),
        "routes": len(routes),
        "trips": len(trips),
        "patterns": len(patterns),
        "geometries_generated": len(statuses) - statuses.count("manual"),
        "geometries_manual": statuses.count("manual"),
        "geometries_partial": statuses.count("partial"),
        "geometries_failed": statuses.count("failed"),
        "shapes_patched": splice_result.patched,
        "segments_applied": splice_result.segments_applied,
        "segments_rejected": splice_result.segments_rejected,
    }

    inputs: dict[str, Any] = {"gtfs_path": config.input_path}
    if overrides_path.exists():
        inputs["overrides_path"] = str(overrides_path)
        inputs["overrides_sha256"] = _sha256(overrides_path)

    manifest = Manifest(
        schema_version=SCHEMA_VERSION,
        tool_version=VERSION,
        created_at_iso=start_time.isoformat(),
        inputs=inputs,
        outputs=checksums,
        stats=stats,
        build=_build_info(),
    )

    manifest_path = output_dir / MANIFEST_FILE
    write_json(manifest_path, _manifest_to_dict(manifest), pretty=True)

    elapsed = (datetime.now(UTC) - start_time).total_seconds()
    logger.info(f"Extraction completed in {elapsed:.2f}s")

    return manifest


def splice(config: SpliceConfig | None = None) -> Manifest:
    """
    Re-apply the manual override table to previously extracted geometry.

    Always splices from shapes_raw.json, never from an earlier shapes.json,
    and makes no network requests.

    Args:
        config: Splice configuration

    Returns:
        The updated manifest
    """
    if config is None:
        config = SpliceConfig()

    output_dir = Path(config.output_path)
    base_path = output_dir / SHAPES_RAW_FILE
    manifest_path = output_dir / MANIFEST_FILE

    if not base_path.exists():
        raise FileNotFoundError(f"Baseline geometry not found: {base_path}. Run extract first.")
    raw_overrides = load_overrides(config.overrides_path, required=True)

    base_sha256 = _sha256(base_path)
    manifest_data: dict[str, Any] = {}
    if manifest_path.exists():
        manifest_data = read_json(manifest_path)
        expected = manifest_data.get("outputs", {}).get(SHAPES_RAW_FILE)
        if expected and expected != base_sha256:
            raise ValueError(
                f"{base_path} does not match the extraction manifest: "
                f"expected {expected}, got {base_sha256}"
            )
    else:
        logger.warning(f"{manifest_path} not found, baseline provenance cannot be checked")

    logger.info(f"Splicing overrides into {base_path}")
    geometries = read_json(base_path)
    table = build_override_table(raw_overrides)
    result = apply_overrides(geometries, table)

    shapes_path = output_dir / SHAPES_FILE
    write_json(shapes_path, result.geometries, pretty=config.pretty)

    manifest = _manifest_from_dict(manifest_data)
    manifest.outputs[SHAPES_FILE] = _sha256(shapes_path)
    manifest.splice = {
        "base_sha256": base_sha256,
        "overrides_sha256": _sha256(Path(config.overrides_path)),
        "spliced_at": datetime.now(UTC).isoformat(),
        "stats": {
            "shapes_replaced": result.replaced,
            "shapes_patched": result.patched,
            "segments_applied": result.segments_applied,
            "segments_rejected": result.segments_rejected,
        },
    }
    write_json(manifest_path, _manifest_to_dict(manifest), pretty=True)

    logger.info(f"Updated {result.replaced + result.patched} shapes")
    return manifest


def _validate_shapes(
    shapes: dict[str, dict[str, Any]], errors: list[str], warnings: list[str]
) -> None:
    for key, record in shapes.items():
        if is_template_key(key):
            continue

        label = key if len(key) <= 50 else f"{key[:50]}..."
        coordinates = record.get("coordinates", [])
        stop_indices = record.get("stop_indices", [])
        stop_count = len(split_pattern_key(key))

        if len(stop_indices) != stop_count:
            errors.append(
                f"Shape {label} has {len(stop_indices)} stop_indices for {stop_count} stops"
            )
            continue

        if coordinates and any(not (0 <= idx < len(coordinates)) for idx in stop_indices):
            errors.append(f"Shape {label} has stop_indices outside its {len(coordinates)} points")

        if stop_indices != sorted(stop_indices):
            warnings.append(f"Shape {label} has decreasing stop_indices")

        status = record.get("status", "ok")
        if status in ("partial", "failed"):
            warnings.append(f"Shape {label} geometry is {status}")


def validate(output_path: str) -> ValidationReport:
    """
    Validate extracted output.

    Args:
        output_path: Path to output directory containing the JSON documents

    Returns:
        ValidationReport with results
    """
    logger.info(f"Validating output: {output_path}")

    output_dir = Path(output_path)
    errors: list[str] = []
    warnings: list[str] = []

    # Check required files exist
    for filename in REQUIRED_OUTPUTS:
        if not (output_dir / filename).exists():
            errors.append(f"Required file missing: {filename}")

    if errors:
        return ValidationReport(valid=False, errors=errors, warnings=warnings)

    # Verify checksums
    try:
        manifest_data = read_json(output_dir / MANIFEST_FILE)
        for filename, expected_hash in manifest_data.get("outputs", {}).items():
            filepath = output_dir / filename
            if filepath.exists():
                actual_hash = _sha256(filepath)
                if actual_hash != expected_hash:
                    errors.append(
                        f"Checksum mismatch for {filename}: "
                        f"expected {expected_hash}, got {actual_hash}"
                    )
    except Exception as e:
        errors.append(f"Manifest validation failed: {e}")

    # Check geometry alignment
    shapes = read_json(output_dir / SHAPES_FILE)
    _validate_shapes(shapes, errors, warnings)

    stats = {
        "stops": len(read_json(output_dir / STOPS_FILE)),
        "routes": len(read_json(output_dir / ROUTES_FILE)),
        "shapes": len(shapes),
    }

    valid = len(errors) == 0

    if valid:
        logger.info("Validation passed")
    else:
        logger.error(f"Validation failed with {len(errors)} errors")

    return ValidationReport(
        valid=valid,
        errors=errors,
        warnings=warnings,
        stats=stats,
    )
