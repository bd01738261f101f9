"""Road geometry generation for stop patterns."""

import logging
import time
from collections.abc import Callable, Sequence
from typing import Any, Protocol

from timetable_pipeline.geometry.routing import RoutingError
from timetable_pipeline.gtfs.models import Geometry, PatternInfo

logger = logging.getLogger(__name__)

MAX_POINTS_PER_REQUEST = 21


class Router(Protocol):
    """Anything that can return a road path through ordered [lon, lat] points."""

    def route(self, points: Sequence[Sequence[float]]) -> list[list[float]]: ...


def chunk_points(
    points: Sequence[Sequence[float]], max_points: int = MAX_POINTS_PER_REQUEST
) -> list[list[Sequence[float]]]:
    """Split points into chunks of at most ``max_points`` sharing one boundary point.

    25 points with ``max_points=21`` give chunks 0..20 and 20..24.
    """
    if max_points < 2:
        raise ValueError(f"max_points must be at least 2, got {max_points}")

    stride = max_points - 1
    return [list(points[i : i + max_points]) for i in range(0, len(points) - 1, stride)]


def assemble_path(
    router: Router, chunks: Sequence[Sequence[Sequence[float]]]
) -> tuple[list[list[float]], int]:
    """Route every chunk and join the results into one path.

    Returns the path and the number of chunks that failed. The first point of
    each joined segment repeats the last point of the path and is dropped.
    """
    path: list[list[float]] = []
    failed = 0

    for i, chunk in enumerate(chunks):
        try:
            segment = router.route(chunk)
        except RoutingError as e:
            logger.warning(f"Chunk {i + 1}/{len(chunks)} failed, leaving a gap: {e}")
            failed += 1
            continue

        if path and segment:
            segment = segment[1:]
        path.extend(segment)

    return path, failed


def match_stop_indices(
    path: Sequence[Sequence[float]], stop_points: Sequence[Sequence[float]]
) -> list[int]:
    """Find the nearest path point for each stop, searching forward from the previous match.

    Distance is squared euclidean in raw lon/lat. Ties keep the earliest index.
    An empty path maps every stop to 0.
    """
    indices: list[int] = []
    start = 0

    for lon, lat in stop_points:
        best_idx = start
        best_dist = float("inf")
        for i in range(start, len(path)):
            p = path[i]
            d = (p[0] - lon) ** 2 + (p[1] - lat) ** 2
            if d < best_dist:
                best_dist = d
                best_idx = i
        indices.append(best_idx)
        start = best_idx

    return indices


def generate_geometry(
    router: Router,
    stop_points: Sequence[Sequence[float]],
    max_points: int = MAX_POINTS_PER_REQUEST,
) -> Geometry:
    """Build the geometry for one pattern from its stop [lon, lat] points."""
    chunks = chunk_points(stop_points, max_points)
    path, failed = assemble_path(router, chunks)

    if failed == 0:
        status = "ok"
    elif failed < len(chunks):
        status = "partial"
    else:
        status = "failed"

    return Geometry(
        coordinates=path,
        stop_indices=match_stop_indices(path, stop_points),
        status=status,
    )


def generate_geometries(
    patterns: dict[str, PatternInfo],
    stops: dict[str, dict[str, Any]],
    router: Router,
    manual_shapes: dict[str, dict[str, Any]] | None = None,
    max_points: int = MAX_POINTS_PER_REQUEST,
    request_delay: float = 0.0,
    sleep: Callable[[float], None] = time.sleep,
) -> dict[str, dict[str, Any]]:
    """Generate the geometry record of every pattern.

    Patterns with a full-pattern manual shape use it verbatim without any
    request. Generated patterns are requested one at a time with
    ``request_delay`` seconds between consecutive patterns.
    """
    manual_shapes = manual_shapes or {}
    shapes: dict[str, dict[str, Any]] = {}
    total = len(patterns)
    requested = 0

    logger.info(f"Generating road geometry for {total} patterns")

    for counter, (key, info) in enumerate(patterns.items(), start=1):
        if key in manual_shapes:
            logger.debug(f"[{counter}/{total}] Using manual shape: {info.headsign}")
            record = dict(manual_shapes[key])
            record.setdefault("status", "manual")
            shapes[key] = record
            continue

        if requested and request_delay > 0:
            sleep(request_delay)
        requested += 1

        logger.debug(f"[{counter}/{total}] Generating: {info.headsign}")
        stop_points = [[stops[stop_id]["lng"], stops[stop_id]["lat"]] for stop_id in info.stop_ids]
        geometry = generate_geometry(router, stop_points, max_points)
        if geometry.status != "ok":
            logger.warning(
                f"Pattern for route {info.route_id} ({info.headsign}) geometry is "
                f"{geometry.status}"
            )
        shapes[key] = geometry.to_dict()

    logger.info(f"Generated {requested} geometries, {total - requested} from manual shapes")
    return shapes
