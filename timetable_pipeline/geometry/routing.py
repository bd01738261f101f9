"""Client for the OSRM route service."""

import logging
import time
from collections.abc import Sequence

import requests

from timetable_pipeline.gtfs.models import DEFAULT_ROUTING_URL

logger = logging.getLogger(__name__)


class RoutingError(Exception):
    """Raised when the routing service gives no usable route after all retries."""


class OSRMClient:
    """Request road paths through an ordered list of points.

    Transport errors, HTTP errors and non-``Ok`` response codes are retried
    with exponential backoff; when retries are exhausted ``RoutingError`` is
    raised.
    """

    def __init__(
        self,
        base_url: str = DEFAULT_ROUTING_URL,
        profile: str = "driving",
        timeout: float = 30.0,
        max_retries: int = 3,
        retry_delay: float = 1.0,
        session: requests.Session | None = None,
    ) -> None:
        self.base_url = base_url.rstrip("/")
        self.profile = profile
        self.timeout = timeout
        self.max_retries = max(1, max_retries)
        self.retry_delay = retry_delay
        self.session = session or requests.Session()

    def route_url(self, points: Sequence[Sequence[float]]) -> str:
        """Build the route request URL for [lon, lat] points."""
        coords = ";".join(f"{lon},{lat}" for lon, lat in points)
        return f"{self.base_url}/route/v1/{self.profile}/{coords}"

    def route(self, points: Sequence[Sequence[float]]) -> list[list[float]]:
        """Return the full route geometry through ``points`` as [lon, lat] pairs."""
        if len(points) < 2:
            raise ValueError(f"A route needs at least 2 points, got {len(points)}")

        url = self.route_url(points)
        params = {"overview": "full", "geometries": "geojson"}
        last_error = ""

        for attempt in range(self.max_retries):
            try:
                response = self.session.get(url, params=params, timeout=self.timeout)
                response.raise_for_status()
                data = response.json()
                if data.get("code") == "Ok" and data.get("routes"):
                    return [list(point) for point in data["routes"][0]["geometry"]["coordinates"]]
                last_error = f"routing service returned code {data.get('code')!r}"
            except requests.exceptions.RequestException as e:
                last_error = str(e)
            except (KeyError, ValueError) as e:
                last_error = f"malformed response: {e}"

            logger.warning(
                f"Route request attempt {attempt + 1}/{self.max_retries} failed: {last_error}"
            )
            if attempt < self.max_retries - 1:
                delay = self.retry_delay * (2**attempt)
                logger.info(f"Retrying route request in {delay} seconds...")
                time.sleep(delay)

        raise RoutingError(f"No route for {len(points)} points: {last_error}")

    def close(self) -> None:
        self.session.close()
