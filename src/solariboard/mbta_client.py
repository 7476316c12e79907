"""MBTA V3 API client."""

import logging
from typing import Any, Dict, Iterable, Optional

import requests

from .config import MBTA_API_URL, COMMUTER_RAIL_ROUTE_TYPE, DEFAULT_TIMEOUT_SECS

logger = logging.getLogger(__name__)


class MBTAAPIError(Exception):
    """Raised when an MBTA API request fails or returns an unusable body."""


class MBTAClient:
    """Fetches JSON:API documents from the MBTA V3 API."""

    def __init__(
        self,
        base_url: str = MBTA_API_URL,
        timeout: float = DEFAULT_TIMEOUT_SECS,
        api_key: Optional[str] = None,
        session: Optional[requests.Session] = None,
    ):
        """
        Initialize the MBTA client.

        Args:
            base_url: API root, without a trailing slash.
            timeout: Per-request timeout in seconds.
            api_key: Optional MBTA API key, sent as the x-api-key header.
            session: Optional requests session to reuse.
        """
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self._session = session or requests.Session()
        self._session.headers.update({"Accept": "application/vnd.api+json"})
        if api_key:
            self._session.headers.update({"x-api-key": api_key})

    def get_stop(self, stop_id: str, include_children: bool = True) -> Dict[str, Any]:
        """
        Get a stop, optionally with its child stops (platforms) in "included".

        Args:
            stop_id: MBTA stop ID (e.g., "place-north")
            include_children: Request child stops along with the station.

        Returns:
            Decoded JSON:API document.
        """
        params = {"include": "child_stops"} if include_children else {}
        return self._get(f"/stops/{stop_id}", params)

    def get_routes(self, stop_id: str, route_type: int = COMMUTER_RAIL_ROUTE_TYPE) -> Dict[str, Any]:
        """Get routes serving a stop, restricted to one route type."""
        return self._get("/routes", {"filter[stop]": stop_id, "filter[type]": str(route_type)})

    def get_predictions(self, stop_id: str, route_ids: Iterable[str]) -> Dict[str, Any]:
        """
        Get predictions for a stop on the given routes, with related stops and trips.

        Args:
            stop_id: MBTA stop ID.
            route_ids: Route IDs to filter by. An empty set is passed through as an
                empty filter; the API decides what that means.

        Returns:
            Decoded JSON:API document.
        """
        params = {
            "include": "stop,trip",
            "filter[stop]": stop_id,
            "filter[route]": ",".join(route_ids),
        }
        return self._get("/predictions", params)

    def get_trips(self, trip_ids: Iterable[str]) -> Dict[str, Any]:
        """Get trips by ID."""
        return self._get("/trips", {"filter[id]": ",".join(trip_ids)})

    def close(self) -> None:
        """Close the underlying HTTP session."""
        self._session.close()

    def _get(self, path: str, params: Dict[str, str]) -> Dict[str, Any]:
        """
        Issue a GET request and decode the JSON:API body.

        Args:
            path: Path below the API root.
            params: Query parameters.

        Returns:
            Decoded document; guaranteed to be a dict with a "data" member.

        Raises:
            MBTAAPIError: On transport failure, timeout, non-2xx status or a body
                that is not a JSON:API document.
        """
        url = f"{self.base_url}{path}"
        logger.debug(f"Fetching {url} {params}")
        try:
            response = self._session.get(url, params=params, timeout=self.timeout)
            response.raise_for_status()
        except requests.RequestException as e:
            logger.error(f"Failed to fetch {url}: {e}")
            raise MBTAAPIError(f"Request to {url} failed: {e}") from e

        try:
            body = response.json()
        except ValueError as e:
            raise MBTAAPIError(f"Response from {url} is not JSON: {e}") from e

        if not isinstance(body, dict) or "data" not in body:
            raise MBTAAPIError(f"Response from {url} has no 'data' member")
        return body
