"""
Refresh pipeline stages.

Each stage is a thin fetch wrapper around a pure function that turns a decoded
JSON:API document into models:

    resolve_stop       -> Station (name and platforms)
    resolve_routes     -> route IDs serving the station
    fetch_predictions  -> Predictions with a departure time and track
    enrich_trips       -> DisplayRows joined against trip metadata
"""

import logging
from datetime import datetime
from typing import Any, Dict, List, Optional, Tuple

from .config import COMMUTER_RAIL_ROUTE_TYPE
from .mbta_client import MBTAClient
from .models import DisplayRow, Platform, Prediction, Station, Trip, TRACK_TBD

logger = logging.getLogger(__name__)


def parse_timestamp(value: str) -> datetime:
    """Parse an ISO 8601 timestamp as returned by the API."""
    return datetime.fromisoformat(value.replace("Z", "+00:00"))


def _relationship_id(resource: Dict[str, Any], name: str) -> Optional[str]:
    """Return the ID a JSON:API relationship points at, or None if unset."""
    relationship = (resource.get("relationships") or {}).get(name) or {}
    data = relationship.get("data")
    if not data:
        return None
    return data.get("id")


# Stop Resolver

def parse_stop(stop_id: str, document: Dict[str, Any]) -> Station:
    """
    Build a Station from a /stops/{id}?include=child_stops document.

    Each included child stop becomes one Platform labeled with its platform
    code ("TBD" if it has none). A stop without children gets a single
    Platform whose ID is the stop ID and whose label is empty.
    """
    name = document["data"]["attributes"]["name"]
    included = document.get("included")

    if included:
        platforms = [
            Platform(
                platform_id=child["id"],
                track=(child.get("attributes") or {}).get("platform_code") or TRACK_TBD,
            )
            for child in included
        ]
    else:
        platforms = [Platform(platform_id=stop_id, track="")]

    return Station(stop_id=stop_id, name=name, platforms=platforms)


def resolve_stop(client: MBTAClient, stop_id: str) -> Station:
    """Fetch a station and its platforms."""
    station = parse_stop(stop_id, client.get_stop(stop_id, include_children=True))
    logger.debug(f"Resolved {station.name} with {len(station.platforms)} platforms")
    return station


# Route Resolver

def parse_routes(document: Dict[str, Any]) -> List[str]:
    """Extract route IDs from a /routes document, in API order."""
    return [route["id"] for route in document["data"]]


def resolve_routes(client: MBTAClient, stop_id: str, route_type: int = COMMUTER_RAIL_ROUTE_TYPE) -> List[str]:
    """Fetch the route IDs of one route type serving a stop."""
    route_ids = parse_routes(client.get_routes(stop_id, route_type))
    logger.debug(f"Stop {stop_id} is served by routes {route_ids}")
    return route_ids


# Prediction Fetcher

def parse_predictions(document: Dict[str, Any], platforms: List[Platform]) -> List[Prediction]:
    """
    Build Predictions from a /predictions document.

    Entries without a departure time are dropped. The track label comes from
    the platform whose ID matches the prediction's stop, or "TBD".

    Args:
        document: Decoded /predictions document.
        platforms: Platforms of the current station.

    Returns:
        List of Prediction objects in API order.
    """
    tracks = {platform.platform_id: platform.track for platform in platforms}
    predictions: List[Prediction] = []

    for entry in document["data"]:
        attributes = entry.get("attributes") or {}
        departure = attributes.get("departure_time")
        if not departure:
            continue

        stop_id = _relationship_id(entry, "stop")
        predictions.append(
            Prediction(
                trip_id=_relationship_id(entry, "trip"),
                departure_time=parse_timestamp(departure),
                track=tracks.get(stop_id, TRACK_TBD),
                status=attributes.get("status"),
            )
        )

    return predictions


def fetch_predictions(
    client: MBTAClient,
    stop_id: str,
    route_ids: List[str],
    platforms: List[Platform],
) -> List[Prediction]:
    """Fetch upcoming departures for a stop on the given routes."""
    predictions = parse_predictions(client.get_predictions(stop_id, route_ids), platforms)
    logger.debug(f"Fetched {len(predictions)} predictions for {stop_id}")
    return predictions


# Trip Enricher

def parse_trips(document: Dict[str, Any]) -> Dict[str, Trip]:
    """Build a trip_id -> Trip mapping from a /trips document."""
    trips: Dict[str, Trip] = {}
    for entry in document["data"]:
        attributes = entry.get("attributes") or {}
        trips[entry["id"]] = Trip(
            trip_id=entry["id"],
            train=attributes.get("name") or "",
            headsign=attributes.get("headsign") or "",
        )
    return trips


def train_sort_key(train: str) -> Tuple[int, Any]:
    """
    Sort key for train labels.

    All-digit labels compare numerically and sort before any other label,
    which compare as strings.
    """
    if train.isdecimal():
        return (0, int(train))
    return (1, train)


def display_row_sort_key(row: DisplayRow) -> Tuple[datetime, Tuple[int, Any]]:
    """Order rows by departure time, then train label."""
    return (row.departure_time, train_sort_key(row.train))


def build_display_rows(predictions: List[Prediction], trips: Dict[str, Trip]) -> List[DisplayRow]:
    """
    Join predictions against trips into sorted DisplayRows.

    A prediction whose trip is missing is left off the board.

    Args:
        predictions: Predictions from the prediction stage.
        trips: Trips keyed by trip ID.

    Returns:
        One DisplayRow per matched prediction, sorted by departure time and train.
    """
    rows: List[DisplayRow] = []
    for prediction in predictions:
        trip = trips.get(prediction.trip_id) if prediction.trip_id else None
        if trip is None:
            logger.warning(f"No trip data for trip {prediction.trip_id}; skipping departure")
            continue

        rows.append(
            DisplayRow(
                departure_time=prediction.departure_time,
                destination=trip.headsign,
                train=trip.train,
                track=prediction.track,
                status=prediction.status,
            )
        )

    rows.sort(key=display_row_sort_key)
    return rows


def unique_trip_ids(predictions: List[Prediction]) -> List[str]:
    """Distinct trip IDs referenced by predictions, first-seen order."""
    seen = set()
    trip_ids = []
    for prediction in predictions:
        if prediction.trip_id and prediction.trip_id not in seen:
            seen.add(prediction.trip_id)
            trip_ids.append(prediction.trip_id)
    return trip_ids


def enrich_trips(client: MBTAClient, predictions: List[Prediction]) -> List[DisplayRow]:
    """Fetch trip metadata for the predictions and build the board rows."""
    trip_ids = unique_trip_ids(predictions)
    if not trip_ids:
        if predictions:
            logger.warning(f"{len(predictions)} predictions have no trip; skipping them")
        return []

    trips = parse_trips(client.get_trips(trip_ids))
    return build_display_rows(predictions, trips)
