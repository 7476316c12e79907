"""Canned MBTA V3 API documents for tests."""

from unittest.mock import MagicMock

from solariboard.mbta_client import MBTAClient


def stop_document(name="North Station", children=None):
    """A /stops/{id}?include=child_stops document. children: [(id, platform_code)]."""
    document = {"data": {"id": "place-north", "type": "stop", "attributes": {"name": name}}}
    if children is not None:
        document["included"] = [
            {"id": child_id, "type": "stop", "attributes": {"platform_code": code}}
            for child_id, code in children
        ]
    return document


def routes_document(route_ids):
    return {"data": [{"id": route_id, "type": "route", "attributes": {}} for route_id in route_ids]}


def prediction(trip_id, departure, stop_id, status=None):
    """One prediction resource."""
    return {
        "id": f"prediction-{trip_id}-{stop_id}",
        "type": "prediction",
        "attributes": {"departure_time": departure, "arrival_time": None, "status": status},
        "relationships": {
            "stop": {"data": {"id": stop_id, "type": "stop"}},
            "trip": {"data": {"id": trip_id, "type": "trip"}},
        },
    }


def predictions_document(entries):
    return {"data": entries, "included": []}


def trips_document(trips):
    """trips: [(id, train, headsign)]"""
    return {
        "data": [
            {"id": trip_id, "type": "trip", "attributes": {"name": train, "headsign": headsign}}
            for trip_id, train, headsign in trips
        ]
    }


def north_station_client():
    """A mock client answering for a station with two platforms and two departures."""
    client = MagicMock(spec=MBTAClient)
    client.get_stop.return_value = stop_document(
        children=[("North Station-01", "1"), ("North Station-02", "2")]
    )
    client.get_routes.return_value = routes_document(["CR-Lowell", "CR-Newburyport"])
    client.get_predictions.return_value = predictions_document(
        [
            prediction("T1", "2018-03-05T09:10:00-05:00", "North Station-01", "On time"),
            prediction("T2", "2018-03-05T09:05:00-05:00", "North Station-02", "Boarding"),
        ]
    )
    client.get_trips.return_value = trips_document(
        [("T1", "101", "Newburyport"), ("T2", "102", "Lowell")]
    )
    return client
