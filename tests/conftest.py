"""Pytest configuration and fixtures."""

from typing import Any, Callable

import httpx
import pytest

from transit_webhook.config import Settings


def walk_step(duration: str = "5 mins", seconds: int = 300) -> dict[str, Any]:
    return {
        "travel_mode": "WALKING",
        "duration": {"text": duration, "value": seconds},
        "html_instructions": "Walk to stop",
    }


def transit_step(
    bus: str = "12",
    num_stops: int = 3,
    headsign: str = "Downtown",
    departure_stop: str = "Main St & 1st Ave",
    arrival_stop: str = "Central Station",
    departure_time: str = "8:05 AM",
    arrival_time: str = "8:20 AM",
    duration: str = "15 mins",
) -> dict[str, Any]:
    return {
        "travel_mode": "TRANSIT",
        "duration": {"text": duration, "value": 900},
        "html_instructions": f"Bus towards {headsign}",
        "transit_details": {
            "departure_stop": {"name": departure_stop, "location": {"lat": 43.65, "lng": -79.38}},
            "arrival_stop": {"name": arrival_stop, "location": {"lat": 43.66, "lng": -79.39}},
            "departure_time": {"text": departure_time, "time_zone": "America/Toronto", "value": 1735736700},
            "arrival_time": {"text": arrival_time, "time_zone": "America/Toronto", "value": 1735737600},
            "headsign": headsign,
            "num_stops": num_stops,
            "line": {
                "short_name": bus,
                "agencies": [{"name": "City Transit", "phone": "", "url": "https://transit.example"}],
                "vehicle": {"name": "Bus", "type": "BUS", "icon": ""},
            },
        },
    }


def directions_body(*step_lists: list[dict[str, Any]], status: str = "OK") -> dict[str, Any]:
    return {
        "status": status,
        "routes": [{"legs": [{"steps": steps}]} for steps in step_lists],
    }


@pytest.fixture
def test_settings() -> Settings:
    """Settings isolated from the environment and any .env file."""
    return Settings(
        _env_file=None,
        GOOGLE_MAPS_API_KEY="test-key",
        DIRECTIONS_API_URL="https://directions.test/json",
        REQUEST_TIMEOUT_SECONDS=5.0,
        DIALOGFLOW_PROJECT_ID="bus-agent",
        DIALOGFLOW_ACCESS_TOKEN="token",
    )


@pytest.fixture
def recorded_requests() -> list[httpx.Request]:
    return []


@pytest.fixture
def make_transport(recorded_requests: list[httpx.Request]) -> Callable[..., httpx.MockTransport]:
    """Build a MockTransport answering every request with the given JSON body and status."""

    def factory(body: Any = None, status_code: int = 200, exc: Exception | None = None) -> httpx.MockTransport:
        def handler(request: httpx.Request) -> httpx.Response:
            recorded_requests.append(request)
            if exc is not None:
                raise exc
            return httpx.Response(status_code, json=body)

        return httpx.MockTransport(handler)

    return factory
