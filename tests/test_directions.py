"""Tests for the Directions API client."""

import asyncio
import time

import httpx
import pytest
from conftest import directions_body, transit_step, walk_step

from transit_webhook.errors import ErrorKind, RouteError
from transit_webhook.models.schemas import Preference
from transit_webhook.services.directions import fetch_bus_itineraries, parse_directions_payload


def _fetch(settings, transport, origin="Union Station", destination="Downtown",
           arrival="2025-01-01T09:00:00-05:00", preference=Preference.NONE):
    return asyncio.run(
        fetch_bus_itineraries(origin, destination, arrival, preference, config=settings, transport=transport)
    )


def _error_kind(settings, transport, **kwargs) -> ErrorKind:
    with pytest.raises(RouteError) as exc_info:
        _fetch(settings, transport, **kwargs)
    return exc_info.value.kind


def test_request_parameters(test_settings, make_transport, recorded_requests) -> None:
    body = directions_body([walk_step(), transit_step()])
    itineraries = _fetch(test_settings, make_transport(body))

    assert len(itineraries) == 1
    assert len(recorded_requests) == 1
    request = recorded_requests[0]
    assert request.method == "GET"
    assert request.url.host == "directions.test"
    params = request.url.params
    assert params["origin"] == "Union Station"
    assert params["destination"] == "Downtown"
    assert params["mode"] == "transit"
    assert params["transit_mode"] == "bus"
    assert params["arrival_time"] == "1735740000"
    assert params["transit_routing_preference"] == ""
    assert params["alternatives"] == "true"
    assert params["key"] == "test-key"


@pytest.mark.parametrize(
    "preference,expected",
    [(Preference.LESS_WALKING, "less_walking"), (Preference.FEWER_TRANSFERS, "fewer_transfers")],
)
def test_preference_hint(test_settings, make_transport, recorded_requests, preference, expected) -> None:
    _fetch(test_settings, make_transport(directions_body([transit_step()])), preference=preference)
    assert recorded_requests[0].url.params["transit_routing_preference"] == expected


def test_invalid_input_makes_no_call(test_settings, make_transport, recorded_requests) -> None:
    transport = make_transport(directions_body([transit_step()]))
    assert _error_kind(test_settings, transport, origin="") is ErrorKind.INVALID_ORIGIN
    assert _error_kind(test_settings, transport, destination=" ") is ErrorKind.INVALID_DESTINATION
    assert _error_kind(test_settings, transport, arrival="half past nine") is ErrorKind.INVALID_TIME
    assert recorded_requests == []


@pytest.mark.parametrize(
    "status,kind",
    [
        ("ZERO_RESULTS", ErrorKind.NO_ROUTES),
        ("INVALID_REQUEST", ErrorKind.INVALID_REQUEST),
        ("REQUEST_DENIED", ErrorKind.AUTH_ERROR),
        ("OVER_QUERY_LIMIT", ErrorKind.INVALID_RESPONSE),
    ],
)
def test_provider_status(test_settings, make_transport, status, kind) -> None:
    transport = make_transport({"status": status, "routes": []})
    assert _error_kind(test_settings, transport) is kind


@pytest.mark.parametrize(
    "body",
    [
        {"status": "OK"},
        {"status": "OK", "routes": [{"legs": []}]},
        {"status": "OK", "routes": [{"legs": [{"distance": {}}]}]},
        {"status": "OK", "routes": [{"legs": [{"steps": [{"travel_mode": "TRANSIT", "duration": {"text": "3 mins"}}]}]}]},
        ["not", "an", "object"],
    ],
)
def test_malformed_body(test_settings, make_transport, body) -> None:
    assert _error_kind(test_settings, make_transport(body)) is ErrorKind.INVALID_RESPONSE


def test_non_json_body(test_settings) -> None:
    transport = httpx.MockTransport(lambda request: httpx.Response(200, text="<html>oops</html>"))
    assert _error_kind(test_settings, transport) is ErrorKind.INVALID_RESPONSE


def test_timeout(test_settings, make_transport) -> None:
    transport = make_transport(exc=httpx.ReadTimeout("timed out"))
    with pytest.raises(RouteError) as exc_info:
        _fetch(test_settings, transport)
    assert exc_info.value.kind is ErrorKind.TIMEOUT
    assert exc_info.value.status_code == 504


def test_forbidden(test_settings, make_transport) -> None:
    with pytest.raises(RouteError) as exc_info:
        _fetch(test_settings, make_transport({"error_message": "bad key"}, status_code=403))
    assert exc_info.value.kind is ErrorKind.AUTH_ERROR
    assert exc_info.value.status_code == 403


def test_server_error_is_internal(test_settings, make_transport, recorded_requests) -> None:
    assert _error_kind(test_settings, make_transport({}, status_code=502)) is ErrorKind.INTERNAL
    assert len(recorded_requests) == 1  # no retry


def test_connection_error_is_internal(test_settings, make_transport) -> None:
    transport = make_transport(exc=httpx.ConnectError("connection refused"))
    assert _error_kind(test_settings, transport) is ErrorKind.INTERNAL


def test_parse_keeps_every_alternative() -> None:
    body = directions_body([walk_step(), transit_step(bus="12")], [walk_step("30 mins")])
    itineraries = parse_directions_payload(body)
    assert len(itineraries) == 2
    assert itineraries[1].steps[0].is_pure_walk


class _TrickleStream(httpx.AsyncByteStream):
    """A body that arrives one byte at a time, each byte well inside the read timeout."""

    def __init__(self, body: bytes, delay: float):
        self.body = body
        self.delay = delay

    async def __aiter__(self):
        for byte in self.body:
            await asyncio.sleep(self.delay)
            yield bytes([byte])


class _SlowTransport(httpx.AsyncBaseTransport):
    def __init__(self, header_delay: float, byte_delay: float):
        self.header_delay = header_delay
        self.byte_delay = byte_delay

    async def handle_async_request(self, request: httpx.Request) -> httpx.Response:
        await asyncio.sleep(self.header_delay)
        return httpx.Response(
            200,
            headers={"Content-Type": "application/json"},
            stream=_TrickleStream(b'{"status": "ZERO_RESULTS", "routes": []}', self.byte_delay),
        )


def test_slow_body_hits_overall_deadline(test_settings) -> None:
    """Headers and each byte arrive within the timeout, the whole call does not."""
    config = test_settings.model_copy(update={"REQUEST_TIMEOUT_SECONDS": 0.5})
    transport = _SlowTransport(header_delay=0.3, byte_delay=0.05)

    started = time.monotonic()
    with pytest.raises(RouteError) as exc_info:
        _fetch(config, transport)
    elapsed = time.monotonic() - started

    assert exc_info.value.kind is ErrorKind.TIMEOUT
    assert exc_info.value.status_code == 504
    assert elapsed < 1.5
