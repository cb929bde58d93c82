from __future__ import annotations
import asyncio
import logging
from typing import Any, Dict, List, Optional

import httpx
from pydantic import ValidationError

from transit_webhook.config import Settings, settings
from transit_webhook.errors import ErrorKind, RouteError
from transit_webhook.models.schemas import Preference, RawItinerary
from transit_webhook.services.validation import validate_endpoints
from transit_webhook.utils.http import get_async_http_client
from transit_webhook.utils.time import to_epoch_seconds

logger = logging.getLogger(__name__)

# provider "status" values that are failures even with HTTP 200
_STATUS_ERRORS = {
    "ZERO_RESULTS": ErrorKind.NO_ROUTES,
    "INVALID_REQUEST": ErrorKind.INVALID_REQUEST,
    "REQUEST_DENIED": ErrorKind.AUTH_ERROR,
}


def build_directions_params(
    origin: str,
    destination: str,
    arrival_time: int,
    preference: Preference,
    api_key: Optional[str],
) -> Dict[str, Any]:
    params: Dict[str, Any] = {
        "origin": origin,
        "destination": destination,
        "mode": "transit",
        "transit_mode": "bus",
        "arrival_time": arrival_time,
        "transit_routing_preference": preference.value,
        "alternatives": "true",
    }
    if api_key:
        params["key"] = api_key
    return params


def parse_directions_payload(data: Any) -> List[RawItinerary]:
    """
    Turn a Directions API body into one RawItinerary per route, using the
    steps of the first leg. Raises RouteError for provider-reported failures
    and for bodies missing the routes/legs/steps structure.
    """
    if not isinstance(data, dict):
        raise RouteError(ErrorKind.INVALID_RESPONSE, "directions body is not an object")

    status = data.get("status")
    if status in _STATUS_ERRORS:
        raise RouteError(_STATUS_ERRORS[status], data.get("error_message") or status)

    routes = data.get("routes")
    if not isinstance(routes, list) or not routes:
        raise RouteError(ErrorKind.INVALID_RESPONSE, f"no routes in directions body (status={status})")

    itineraries: List[RawItinerary] = []
    for index, route in enumerate(routes):
        legs = route.get("legs") if isinstance(route, dict) else None
        if not isinstance(legs, list) or not legs or not isinstance(legs[0], dict):
            raise RouteError(ErrorKind.INVALID_RESPONSE, f"route {index} has no legs")
        steps = legs[0].get("steps")
        if not isinstance(steps, list):
            raise RouteError(ErrorKind.INVALID_RESPONSE, f"route {index} has no steps")
        try:
            itineraries.append(RawItinerary(steps=steps))
        except ValidationError as e:
            raise RouteError(ErrorKind.INVALID_RESPONSE, f"route {index} has malformed steps: {e}") from e
    return itineraries


async def _get_directions_body(
    config: Settings, params: Dict[str, Any], transport: Optional[httpx.AsyncBaseTransport]
) -> Any:
    async with get_async_http_client(timeout=config.REQUEST_TIMEOUT_SECONDS, transport=transport) as client:
        r = await client.get(config.DIRECTIONS_API_URL, params=params)
        r.raise_for_status()
        return r.json()


async def fetch_bus_itineraries(
    origin: str,
    destination: str,
    arrival_time_iso: Optional[str],
    preference: Preference = Preference.NONE,
    *,
    config: Optional[Settings] = None,
    transport: Optional[httpx.AsyncBaseTransport] = None,
) -> List[RawItinerary]:
    """
    Ask the Directions API for bus-only itineraries arriving by the given time.
    A single attempt is made; failures surface as RouteError.
    """
    config = config or settings
    validate_endpoints(origin, destination)
    arrival_time = to_epoch_seconds(arrival_time_iso)
    params = build_directions_params(origin, destination, arrival_time, preference, config.GOOGLE_MAPS_API_KEY)

    logger.info(
        "Fetching bus routes from %r to %r arriving by %s (preference=%r)",
        origin, destination, arrival_time, preference.value,
    )
    try:
        # per-phase httpx timeouts do not cap a body that trickles in; the deadline covers the whole call
        data = await asyncio.wait_for(
            _get_directions_body(config, params, transport), timeout=config.REQUEST_TIMEOUT_SECONDS
        )
    except (asyncio.TimeoutError, httpx.TimeoutException) as e:
        raise RouteError(ErrorKind.TIMEOUT, "directions request timed out") from e
    except httpx.HTTPStatusError as e:
        if e.response.status_code == 403:
            raise RouteError(ErrorKind.AUTH_ERROR, "directions API rejected the credentials") from e
        raise RouteError(ErrorKind.INTERNAL, f"directions API answered {e.response.status_code}") from e
    except httpx.HTTPError as e:
        raise RouteError(ErrorKind.INTERNAL, f"directions request failed: {e}") from e
    except ValueError as e:
        raise RouteError(ErrorKind.INVALID_RESPONSE, "directions body is not JSON") from e

    itineraries = parse_directions_payload(data)
    logger.info("Directions API returned %d itineraries", len(itineraries))
    return itineraries
