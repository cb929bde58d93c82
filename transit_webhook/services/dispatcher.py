from __future__ import annotations
import logging
from dataclasses import dataclass
from enum import Enum
from typing import Any, Dict, Optional

import httpx
from pydantic import ValidationError

from transit_webhook.config import Settings
from transit_webhook.errors import ERROR_REPLIES, ErrorKind, RouteError
from transit_webhook.models.schemas import (
    ContextKind,
    Preference,
    RouteParameters,
    RouteQuery,
    WebhookRequest,
    WebhookResponse,
)
from transit_webhook.services.directions import fetch_bus_itineraries
from transit_webhook.services.formatter import render_itineraries
from transit_webhook.services.itinerary import reduce_itineraries

logger = logging.getLogger(__name__)


class Intent(str, Enum):
    GET_ROUTE = "GET_route"
    ADJUST_FOR_WALKING = "adjust-for-walking"
    ADJUST_FOR_TRANSFERS = "adjust_for_transfers"


WALKING_FLAG = "walking"
TRANSFERS_FLAG = "transfers"
TRANSFERS_FLAG_ALIAS = "boolean"  # Dialogflow's default name for an unnamed @sys.boolean


@dataclass
class WebhookReply:
    status_code: int
    text: str

    def to_response(self) -> WebhookResponse:
        return WebhookResponse.from_text(self.text)


def fallback_text(intent_name: Optional[str]) -> str:
    return (
        f'I received your request but I\'m not sure how to help with "{intent_name or "unknown intent"}". '
        "Could you please rephrase your question?"
    )


def parse_route_parameters(parameters: Dict[str, Any]) -> RouteParameters:
    try:
        return RouteParameters.model_validate(parameters or {})
    except ValidationError as e:
        raise RouteError(ErrorKind.INVALID_PARAMETERS, f"malformed route parameters: {e}") from e


def parse_flag(value: Any) -> Optional[bool]:
    """Read a yes/no parameter. Returns None when the user gave no answer."""
    if value is None or value == "":
        return None
    if isinstance(value, bool):
        return value
    if isinstance(value, str) and value.strip().lower() in ("true", "false"):
        return value.strip().lower() == "true"
    raise RouteError(ErrorKind.INVALID_PARAMETERS, f"expected a boolean flag, got {value!r}")


def route_query_from_context(request: WebhookRequest, preference: Preference) -> RouteQuery:
    context = request.find_context(ContextKind.ROUTE_REQUESTED)
    if context is None:
        raise RouteError(ErrorKind.NO_ROUTE_CONTEXT, "no active route to adjust")
    params = parse_route_parameters(context.parameters)
    return RouteQuery(
        origin=params.origin,
        destination=params.destination,
        arrival_time_iso=params.arrival_time_iso,
        preference=preference,
    )


async def plan_routes(
    query: RouteQuery,
    config: Optional[Settings] = None,
    transport: Optional[httpx.AsyncBaseTransport] = None,
) -> str:
    """Fetch, reduce and render. An empty string means no itinerary had a bus to board."""
    raws = await fetch_bus_itineraries(
        query.origin,
        query.destination,
        query.arrival_time_iso,
        query.preference,
        config=config,
        transport=transport,
    )
    itineraries = reduce_itineraries(raws)
    if not itineraries:
        logger.info("No usable bus itineraries between %r and %r", query.origin, query.destination)
        return ""
    return render_itineraries(itineraries)


async def _initial_query(request: WebhookRequest, config, transport) -> Optional[str]:
    params = parse_route_parameters(request.queryResult.parameters)
    query = RouteQuery(
        origin=params.origin,
        destination=params.destination,
        arrival_time_iso=params.arrival_time_iso,
    )
    routes = await plan_routes(query, config, transport)
    if not routes:
        return None
    return (
        f"I found the following bus routes to {query.destination}:\n\n{routes}\n\n"
        "Would you like to walk less or make fewer transfers?"
    )


async def _adjust_for_walking(request: WebhookRequest, config, transport) -> Optional[str]:
    # "walking" answers "do you want to walk more?", so an absent flag means walk less
    walking = parse_flag(request.queryResult.parameters.get(WALKING_FLAG))
    prefer_less_walking = not walking
    preference = Preference.LESS_WALKING if prefer_less_walking else Preference.NONE
    query = route_query_from_context(request, preference)

    logger.info("Adjusting route, prefer_less_walking=%s", prefer_less_walking)
    routes = await plan_routes(query, config, transport)
    if not routes:
        return None
    adjustment = "to minimize walking" if prefer_less_walking else "without limiting walking"
    return f"I've adjusted the route {adjustment}:\n\n{routes}\n\nIs this route better for you?"


async def _adjust_for_transfers(request: WebhookRequest, config, transport) -> Optional[str]:
    parameters = request.queryResult.parameters
    raw_flag = parameters.get(TRANSFERS_FLAG, parameters.get(TRANSFERS_FLAG_ALIAS))
    # "transfers" answers "are more transfers fine?", so an absent flag means fewer transfers
    prefer_fewer_transfers = not parse_flag(raw_flag)
    preference = Preference.FEWER_TRANSFERS if prefer_fewer_transfers else Preference.NONE
    query = route_query_from_context(request, preference)

    logger.info("Adjusting route, prefer_fewer_transfers=%s", prefer_fewer_transfers)
    routes = await plan_routes(query, config, transport)
    if not routes:
        return None
    adjustment = "to minimize transfers" if prefer_fewer_transfers else "without limiting transfers"
    return f"I've adjusted the route {adjustment}:\n\n{routes}\n\nIs this route better for you?"


_HANDLERS = {
    Intent.GET_ROUTE.value: _initial_query,
    Intent.ADJUST_FOR_WALKING.value: _adjust_for_walking,
    Intent.ADJUST_FOR_TRANSFERS.value: _adjust_for_transfers,
}


async def handle_webhook(
    request: WebhookRequest,
    *,
    config: Optional[Settings] = None,
    transport: Optional[httpx.AsyncBaseTransport] = None,
) -> WebhookReply:
    """
    Answer one Dialogflow fulfillment call. Never raises: classified failures
    become their fixed sentence and status, anything else is reported as UNKNOWN.
    """
    intent_name = request.intent_name
    handler = _HANDLERS.get(intent_name or "")
    try:
        text = await handler(request, config, transport) if handler else None
    except RouteError as e:
        logger.warning("Intent %r failed with %s: %s", intent_name, e.kind.value, e.detail)
        return WebhookReply(e.status_code, e.user_message)
    except Exception:
        logger.exception("Unexpected error while handling intent %r", intent_name)
        status, message = ERROR_REPLIES[ErrorKind.UNKNOWN]
        return WebhookReply(status, message)

    if text is None:
        return WebhookReply(200, fallback_text(intent_name))
    return WebhookReply(200, text)
