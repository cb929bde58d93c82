from __future__ import annotations
from enum import Enum
from typing import Dict, Tuple


class ErrorKind(str, Enum):
    INVALID_ORIGIN = "INVALID_ORIGIN"
    INVALID_DESTINATION = "INVALID_DESTINATION"
    INVALID_TIME = "INVALID_TIME"
    INVALID_PARAMETERS = "INVALID_PARAMETERS"
    NO_ROUTES = "NO_ROUTES"
    INVALID_REQUEST = "INVALID_REQUEST"
    INVALID_RESPONSE = "INVALID_RESPONSE"
    NO_ROUTE_CONTEXT = "NO_ROUTE_CONTEXT"
    TIMEOUT = "TIMEOUT"
    AUTH_ERROR = "AUTH_ERROR"
    INTERNAL = "INTERNAL"
    UNKNOWN = "UNKNOWN"


# kind -> (HTTP status, sentence spoken back to the user)
ERROR_REPLIES: Dict[ErrorKind, Tuple[int, str]] = {
    ErrorKind.INVALID_ORIGIN: (400, "Please provide a valid origin."),
    ErrorKind.INVALID_DESTINATION: (400, "Please provide a valid destination."),
    ErrorKind.INVALID_TIME: (400, "Please provide a valid arrival time."),
    ErrorKind.INVALID_PARAMETERS: (
        400,
        "Sorry, I couldn't understand the details of that request. Could you rephrase it?",
    ),
    ErrorKind.NO_ROUTES: (400, "No routes found. Try a different time or destination."),
    ErrorKind.INVALID_REQUEST: (400, "I couldn't plan that trip. Please check the origin and destination."),
    ErrorKind.INVALID_RESPONSE: (400, "The route service returned incomplete data. Please try again."),
    ErrorKind.NO_ROUTE_CONTEXT: (400, "Please ask for a route first, then I can adjust it."),
    ErrorKind.TIMEOUT: (504, "Request timed out. Please try again."),
    ErrorKind.AUTH_ERROR: (403, "Service temporarily unavailable."),
    ErrorKind.INTERNAL: (500, "An error occurred. Please try again later."),
    ErrorKind.UNKNOWN: (500, "An unexpected error occurred. Please try again."),
}


class RouteError(Exception):
    """A classified failure anywhere in the routing pipeline."""

    def __init__(self, kind: ErrorKind, detail: str = ""):
        super().__init__(detail or kind.value)
        self.kind = kind
        self.detail = detail

    @property
    def status_code(self) -> int:
        return ERROR_REPLIES[self.kind][0]

    @property
    def user_message(self) -> str:
        return ERROR_REPLIES[self.kind][1]
