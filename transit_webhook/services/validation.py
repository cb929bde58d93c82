from transit_webhook.errors import ErrorKind, RouteError


def validate_endpoints(origin: str, destination: str) -> None:
    if not (origin or "").strip():
        raise RouteError(ErrorKind.INVALID_ORIGIN, "origin is required")
    if not (destination or "").strip():
        raise RouteError(ErrorKind.INVALID_DESTINATION, "destination is required")
