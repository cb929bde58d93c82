import httpx
from transit_webhook.config import settings

USER_AGENT = "transit-webhook/1.0"


def get_async_http_client(
    timeout: float | None = None,
    transport: httpx.AsyncBaseTransport | None = None,
) -> httpx.AsyncClient:
    return httpx.AsyncClient(
        timeout=timeout or settings.REQUEST_TIMEOUT_SECONDS,
        headers={"User-Agent": USER_AGENT},
        transport=transport,
    )
