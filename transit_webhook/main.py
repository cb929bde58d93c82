from __future__ import annotations
import logging
from typing import Optional

import httpx
from fastapi import Depends, FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import Response
import orjson
from pydantic import ValidationError

from transit_webhook.config import Settings, settings
from transit_webhook.models.schemas import ChatRequest, ChatResponse, WebhookRequest
from transit_webhook.services.dialogflow import detect_intent
from transit_webhook.services.dispatcher import WebhookReply, fallback_text, handle_webhook

logger = logging.getLogger(__name__)


def _json_response(obj, status_code: int = 200) -> Response:
    return Response(content=orjson.dumps(obj), status_code=status_code, media_type="application/json")


def setup_logging(level: str) -> None:
    logging.basicConfig(
        level=getattr(logging, level.upper(), logging.INFO),
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    )


setup_logging(settings.LOG_LEVEL)

app = FastAPI(title="Bus Route Webhook", version="0.1.0")
app.add_middleware(
    CORSMiddleware,
    allow_origins=[o.strip() for o in settings.CORS_ALLOW_ORIGINS.split(",") if o.strip()] or ["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


def get_settings() -> Settings:
    return settings


def get_transport() -> Optional[httpx.AsyncBaseTransport]:
    # overridden in tests to stub the outbound APIs
    return None


@app.get("/health")
def health():
    return {"status": "ok"}


@app.post("/webhook")
async def webhook(
    request: Request,
    config: Settings = Depends(get_settings),
    transport: Optional[httpx.AsyncBaseTransport] = Depends(get_transport),
):
    try:
        body = await request.json()
        req = WebhookRequest.model_validate(body)
    except (ValueError, ValidationError) as e:
        logger.warning("Unreadable webhook body: %s", e)
        reply = WebhookReply(200, fallback_text(None))
    else:
        reply = await handle_webhook(req, config=config, transport=transport)
    return _json_response(reply.to_response().model_dump(), reply.status_code)


@app.post("/chat", response_model=ChatResponse)
async def chat(
    req: ChatRequest,
    config: Settings = Depends(get_settings),
    transport: Optional[httpx.AsyncBaseTransport] = Depends(get_transport),
):
    reply = await detect_intent(req.text, req.session_id, config=config, transport=transport)
    return ChatResponse(reply=reply)
