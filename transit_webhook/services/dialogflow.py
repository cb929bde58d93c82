from __future__ import annotations
import logging
from typing import Any, Optional

import httpx

from transit_webhook.config import Settings, settings
from transit_webhook.utils.http import get_async_http_client

logger = logging.getLogger(__name__)

DETECT_INTENT_URL = "https://dialogflow.googleapis.com/v2/projects/{project}/agent/sessions/{session}:detectIntent"
NOT_UNDERSTOOD = "Sorry, I didn't understand that."
CHATBOT_UNAVAILABLE = "There was an error communicating with the chatbot."


def reply_from_query_result(query_result: Any) -> str:
    """Pick the text to speak from a detectIntent queryResult. Raises ValueError when it is not an object."""
    if not isinstance(query_result, dict):
        raise ValueError("queryResult is not an object")
    messages = query_result.get("fulfillmentMessages")
    for message in messages if isinstance(messages, list) else []:
        # non-text messages (payloads, cards) are skipped
        text = message.get("text") if isinstance(message, dict) else None
        texts = text.get("text") if isinstance(text, dict) else None
        if isinstance(texts, list) and texts and isinstance(texts[0], str):
            return texts[0]
    fulfillment_text = query_result.get("fulfillmentText")
    if isinstance(fulfillment_text, str) and fulfillment_text:
        return fulfillment_text
    return NOT_UNDERSTOOD


async def detect_intent(
    text: str,
    session_id: str,
    *,
    config: Optional[Settings] = None,
    transport: Optional[httpx.AsyncBaseTransport] = None,
) -> str:
    """
    Send one user utterance to the Dialogflow agent and return the text it
    wants spoken back (usually produced by our own /webhook).
    """
    config = config or settings
    url = DETECT_INTENT_URL.format(project=config.DIALOGFLOW_PROJECT_ID, session=session_id)
    body = {"queryInput": {"text": {"text": text, "languageCode": config.DIALOGFLOW_LANGUAGE_CODE}}}
    headers = {
        "Authorization": f"Bearer {config.DIALOGFLOW_ACCESS_TOKEN}",
        "Content-Type": "application/json; charset=utf-8",
        "x-goog-user-project": config.DIALOGFLOW_PROJECT_ID or "",
    }
    try:
        async with get_async_http_client(timeout=config.REQUEST_TIMEOUT_SECONDS, transport=transport) as client:
            r = await client.post(url, json=body, headers=headers)
            r.raise_for_status()
            data = r.json()
        if not isinstance(data, dict):
            raise ValueError("detectIntent body is not an object")
        return reply_from_query_result(data.get("queryResult") or {})
    except (httpx.HTTPError, ValueError) as e:
        logger.error("Dialogflow detectIntent failed: %s", e)
        return CHATBOT_UNAVAILABLE
