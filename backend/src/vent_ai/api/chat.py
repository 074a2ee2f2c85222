"""Stateless chat endpoint backed by the AI oracle."""

from typing import Any

from fastapi import APIRouter, Depends, Request
from fastapi.responses import JSONResponse

from vent_ai.api.deps import get_app_settings, get_oracle
from vent_ai.api.schemas import ChatReplyResponse
from vent_ai.core.config import Settings
from vent_ai.core.errors import (
    OracleEmptyReplyError,
    OracleError,
    OracleRejectedError,
    ValidationError,
)
from vent_ai.core.logging import get_logger
from vent_ai.oracle.base import BaseOracle, ChatTurn

router = APIRouter()
logger = get_logger(__name__)


def normalize_turns(messages: list[Any]) -> list[ChatTurn]:
    """Coerce client-supplied history items into chat turns.

    Any role other than "user" is treated as the assistant; content falls
    back to a ``text`` field, then to an empty string.

    Raises:
        ValidationError: If an item is not an object.
    """
    turns: list[ChatTurn] = []
    for index, item in enumerate(messages):
        if not isinstance(item, dict):
            raise ValidationError(f"message {index} is not an object")
        role = "user" if item.get("role") == "user" else "assistant"
        content = item.get("content") or item.get("text") or ""
        turns.append(ChatTurn(role, str(content)))
    return turns


def _invalid_format() -> JSONResponse:
    return JSONResponse({"error": "Invalid messages format"}, status_code=400)


@router.post("/api/chat", response_model=ChatReplyResponse)
async def chat(
    request: Request,
    oracle: BaseOracle = Depends(get_oracle),
    settings: Settings = Depends(get_app_settings),
) -> JSONResponse:
    """Get one AI reply for a client-held history.

    Request body: ``{"messages": [{"role": ..., "content": ...}, ...]}``.

    Returns:
        ``{"message": reply}`` on success, 400 for malformed input and 500
        with ``error``/``details`` when the oracle fails.
    """
    try:
        payload = await request.json()
    except ValueError:
        logger.warning("chat_invalid_json")
        return _invalid_format()

    messages = payload.get("messages") if isinstance(payload, dict) else None
    if not isinstance(messages, list):
        logger.warning("chat_invalid_messages", kind=type(messages).__name__)
        return _invalid_format()

    try:
        turns = normalize_turns(messages)
    except ValidationError as e:
        logger.warning("chat_invalid_message_item", error=str(e))
        return _invalid_format()

    logger.info("chat_request_received", message_count=len(turns))

    try:
        reply = await oracle.reply(turns, settings.system_prompt)
    except OracleRejectedError as e:
        return JSONResponse(
            {"error": "AI service error", "details": e.details, "status": e.status_code},
            status_code=500,
        )
    except OracleEmptyReplyError as e:
        return JSONResponse(
            {"error": "No response from AI", "details": str(e)}, status_code=500
        )
    except OracleError as e:
        return JSONResponse(
            {"error": "Failed to process request", "details": str(e)}, status_code=500
        )
    except Exception as e:
        logger.exception("chat_request_failed", error=str(e))
        return JSONResponse(
            {"error": "Failed to process request", "details": str(e)}, status_code=500
        )

    logger.info("chat_reply_sent", response_length=len(reply))
    return JSONResponse({"message": reply})
