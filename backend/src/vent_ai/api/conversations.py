"""REST endpoints for a conversation's stored messages."""

from fastapi import APIRouter, Depends, HTTPException, Query

from vent_ai.api.deps import get_store
from vent_ai.api.schemas import ClearResponse, MessageListResponse, MessageResponse
from vent_ai.core.errors import StoreReadError, StoreWriteError
from vent_ai.store.message_store import MessageStore

router = APIRouter(prefix="/api/v1/conversations")


@router.get("/{conversation_id}/messages")
async def list_messages(
    conversation_id: str,
    limit: int = Query(default=50, ge=1, le=100),
    store: MessageStore = Depends(get_store),
) -> MessageListResponse:
    """Get the newest messages of a conversation, oldest first.

    Args:
        conversation_id: The conversation ID.
        limit: Maximum number of messages (1-100, default: 50)

    Raises:
        HTTPException: If the store cannot be read (500).
    """
    try:
        snapshot = await store.snapshot(conversation_id, limit)
    except StoreReadError as e:
        raise HTTPException(status_code=500, detail=str(e)) from e

    return MessageListResponse(
        conversation_id=conversation_id,
        messages=[MessageResponse.from_stored(message) for message in snapshot.messages],
    )


@router.delete("/{conversation_id}/messages")
async def clear_messages(
    conversation_id: str,
    store: MessageStore = Depends(get_store),
) -> ClearResponse:
    """Delete every message of a conversation.

    Raises:
        HTTPException: If the delete fails (500).
    """
    try:
        deleted = await store.delete_by_conversation(conversation_id)
    except StoreWriteError as e:
        raise HTTPException(status_code=500, detail=str(e)) from e

    return ClearResponse(conversation_id=conversation_id, deleted=deleted)
