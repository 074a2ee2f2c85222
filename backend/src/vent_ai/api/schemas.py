"""Request and response models shared by the HTTP and WebSocket routes."""

from datetime import datetime

from pydantic import BaseModel

from vent_ai.store.types import AudioBody, Resolved, StoredMessage, TextBody


class MessageResponse(BaseModel):
    """Response model for a message."""

    id: str
    conversation_id: str
    sender_id: str
    sender_name: str
    sender_photo: str | None
    text: str | None
    audio_url: str | None
    audio_duration_ms: int | None
    is_ai: bool
    created_at: datetime | None
    pending: bool

    @classmethod
    def from_stored(cls, message: StoredMessage) -> "MessageResponse":
        """Build the response model from a store message.

        Pending messages have no ``created_at`` yet.
        """
        body = message.body
        return cls(
            id=message.id,
            conversation_id=message.conversation_id,
            sender_id=message.sender.id,
            sender_name=message.sender.display_name,
            sender_photo=message.sender.avatar_ref,
            text=body.text if isinstance(body, TextBody) else None,
            audio_url=body.ref if isinstance(body, AudioBody) else None,
            audio_duration_ms=body.duration_ms if isinstance(body, AudioBody) else None,
            is_ai=message.is_ai_generated,
            created_at=(
                message.created_at.at if isinstance(message.created_at, Resolved) else None
            ),
            pending=message.is_pending,
        )


class MessageListResponse(BaseModel):
    """Response model for a conversation's message window."""

    conversation_id: str
    messages: list[MessageResponse]


class ClearResponse(BaseModel):
    """Response model for a cleared conversation."""

    conversation_id: str
    deleted: int


class ChatReplyResponse(BaseModel):
    """Response model for a chat reply."""

    message: str
