"""SQLModel models for message persistence.

Schema design:
- Table names: snake_case plural (messages)
- Column names: snake_case
- A conversation is identified by ``conversation_id`` only; there is no
  separate conversations table.
"""

from datetime import datetime, timezone
from uuid import uuid4

from sqlmodel import Field, SQLModel


def generate_id() -> str:
    """Generate a UUID-based ID for database records."""
    return str(uuid4())


def utc_now() -> datetime:
    """Get current UTC datetime."""
    return datetime.now(timezone.utc)


class Message(SQLModel, table=True):
    """A single chat message in a conversation.

    Exactly one of ``text`` or ``audio_ref`` is set. Rows are never updated
    after insert; the only destructive operation is deleting a whole
    conversation.

    Attributes:
        id: UUID-based primary key
        conversation_id: Conversation the message belongs to
        seq: Store-assigned commit sequence number, defines message order
        sender_id: User identifier or the AI sender sentinel
        sender_display_name: Sender name at the time of writing
        sender_avatar_ref: Sender avatar URL at the time of writing
        text: Text body
        audio_ref: URL of an uploaded audio recording
        audio_duration_ms: Duration of the audio recording in milliseconds
        is_ai_generated: True iff the message was written by the AI companion
        created_at: Commit time assigned by the store
    """

    __tablename__ = "messages"
    __table_args__ = {"extend_existing": True}

    id: str = Field(default_factory=generate_id, primary_key=True)
    conversation_id: str = Field(index=True)
    seq: int = Field(default=0, index=True)
    sender_id: str
    sender_display_name: str
    sender_avatar_ref: str | None = None
    text: str | None = None
    audio_ref: str | None = None
    audio_duration_ms: int | None = None
    is_ai_generated: bool = False
    created_at: datetime | None = Field(default=None, index=True)
