"""Domain types exposed by the message store."""

from dataclasses import dataclass, field
from datetime import datetime, timezone

from vent_ai.core.errors import ValidationError
from vent_ai.db.models import Message


@dataclass(frozen=True)
class Pending:
    """Timestamp not yet assigned by the store."""


@dataclass(frozen=True)
class Resolved:
    """Timestamp assigned by the store at commit."""

    at: datetime


Timestamp = Pending | Resolved

PENDING = Pending()


def resolve_timestamp(value: datetime | None) -> Timestamp:
    """Translate a stored creation time into a Timestamp.

    SQLite drops timezone information, so naive values are read back as UTC.
    """
    if value is None:
        return PENDING
    if value.tzinfo is None:
        value = value.replace(tzinfo=timezone.utc)
    return Resolved(value)


@dataclass(frozen=True)
class TextBody:
    text: str


@dataclass(frozen=True)
class AudioBody:
    ref: str
    duration_ms: int


Body = TextBody | AudioBody


def make_body(
    text: str | None = None,
    audio_ref: str | None = None,
    audio_duration_ms: int | None = None,
) -> Body:
    """Build a message body, requiring exactly one of text or audio.

    Raises:
        ValidationError: If neither or both kinds of content are given.
    """
    has_text = text is not None
    has_audio = audio_ref is not None
    if has_text == has_audio:
        raise ValidationError("message body needs exactly one of text or audio")
    if has_text:
        return TextBody(text)  # type: ignore[arg-type]
    if audio_duration_ms is None or audio_duration_ms < 0:
        raise ValidationError("audio message needs a non-negative duration")
    return AudioBody(audio_ref, audio_duration_ms)  # type: ignore[arg-type]


@dataclass(frozen=True)
class Sender:
    """Who wrote a message, denormalized at write time."""

    id: str
    display_name: str
    avatar_ref: str | None = None


@dataclass(frozen=True)
class MessageDraft:
    """A message about to be appended to the store."""

    conversation_id: str
    sender: Sender
    body: Body
    is_ai_generated: bool = False


@dataclass(frozen=True)
class StoredMessage:
    """A message as seen through the store, possibly not yet committed."""

    id: str
    conversation_id: str
    sender: Sender
    body: Body
    is_ai_generated: bool
    created_at: Timestamp
    seq: int = 0

    @property
    def is_pending(self) -> bool:
        return isinstance(self.created_at, Pending)

    @property
    def text(self) -> str | None:
        return self.body.text if isinstance(self.body, TextBody) else None

    @classmethod
    def from_row(cls, row: Message) -> "StoredMessage":
        """Build a StoredMessage from a database row."""
        return cls(
            id=row.id,
            conversation_id=row.conversation_id,
            sender=Sender(row.sender_id, row.sender_display_name, row.sender_avatar_ref),
            body=make_body(row.text, row.audio_ref, row.audio_duration_ms),
            is_ai_generated=row.is_ai_generated,
            created_at=resolve_timestamp(row.created_at),
            seq=row.seq,
        )

    @classmethod
    def from_draft(cls, message_id: str, draft: MessageDraft) -> "StoredMessage":
        """Build the pending view of a draft that is being written."""
        return cls(
            id=message_id,
            conversation_id=draft.conversation_id,
            sender=draft.sender,
            body=draft.body,
            is_ai_generated=draft.is_ai_generated,
            created_at=PENDING,
        )


@dataclass(frozen=True)
class Snapshot:
    """Full ordered view of a conversation's newest messages, oldest first."""

    conversation_id: str
    messages: tuple[StoredMessage, ...] = field(default_factory=tuple)

    @property
    def has_pending_writes(self) -> bool:
        return any(message.is_pending for message in self.messages)

    def __len__(self) -> int:
        return len(self.messages)
