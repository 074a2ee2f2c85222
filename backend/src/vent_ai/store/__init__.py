"""Message store adapter and its domain types."""

from vent_ai.store.message_store import MessageStore, Subscription
from vent_ai.store.types import (
    PENDING,
    AudioBody,
    Body,
    MessageDraft,
    Pending,
    Resolved,
    Sender,
    Snapshot,
    StoredMessage,
    TextBody,
    Timestamp,
    make_body,
)

__all__ = [
    "MessageStore",
    "Subscription",
    "PENDING",
    "AudioBody",
    "Body",
    "MessageDraft",
    "Pending",
    "Resolved",
    "Sender",
    "Snapshot",
    "StoredMessage",
    "TextBody",
    "Timestamp",
    "make_body",
]
