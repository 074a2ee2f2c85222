"""Unit tests for message store domain types."""

from datetime import datetime, timezone

import pytest

from vent_ai.core.errors import ValidationError
from vent_ai.db.models import Message
from vent_ai.store.types import (
    PENDING,
    AudioBody,
    MessageDraft,
    Pending,
    Resolved,
    Sender,
    Snapshot,
    StoredMessage,
    TextBody,
    make_body,
    resolve_timestamp,
)


class TestMakeBody:
    """Tests for make_body."""

    def test_text_body(self):
        assert make_body(text="hi") == TextBody("hi")

    def test_audio_body(self):
        body = make_body(audio_ref="https://cdn.test/a.webm", audio_duration_ms=1500)
        assert body == AudioBody("https://cdn.test/a.webm", 1500)

    def test_rejects_neither(self):
        with pytest.raises(ValidationError):
            make_body()

    def test_rejects_both(self):
        with pytest.raises(ValidationError):
            make_body(text="hi", audio_ref="https://cdn.test/a.webm", audio_duration_ms=1)

    def test_audio_requires_duration(self):
        with pytest.raises(ValidationError):
            make_body(audio_ref="https://cdn.test/a.webm")


class TestResolveTimestamp:
    """Tests for resolve_timestamp."""

    def test_none_is_pending(self):
        assert resolve_timestamp(None) is PENDING
        assert isinstance(resolve_timestamp(None), Pending)

    def test_naive_datetime_is_utc(self):
        naive = datetime(2024, 1, 2, 3, 4, 5)
        result = resolve_timestamp(naive)
        assert isinstance(result, Resolved)
        assert result.at.tzinfo == timezone.utc
        assert result.at.replace(tzinfo=None) == naive

    def test_aware_datetime_kept(self):
        aware = datetime(2024, 1, 2, tzinfo=timezone.utc)
        assert resolve_timestamp(aware) == Resolved(aware)


class TestStoredMessage:
    """Tests for StoredMessage conversions."""

    def test_from_row(self):
        row = Message(
            id="m1",
            conversation_id="c1",
            seq=3,
            sender_id="vent-ai",
            sender_display_name="Vent-AI",
            sender_avatar_ref="/ai-avatar.png",
            text="Hello",
            is_ai_generated=True,
            created_at=datetime(2024, 1, 1, tzinfo=timezone.utc),
        )
        message = StoredMessage.from_row(row)
        assert message.id == "m1"
        assert message.sender == Sender("vent-ai", "Vent-AI", "/ai-avatar.png")
        assert message.text == "Hello"
        assert message.is_ai_generated
        assert message.seq == 3
        assert not message.is_pending

    def test_from_row_without_timestamp_is_pending(self):
        row = Message(conversation_id="c1", sender_id="u1", sender_display_name="Ann", text="x")
        assert StoredMessage.from_row(row).is_pending

    def test_from_draft_is_pending(self):
        draft = MessageDraft("c1", Sender("u1", "Ann"), AudioBody("https://cdn.test/a", 10))
        message = StoredMessage.from_draft("m9", draft)
        assert message.id == "m9"
        assert message.is_pending
        assert message.text is None


def test_snapshot_pending_writes():
    resolved = StoredMessage(
        "m1", "c1", Sender("u1", "Ann"), TextBody("a"), False,
        Resolved(datetime(2024, 1, 1, tzinfo=timezone.utc)),
    )
    pending = StoredMessage("m2", "c1", Sender("u1", "Ann"), TextBody("b"), False, PENDING)

    assert not Snapshot("c1", (resolved,)).has_pending_writes
    assert Snapshot("c1", (resolved, pending)).has_pending_writes
    assert len(Snapshot("c1")) == 0
