"""Async message store adapter with live snapshot subscriptions.

Wraps the SQLModel repository. Every mutation of a conversation wakes the
subscriptions watching it; each subscription then yields one full, ordered
snapshot of the conversation's newest messages. Messages that are still being
written show up with a ``Pending`` timestamp until the commit lands.
"""

import asyncio
import threading

from sqlalchemy.engine import Engine
from sqlalchemy.exc import SQLAlchemyError
from sqlmodel import Session

from vent_ai.core.errors import StoreReadError, StoreWriteError
from vent_ai.core.logging import get_logger
from vent_ai.db.models import generate_id
from vent_ai.db.repository import MessageRepository
from vent_ai.store.types import AudioBody, MessageDraft, Snapshot, StoredMessage, TextBody

logger = get_logger(__name__)


class Subscription:
    """Cancellable stream of snapshots for one conversation.

    Iterate with ``async for``. The first snapshot is the current state;
    later snapshots follow store mutations, coalesced so that a slow consumer
    only ever sees the latest state. ``close()`` is synchronous and ends the
    iteration.
    """

    def __init__(self, store: "MessageStore", conversation_id: str, limit: int) -> None:
        self.conversation_id = conversation_id
        self.limit = limit
        self._store = store
        self._changed = asyncio.Event()
        self._changed.set()
        self._closed = False

    @property
    def closed(self) -> bool:
        return self._closed

    def notify(self) -> None:
        """Mark the conversation as changed."""
        self._changed.set()

    def close(self) -> None:
        """Stop the stream and detach from the store. Safe to call twice."""
        if self._closed:
            return
        self._closed = True
        self._store._unregister(self)
        self._changed.set()
        logger.debug("subscription_closed", conversation_id=self.conversation_id)

    def __aiter__(self) -> "Subscription":
        return self

    async def __anext__(self) -> Snapshot:
        await self._changed.wait()
        if self._closed:
            raise StopAsyncIteration
        self._changed.clear()
        try:
            return await self._store.snapshot(self.conversation_id, self.limit)
        except StoreReadError:
            self.close()
            raise


class MessageStore:
    """Append-only message store with live subscriptions."""

    def __init__(self, engine: Engine) -> None:
        """Initialize the store.

        Args:
            engine: SQLAlchemy engine with the messages table created.
        """
        self.engine = engine
        # Serializes sequence number assignment across worker threads.
        self._write_lock = threading.Lock()
        self._subscriptions: dict[str, set[Subscription]] = {}
        self._pending: dict[str, dict[str, StoredMessage]] = {}

    async def append(self, draft: MessageDraft) -> str:
        """Append one message.

        Subscribers see the message immediately as pending and again with its
        resolved timestamp once the write is committed.

        Args:
            draft: The message to write.

        Returns:
            The ID assigned to the message.

        Raises:
            StoreWriteError: If the write is rejected.
        """
        message_id = generate_id()
        conversation_id = draft.conversation_id
        self._pending.setdefault(conversation_id, {})[message_id] = StoredMessage.from_draft(
            message_id, draft
        )
        self._notify(conversation_id)

        try:
            stored = await asyncio.to_thread(self._insert, message_id, draft)
        except SQLAlchemyError as e:
            logger.error(
                "message_append_failed",
                conversation_id=conversation_id,
                error=str(e),
            )
            raise StoreWriteError(f"Failed to save message: {e}") from e
        finally:
            pending = self._pending[conversation_id]
            pending.pop(message_id, None)
            if not pending:
                del self._pending[conversation_id]
            self._notify(conversation_id)

        logger.info(
            "message_appended",
            message_id=stored.id,
            conversation_id=conversation_id,
            is_ai=draft.is_ai_generated,
        )
        return stored.id

    def subscribe(self, conversation_id: str, limit: int = 50) -> Subscription:
        """Open a live subscription to the newest ``limit`` messages.

        Args:
            conversation_id: Conversation to watch.
            limit: Size of the snapshot window.

        Returns:
            A Subscription; iterate it for snapshots and close it when done.
        """
        subscription = Subscription(self, conversation_id, limit)
        self._subscriptions.setdefault(conversation_id, set()).add(subscription)
        logger.debug("subscription_opened", conversation_id=conversation_id, limit=limit)
        return subscription

    async def snapshot(self, conversation_id: str, limit: int = 50) -> Snapshot:
        """Get the newest ``limit`` messages of a conversation, oldest first.

        Raises:
            StoreReadError: If the query fails.
        """
        try:
            rows = await asyncio.to_thread(self._query, conversation_id, limit)
        except SQLAlchemyError as e:
            logger.error("snapshot_query_failed", conversation_id=conversation_id, error=str(e))
            raise StoreReadError(f"Failed to load messages: {e}") from e

        committed = list(reversed(rows))
        committed_ids = {message.id for message in committed}
        pending = [
            message
            for message in self._pending.get(conversation_id, {}).values()
            if message.id not in committed_ids
        ]
        messages = (committed + pending)[-limit:]
        return Snapshot(conversation_id, tuple(messages))

    async def delete_by_conversation(self, conversation_id: str) -> int:
        """Delete every message of a conversation.

        Returns:
            Number of deleted messages.

        Raises:
            StoreWriteError: If the delete fails.
        """
        try:
            deleted = await asyncio.to_thread(self._delete, conversation_id)
        except SQLAlchemyError as e:
            logger.error(
                "conversation_delete_failed",
                conversation_id=conversation_id,
                error=str(e),
            )
            raise StoreWriteError(f"Failed to clear conversation: {e}") from e

        self._notify(conversation_id)
        logger.info("conversation_cleared", conversation_id=conversation_id, deleted=deleted)
        return deleted

    def close(self) -> None:
        """Close all subscriptions and release the engine."""
        for subscriptions in list(self._subscriptions.values()):
            for subscription in list(subscriptions):
                subscription.close()
        self.engine.dispose()

    def subscriber_count(self, conversation_id: str) -> int:
        return len(self._subscriptions.get(conversation_id, ()))

    def _notify(self, conversation_id: str) -> None:
        for subscription in self._subscriptions.get(conversation_id, ()):
            subscription.notify()

    def _unregister(self, subscription: Subscription) -> None:
        subscriptions = self._subscriptions.get(subscription.conversation_id)
        if subscriptions is not None:
            subscriptions.discard(subscription)
            if not subscriptions:
                del self._subscriptions[subscription.conversation_id]

    def _insert(self, message_id: str, draft: MessageDraft) -> StoredMessage:
        body = draft.body
        with self._write_lock, Session(self.engine) as session:
            row = MessageRepository(session).create(
                conversation_id=draft.conversation_id,
                sender_id=draft.sender.id,
                sender_display_name=draft.sender.display_name,
                sender_avatar_ref=draft.sender.avatar_ref,
                text=body.text if isinstance(body, TextBody) else None,
                audio_ref=body.ref if isinstance(body, AudioBody) else None,
                audio_duration_ms=body.duration_ms if isinstance(body, AudioBody) else None,
                is_ai_generated=draft.is_ai_generated,
                message_id=message_id,
            )
            return StoredMessage.from_row(row)

    def _query(self, conversation_id: str, limit: int) -> list[StoredMessage]:
        with Session(self.engine) as session:
            rows = MessageRepository(session).list_recent(conversation_id, limit)
            return [StoredMessage.from_row(row) for row in rows]

    def _delete(self, conversation_id: str) -> int:
        with self._write_lock, Session(self.engine) as session:
            return MessageRepository(session).delete_by_conversation(conversation_id)
