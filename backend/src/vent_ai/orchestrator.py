"""Conversation orchestration between the message store and the AI oracle.

The orchestrator keeps two views of a conversation:

- ``live_messages``: what the store says, replaced wholesale by every
  snapshot of the live subscription. This is what gets displayed.
- ``chat_turns``: the oracle-facing history, appended locally by completed
  send cycles so that an oracle call never waits for the subscription to
  echo a write back.

The subscription task only writes ``live_messages``; ``send()`` only writes
``chat_turns``, ``pending`` and ``last_error``. ``pending`` guards the oracle
call so that at most one is in flight per orchestrator.
"""

import asyncio
from collections.abc import Awaitable, Callable
from dataclasses import dataclass
from typing import Any

from vent_ai.core.config import Settings
from vent_ai.core.errors import (
    OracleError,
    StoreReadError,
    StoreWriteError,
    VentAIError,
)
from vent_ai.core.logging import get_logger
from vent_ai.oracle.base import BaseOracle, ChatHistory, ChatTurn, project_turns
from vent_ai.store.message_store import MessageStore, Subscription
from vent_ai.store.types import (
    MessageDraft,
    Sender,
    Snapshot,
    StoredMessage,
    TextBody,
    make_body,
)

logger = get_logger(__name__)

Listener = Callable[[str], Awaitable[None]]


@dataclass(frozen=True)
class Identity:
    """The authenticated user driving the conversation."""

    user_id: str
    display_name: str
    avatar_ref: str | None = None

    def as_sender(self) -> Sender:
        return Sender(self.user_id, self.display_name, self.avatar_ref)


@dataclass(frozen=True)
class ErrorInfo:
    """Last failure, shown to the user until dismissed or the next send."""

    code: str
    message: str

    @classmethod
    def from_exception(cls, exc: VentAIError) -> "ErrorInfo":
        return cls(code=exc.code, message=str(exc))

    def to_dict(self) -> dict[str, str]:
        return {"code": self.code, "message": self.message}


class ConversationOrchestrator:
    """Owns the send protocol and the history of one user's conversation."""

    def __init__(
        self,
        store: MessageStore,
        oracle: BaseOracle,
        settings: Settings,
        identity: Identity | None = None,
    ) -> None:
        """Initialize the orchestrator.

        Args:
            store: Message store adapter.
            oracle: AI oracle client.
            settings: Application settings (window size, prompt, AI sender).
            identity: Authenticated user, if already known.
        """
        self.store = store
        self.oracle = oracle
        self.settings = settings
        self.identity = identity

        self.live_messages: list[StoredMessage] = []
        self.history = ChatHistory()
        self.pending = False
        self.last_error: ErrorInfo | None = None

        self._conversation_id: str | None = None
        self._subscription: Subscription | None = None
        self._consumer: asyncio.Task[None] | None = None
        self._seeded = False
        self._listeners: list[Listener] = []
        self._ai_sender = Sender(
            settings.ai_sender_id,
            settings.ai_display_name,
            settings.ai_avatar_ref,
        )

    async def __aenter__(self) -> "ConversationOrchestrator":
        return self

    async def __aexit__(self, *exc_info: object) -> None:
        self.close()

    @property
    def conversation_id(self) -> str | None:
        """Conversation in use: the subscribed one, else the user's own."""
        if self._conversation_id is not None:
            return self._conversation_id
        return self.identity.user_id if self.identity else None

    @property
    def chat_turns(self) -> list[ChatTurn]:
        return self.history.snapshot()

    @property
    def is_subscribed(self) -> bool:
        return self._subscription is not None and not self._subscription.closed

    def add_listener(self, listener: Listener) -> None:
        """Register an async callback called with "messages" or "state"."""
        self._listeners.append(listener)

    def remove_listener(self, listener: Listener) -> None:
        if listener in self._listeners:
            self._listeners.remove(listener)

    async def set_identity(
        self, identity: Identity | None, conversation_id: str | None = None
    ) -> None:
        """Switch the authenticated user and follow their conversation.

        Args:
            identity: New identity, or None on sign-out.
            conversation_id: Conversation to follow. Defaults to the user ID.
        """
        if identity is None:
            self.identity = None
            self.close()
            self._conversation_id = None
            self.live_messages = []
            self.history.clear()
            await self._emit("messages")
            return

        if self.identity is not None and self.identity.user_id != identity.user_id:
            self.history.clear()
        self.identity = identity
        await self.subscribe(conversation_id or identity.user_id)

    async def subscribe(self, conversation_id: str) -> None:
        """Follow the live snapshot stream of a conversation.

        Replaces any current subscription. The first snapshot is applied
        before this returns; later ones are applied by a background task.

        Args:
            conversation_id: Conversation to follow.
        """
        if conversation_id != self._conversation_id:
            self.history.clear()
        self.close()
        self._conversation_id = conversation_id
        self._seeded = False

        subscription = self.store.subscribe(conversation_id, self.settings.live_window)
        self._subscription = subscription
        logger.info("orchestrator_subscribed", conversation_id=conversation_id)

        try:
            first = await anext(subscription)
        except StoreReadError as e:
            self._fail(e)
            await self._emit("state")
            return
        except StopAsyncIteration:
            return

        if self._subscription is not subscription:
            # Replaced while waiting for the first snapshot.
            return
        await self._apply_snapshot(first)
        self._consumer = asyncio.create_task(self._consume(subscription))

    def close(self) -> None:
        """Release the live subscription. Safe to call repeatedly."""
        if self._subscription is not None:
            self._subscription.close()
            self._subscription = None
        if self._consumer is not None:
            self._consumer.cancel()
            self._consumer = None

    async def send(self, text: str) -> bool:
        """Run one send cycle: persist, ask the oracle, persist the reply.

        A blank text, a send already in flight or a missing identity make
        this a no-op. Failures never raise; they are stored in
        ``last_error`` and stop the cycle without undoing earlier steps.

        Args:
            text: User input.

        Returns:
            True if the oracle produced a reply.
        """
        message = text.strip()
        if not message or self.pending or self.identity is None:
            logger.debug(
                "send_skipped",
                blank=not message,
                pending=self.pending,
                authenticated=self.identity is not None,
            )
            return False

        conversation_id = self.conversation_id
        if conversation_id is None:
            return False
        self.pending = True
        self.last_error = None

        try:
            await self._emit("state")

            try:
                await self.store.append(
                    MessageDraft(conversation_id, self.identity.as_sender(), TextBody(message))
                )
            except StoreWriteError as e:
                self._fail(e)
                return False

            self.history.add_user_turn(message)

            try:
                reply = await self.oracle.reply(
                    self.history.snapshot(), self.settings.system_prompt
                )
            except OracleError as e:
                self._fail(e)
                return False

            try:
                await self.store.append(
                    MessageDraft(
                        conversation_id,
                        self._ai_sender,
                        TextBody(reply),
                        is_ai_generated=True,
                    )
                )
            except StoreWriteError as e:
                # The reply already reached the user; only persistence is lost.
                self._fail(e)

            self.history.add_assistant_turn(reply)
            logger.info(
                "send_cycle_completed",
                conversation_id=conversation_id,
                turns=len(self.history),
            )
            return True
        finally:
            self.pending = False
            await self._emit("state")

    async def send_voice(self, audio_ref: str, duration_ms: int) -> bool:
        """Persist a voice message that was already uploaded.

        Voice messages do not go to the oracle.

        Raises:
            ValidationError: If the audio reference or duration is invalid.
        """
        if self.identity is None:
            return False
        if not audio_ref.strip():
            return False

        body = make_body(audio_ref=audio_ref, audio_duration_ms=duration_ms)
        conversation_id = self.conversation_id
        if conversation_id is None:
            return False
        try:
            await self.store.append(
                MessageDraft(conversation_id, self.identity.as_sender(), body)
            )
        except StoreWriteError as e:
            self._fail(e)
            await self._emit("state")
            return False
        return True

    async def clear_history(self) -> int:
        """Delete the whole conversation from the store.

        Local history is reset only after the store confirms; the displayed
        messages follow through the live subscription.

        Returns:
            Number of deleted messages.

        Raises:
            StoreWriteError: If the delete fails. Local state is unchanged.
        """
        conversation_id = self.conversation_id
        if conversation_id is None:
            return 0

        deleted = await self.store.delete_by_conversation(conversation_id)
        self.history.clear()
        logger.info("history_cleared", conversation_id=conversation_id, deleted=deleted)
        await self._emit("state")
        return deleted

    def dismiss_error(self) -> None:
        self.last_error = None

    def state(self) -> dict[str, Any]:
        """Get the UI-facing send state."""
        return {
            "pending": self.pending,
            "error": self.last_error.to_dict() if self.last_error else None,
            "turns": len(self.history),
        }

    async def _consume(self, subscription: Subscription) -> None:
        try:
            async for snapshot in subscription:
                await self._apply_snapshot(snapshot)
        except StoreReadError as e:
            self._fail(e)
            await self._emit("state")

    async def _apply_snapshot(self, snapshot: Snapshot) -> None:
        self.live_messages = list(snapshot.messages)
        if not self._seeded:
            self._seeded = True
            if not len(self.history) and not self.pending:
                self.history.replace(
                    project_turns(
                        snapshot.messages,
                        audio_placeholder=self.settings.audio_placeholder,
                    )
                )
        logger.debug(
            "snapshot_applied",
            conversation_id=snapshot.conversation_id,
            messages=len(snapshot),
            pending_writes=snapshot.has_pending_writes,
        )
        await self._emit("messages")

    def _fail(self, exc: VentAIError) -> None:
        self.last_error = ErrorInfo.from_exception(exc)
        logger.warning(
            "orchestrator_error",
            conversation_id=self.conversation_id,
            code=exc.code,
            error=str(exc),
        )

    async def _emit(self, event: str) -> None:
        for listener in list(self._listeners):
            try:
                await listener(event)
            except Exception as e:
                logger.error("listener_failed", listener_event=event, error=str(e))
