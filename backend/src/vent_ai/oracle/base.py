"""Base classes for the AI oracle layer."""

from abc import ABC, abstractmethod
from collections.abc import Iterable, Sequence
from dataclasses import dataclass, field
from typing import Literal

from vent_ai.store.types import AudioBody, StoredMessage, TextBody

TurnRole = Literal["user", "assistant"]


@dataclass(frozen=True)
class ChatTurn:
    """One role-tagged entry of the history sent to the oracle."""

    role: TurnRole
    content: str

    def to_dict(self) -> dict[str, str]:
        return {"role": self.role, "content": self.content}


def project_turns(
    messages: Iterable[StoredMessage],
    limit: int | None = None,
    audio_placeholder: str | None = None,
) -> list[ChatTurn]:
    """Project stored messages onto oracle history, oldest first.

    Args:
        messages: Messages in ascending order.
        limit: Keep only the most recent ``limit`` messages.
        audio_placeholder: Content used for voice messages. Voice messages are
            dropped when None.

    Returns:
        List of ChatTurn instances.
    """
    window = list(messages)
    if limit is not None:
        window = window[-limit:] if limit > 0 else []

    turns: list[ChatTurn] = []
    for message in window:
        role: TurnRole = "assistant" if message.is_ai_generated else "user"
        if isinstance(message.body, TextBody):
            turns.append(ChatTurn(role, message.body.text))
        elif isinstance(message.body, AudioBody) and audio_placeholder is not None:
            turns.append(ChatTurn(role, audio_placeholder))
    return turns


@dataclass
class ChatHistory:
    """Oracle-facing conversation history for one orchestrator.

    Unbounded for the lifetime of the session; only grows by whole send
    cycles or by seeding from the store.
    """

    turns: list[ChatTurn] = field(default_factory=list)

    def add_user_turn(self, text: str) -> None:
        """Add a user turn."""
        self.turns.append(ChatTurn("user", text))

    def add_assistant_turn(self, text: str) -> None:
        """Add an assistant turn."""
        self.turns.append(ChatTurn("assistant", text))

    def replace(self, turns: Iterable[ChatTurn]) -> None:
        self.turns = list(turns)

    def clear(self) -> None:
        """Clear all turns."""
        self.turns = []

    def snapshot(self) -> list[ChatTurn]:
        return list(self.turns)

    def __len__(self) -> int:
        return len(self.turns)


def build_payload(turns: Sequence[ChatTurn], system_prompt: str) -> list[dict[str, str]]:
    """Get the oracle request messages with the system prompt first."""
    return [
        {"role": "system", "content": system_prompt},
        *(turn.to_dict() for turn in turns),
    ]


class BaseOracle(ABC):
    """Abstract base class for AI oracles.

    An oracle keeps no memory between calls; all context is passed in.
    """

    @abstractmethod
    async def reply(self, turns: Sequence[ChatTurn], system_prompt: str) -> str:
        """Get one reply for the given history.

        Args:
            turns: Prior turns, oldest first.
            system_prompt: Instruction prepended to the request only.

        Returns:
            The reply text (never empty).

        Raises:
            OracleUnavailableError: The provider could not be reached.
            OracleRejectedError: The provider returned an error.
            OracleEmptyReplyError: The reply had no usable content.
        """
