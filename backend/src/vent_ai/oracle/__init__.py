"""AI oracle layer: history types and provider clients."""

from vent_ai.oracle.base import (
    BaseOracle,
    ChatHistory,
    ChatTurn,
    build_payload,
    project_turns,
)
from vent_ai.oracle.openai_compat import OpenAICompatOracle

__all__ = [
    "BaseOracle",
    "ChatHistory",
    "ChatTurn",
    "build_payload",
    "project_turns",
    "OpenAICompatOracle",
]
