"""Database module for message persistence."""

from vent_ai.db.models import Message
from vent_ai.db.repository import MessageRepository, create_db_engine, init_db

__all__ = [
    "Message",
    "MessageRepository",
    "create_db_engine",
    "init_db",
]
