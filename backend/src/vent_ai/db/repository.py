"""Repository layer for database operations.

Provides append, range query and bulk delete for Message rows.
Uses SQLite for local persistence (data/vent_ai.db by default).
"""

from pathlib import Path

from sqlalchemy import delete, func
from sqlalchemy.engine import Engine
from sqlmodel import Session, SQLModel, create_engine, select

from vent_ai.db.models import Message, generate_id, utc_now

# Default database path
DEFAULT_DB_PATH = Path("data/vent_ai.db")


def create_db_engine(db_path: Path | None = None) -> Engine:
    """Create a database engine.

    Args:
        db_path: Optional custom database path. Defaults to data/vent_ai.db

    Returns:
        SQLModel engine instance
    """
    path = db_path or DEFAULT_DB_PATH
    path.parent.mkdir(parents=True, exist_ok=True)
    database_url = f"sqlite:///{path}"
    return create_engine(
        database_url,
        echo=False,
        connect_args={"check_same_thread": False},
    )


def init_db(engine: Engine) -> None:
    """Initialize the database by creating all tables.

    Args:
        engine: Engine to create the tables on
    """
    SQLModel.metadata.create_all(engine)


class MessageRepository:
    """Repository for Message persistence."""

    def __init__(self, session: Session):
        """Initialize repository with a database session.

        Args:
            session: SQLModel session for database operations
        """
        self.session = session

    def create(
        self,
        conversation_id: str,
        sender_id: str,
        sender_display_name: str,
        sender_avatar_ref: str | None = None,
        text: str | None = None,
        audio_ref: str | None = None,
        audio_duration_ms: int | None = None,
        is_ai_generated: bool = False,
        message_id: str | None = None,
    ) -> Message:
        """Append a new message.

        The sequence number and creation time are assigned here, at commit.

        Args:
            conversation_id: Conversation the message belongs to
            sender_id: User identifier or the AI sender sentinel
            sender_display_name: Sender name
            sender_avatar_ref: Sender avatar URL
            text: Text body
            audio_ref: Audio recording URL
            audio_duration_ms: Audio duration in milliseconds
            is_ai_generated: Whether the AI companion wrote the message
            message_id: Pre-assigned ID, generated when omitted

        Returns:
            Created Message instance
        """
        message = Message(
            id=message_id or generate_id(),
            conversation_id=conversation_id,
            seq=self.next_seq(),
            sender_id=sender_id,
            sender_display_name=sender_display_name,
            sender_avatar_ref=sender_avatar_ref,
            text=text,
            audio_ref=audio_ref,
            audio_duration_ms=audio_duration_ms,
            is_ai_generated=is_ai_generated,
            created_at=utc_now(),
        )
        self.session.add(message)
        self.session.commit()
        self.session.refresh(message)
        return message

    def next_seq(self) -> int:
        """Get the next free sequence number."""
        current = self.session.exec(select(func.max(Message.seq))).one()
        return (current or 0) + 1

    def list_recent(self, conversation_id: str, limit: int = 50) -> list[Message]:
        """List the newest messages of a conversation, newest first.

        Args:
            conversation_id: The conversation ID
            limit: Maximum number of messages to return

        Returns:
            List of Message instances ordered by commit sequence descending
        """
        statement = (
            select(Message)
            .where(Message.conversation_id == conversation_id)
            .order_by(Message.seq.desc())
            .limit(limit)
        )
        return list(self.session.exec(statement).all())

    def count(self, conversation_id: str) -> int:
        """Count messages in a conversation."""
        statement = (
            select(func.count())
            .select_from(Message)
            .where(Message.conversation_id == conversation_id)
        )
        return self.session.exec(statement).one()

    def delete_by_conversation(self, conversation_id: str) -> int:
        """Delete every message of a conversation in one statement.

        Args:
            conversation_id: The conversation ID

        Returns:
            Number of deleted messages
        """
        statement = delete(Message).where(Message.conversation_id == conversation_id)
        result = self.session.execute(statement)
        self.session.commit()
        return result.rowcount or 0
