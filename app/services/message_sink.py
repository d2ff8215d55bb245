"""Message sink that appends automated messages to a room feed."""
import logging
from typing import Any, Dict, Optional, Protocol
from uuid import UUID

from sqlalchemy.exc import SQLAlchemyError
from sqlmodel import Session

from app.models.chat_message import ChatMessage

logger = logging.getLogger(__name__)

AUTOMATED_MESSAGE_TYPE = "automated"


class MessageSinkError(RuntimeError):
    """Raised when a message could not be appended to a room."""


class MessageSink(Protocol):
    """What the dispatch processor needs from the room message feed."""

    def append(
        self,
        channel_id: str,
        payload: str,
        author_id: str,
        author_name: str,
        tags: Optional[Dict[str, Any]] = None,
    ) -> Any:
        ...


class SQLMessageSink:
    """Appends chat messages through a SQLModel session."""

    def __init__(self, session: Session):
        self.session = session

    def append(
        self,
        channel_id: str,
        payload: str,
        author_id: str,
        author_name: str,
        tags: Optional[Dict[str, Any]] = None,
    ) -> UUID:
        """
        Insert one automated message into a room.

        Args:
            channel_id: Target room id
            payload: Message text, stored verbatim
            author_id: Sender id attributed on the message
            author_name: Sender display name
            tags: Metadata marking the message as machine-generated

        Returns:
            Id of the new message

        Raises:
            MessageSinkError: If the insert fails
        """
        message = ChatMessage(
            room_id=channel_id,
            content=payload,
            sender_id=author_id,
            sender_name=author_name or "",
            message_type=AUTOMATED_MESSAGE_TYPE,
            message_metadata=dict(tags or {}),
        )

        self.session.add(message)
        try:
            self.session.commit()
        except SQLAlchemyError as e:
            self.session.rollback()
            raise MessageSinkError(f"Failed to append message to room {channel_id}: {str(e)}") from e

        self.session.refresh(message)
        logger.debug(f"Appended automated message {message.id} to room {channel_id}")
        return message.id
