"""
Chat Message Model for room conversations.

Stores messages posted into a chat room. Automated messages carry
``message_type="automated"`` and a metadata tag pointing back at the
recurring message that produced them.
"""

from datetime import datetime
from typing import Any, Dict, Optional
from uuid import UUID, uuid4

from pydantic import NaiveDatetime
from sqlalchemy import JSON, Column, String, Text
from sqlmodel import SQLModel, Field


class ChatMessage(SQLModel, table=True):
    """
    Individual chat message in a room.

    Messages are immutable once created; the engine only ever appends.
    """
    __tablename__ = "chat_messages"

    id: UUID = Field(default_factory=uuid4, primary_key=True)
    room_id: str = Field(index=True, max_length=255)
    content: str = Field(sa_column=Column(Text, nullable=False))
    sender_id: str = Field(max_length=255)
    sender_name: str = Field(default="", max_length=255)
    message_type: str = Field(default="text", sa_column=Column(String(20), nullable=False, default="text"))
    # "metadata" is reserved on declarative models, so the attribute is renamed
    message_metadata: Optional[Dict[str, Any]] = Field(
        default=None, sa_column=Column("metadata", JSON, nullable=True)
    )
    created_at: NaiveDatetime = Field(default_factory=datetime.utcnow, index=True)
