"""Recurring Message model for SQLModel."""
from datetime import date, datetime
from enum import Enum
from typing import List, Optional
from uuid import UUID, uuid4

from pydantic import NaiveDatetime
from sqlalchemy import JSON, Column, Text
from sqlmodel import SQLModel, Field


class RecurrencePattern(str, Enum):
    """Cadence family of a recurring message."""
    DAILY = "daily"
    WEEKLY = "weekly"
    MONTHLY = "monthly"


class RecurringMessage(SQLModel, table=True):
    """
    Automated room message fired on a repeating calendar cadence.

    ``last_sent_at`` is the only guard against firing twice on the same day.
    It is written by the dispatch processor after the message is emitted.
    """
    __tablename__ = "recurring_messages"

    id: UUID = Field(default_factory=uuid4, primary_key=True)
    room_id: str = Field(index=True, max_length=255)
    message_content: str = Field(sa_column=Column(Text, nullable=False))
    created_by: str = Field(max_length=255)
    created_by_name: str = Field(default="", max_length=255)

    start_date: date = Field(index=True)  # immutable once created
    recurrence_pattern: str = Field(max_length=20)  # daily, weekly, monthly
    recurrence_interval: int = Field(default=1)  # every N units of the pattern
    days_of_week: Optional[List[int]] = Field(default=None, sa_column=Column(JSON, nullable=True))  # 0-6 for Sunday-Saturday
    end_date: Optional[date] = Field(default=None, index=True)

    is_active: bool = Field(default=True, index=True)
    last_sent_at: Optional[NaiveDatetime] = Field(default=None)  # naive UTC

    created_at: NaiveDatetime = Field(default_factory=datetime.utcnow)
    updated_at: NaiveDatetime = Field(default_factory=datetime.utcnow)
