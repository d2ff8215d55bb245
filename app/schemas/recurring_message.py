"""Recurring message schemas."""
from pydantic import BaseModel, Field, model_validator
from datetime import date, datetime
from typing import Optional, List
from uuid import UUID

from app.services.recurrence_validator import RecurrenceValidator, MAX_MESSAGE_LENGTH


def _raise_if_invalid(result: dict):
    if not result["valid"]:
        raise ValueError("; ".join(result["errors"]))


class RecurringMessageCreate(BaseModel):
    """Schema for creating a recurring room message."""
    message_content: str = Field(..., min_length=1, max_length=MAX_MESSAGE_LENGTH)
    created_by_name: Optional[str] = Field(None, max_length=255)  # Defaults to the token's name
    start_date: date
    recurrence_pattern: str = Field(..., pattern=r"^(daily|weekly|monthly)$")
    recurrence_interval: int = Field(default=1, ge=1)
    days_of_week: Optional[List[int]] = Field(None, max_length=7)  # 0=Sunday..6=Saturday
    end_date: Optional[date] = None
    is_active: bool = True

    @model_validator(mode="after")
    def check_rule(self):
        _raise_if_invalid(RecurrenceValidator.validate_recurrence_pattern(
            self.recurrence_pattern, self.recurrence_interval, self.days_of_week
        ))
        _raise_if_invalid(RecurrenceValidator.validate_date_window(self.start_date, self.end_date))
        _raise_if_invalid(RecurrenceValidator.validate_message_content(self.message_content))
        return self


class RecurringMessageUpdate(BaseModel):
    """Schema for editing a recurring message. The start date cannot change."""
    message_content: Optional[str] = Field(None, min_length=1, max_length=MAX_MESSAGE_LENGTH)
    created_by_name: Optional[str] = Field(None, max_length=255)
    recurrence_pattern: Optional[str] = Field(None, pattern=r"^(daily|weekly|monthly)$")
    recurrence_interval: Optional[int] = Field(None, ge=1)
    days_of_week: Optional[List[int]] = Field(None, max_length=7)
    end_date: Optional[date] = None
    is_active: Optional[bool] = None


class RecurringMessageResponse(BaseModel):
    """Schema for recurring message API responses."""
    id: UUID
    room_id: str
    message_content: str
    created_by: str
    created_by_name: str
    start_date: date
    recurrence_pattern: str
    recurrence_interval: int
    days_of_week: Optional[List[int]] = None
    end_date: Optional[date] = None
    is_active: bool
    last_sent_at: Optional[datetime] = None
    created_at: datetime
    updated_at: datetime
    next_occurrence: Optional[date] = None  # Advisory only, see services.recurrence

    class Config:
        from_attributes = True


class TickResult(BaseModel):
    """Outcome of one dispatcher tick."""
    as_of: date
    evaluated_count: int = 0
    fired_count: int = 0
    skipped_count: int = 0
    failed_rule_ids: List[str] = []
