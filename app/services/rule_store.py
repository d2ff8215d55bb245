"""Rule store for recurring room messages."""
import logging
from datetime import date, datetime
from typing import List, Optional, Protocol
from uuid import UUID

from sqlalchemy import or_
from sqlalchemy.exc import SQLAlchemyError
from sqlmodel import Session, select

from app.models.recurring_message import RecurringMessage

logger = logging.getLogger(__name__)

# Fields an edit is allowed to change; start_date stays fixed after creation
EDITABLE_FIELDS = (
    "message_content",
    "created_by_name",
    "recurrence_pattern",
    "recurrence_interval",
    "days_of_week",
    "end_date",
    "is_active",
)


class RuleNotFoundError(LookupError):
    """Raised when a recurring message id does not exist."""


class RuleStore(Protocol):
    """What the dispatch processor needs from rule persistence."""

    def list_active_in_window(self, as_of: date) -> List[RecurringMessage]:
        ...

    def mark_fired(self, rule_id: UUID, fired_at: datetime) -> None:
        ...


class SQLRuleStore:
    """Rule store backed by a SQLModel session."""

    def __init__(self, session: Session):
        self.session = session

    def list_active_in_window(self, as_of: date) -> List[RecurringMessage]:
        """Active rules whose [start_date, end_date] window contains ``as_of``."""
        statement = select(RecurringMessage).where(
            RecurringMessage.is_active == True,  # noqa: E712
            RecurringMessage.start_date <= as_of,
            or_(RecurringMessage.end_date == None, RecurringMessage.end_date >= as_of),  # noqa: E711
        ).order_by(RecurringMessage.created_at)
        return list(self.session.exec(statement).all())

    def mark_fired(self, rule_id: UUID, fired_at: datetime) -> None:
        """Stamp ``last_sent_at`` for a rule after its message was emitted."""
        rule = self.session.get(RecurringMessage, rule_id)
        if rule is None:
            raise RuleNotFoundError(f"Recurring message {rule_id} not found")

        rule.last_sent_at = fired_at
        rule.updated_at = datetime.utcnow()
        self._commit(rule)
        logger.debug(f"Recurring message {rule_id} marked as sent at {fired_at.isoformat()}")

    def create(self, rule: RecurringMessage) -> RecurringMessage:
        """Persist a new rule. ``last_sent_at`` always starts empty."""
        rule.last_sent_at = None
        rule.created_at = datetime.utcnow()
        rule.updated_at = rule.created_at
        self._commit(rule)
        logger.info(f"Created recurring message {rule.id} for room {rule.room_id}")
        return rule

    def get(self, rule_id: UUID) -> Optional[RecurringMessage]:
        return self.session.get(RecurringMessage, rule_id)

    def list_for_room(self, room_id: str, include_inactive: bool = True) -> List[RecurringMessage]:
        statement = select(RecurringMessage).where(RecurringMessage.room_id == room_id)
        if not include_inactive:
            statement = statement.where(RecurringMessage.is_active == True)  # noqa: E712
        statement = statement.order_by(RecurringMessage.created_at)
        return list(self.session.exec(statement).all())

    def update(self, rule_id: UUID, **changes) -> RecurringMessage:
        """Apply an edit. Unknown or immutable fields are rejected."""
        rule = self.get(rule_id)
        if rule is None:
            raise RuleNotFoundError(f"Recurring message {rule_id} not found")

        for field, value in changes.items():
            if field not in EDITABLE_FIELDS:
                raise ValueError(f"Field '{field}' cannot be edited")
            setattr(rule, field, value)

        rule.updated_at = datetime.utcnow()
        self._commit(rule)
        logger.info(f"Updated recurring message {rule_id}: {sorted(changes)}")
        return rule

    def set_active(self, rule_id: UUID, active: bool) -> RecurringMessage:
        """Pause or resume a rule."""
        return self.update(rule_id, is_active=active)

    def delete(self, rule_id: UUID) -> None:
        rule = self.get(rule_id)
        if rule is None:
            raise RuleNotFoundError(f"Recurring message {rule_id} not found")

        self.session.delete(rule)
        try:
            self.session.commit()
        except SQLAlchemyError:
            self.session.rollback()
            raise
        logger.info(f"Deleted recurring message {rule_id}")

    def _commit(self, rule: RecurringMessage) -> None:
        self.session.add(rule)
        try:
            self.session.commit()
        except SQLAlchemyError:
            # Leave the session usable for the next rule in the tick
            self.session.rollback()
            raise
        self.session.refresh(rule)
