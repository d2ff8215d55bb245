"""Recurring message router for room automations."""
from datetime import date
from types import SimpleNamespace
from typing import Any, Dict, List, Optional
from uuid import UUID

from fastapi import APIRouter, Depends, HTTPException, Query, status
from sqlmodel import Session

from app.db.config import get_session
from app.middleware.auth import CurrentUser, get_current_user
from app.models.recurring_message import RecurringMessage
from app.schemas.recurring_message import (
    RecurringMessageCreate,
    RecurringMessageResponse,
    RecurringMessageUpdate,
    TickResult,
)
from app.services.clock import Clock
from app.services.dispatch_processor import DispatchProcessor
from app.services.message_sink import SQLMessageSink
from app.services.recurrence import next_occurrence
from app.services.recurrence_validator import RecurrenceValidator
from app.services.rule_store import RuleNotFoundError, SQLRuleStore
from app.utils.metrics import metrics_collector

router = APIRouter(tags=["Recurring Messages"])  # No prefix since main.py adds /api


def get_clock() -> Clock:
    """Dependency for the scheduling clock."""
    return Clock()


def get_rule_store(session: Session = Depends(get_session)) -> SQLRuleStore:
    """Dependency for getting a SQLRuleStore instance."""
    return SQLRuleStore(session)


def get_dispatch_processor(
    session: Session = Depends(get_session),
    clock: Clock = Depends(get_clock),
) -> DispatchProcessor:
    """Dependency for a dispatch processor bound to the request session."""
    return DispatchProcessor(SQLRuleStore(session), SQLMessageSink(session), clock=clock)


def to_response(rule: RecurringMessage, clock: Clock) -> RecurringMessageResponse:
    response = RecurringMessageResponse.model_validate(rule)
    response.next_occurrence = next_occurrence(rule, clock.today(), clock.tz)
    return response


def _not_found(rule_id: UUID) -> HTTPException:
    return HTTPException(
        status_code=status.HTTP_404_NOT_FOUND,
        detail=f"Recurring message {rule_id} not found"
    )


@router.post(
    "/rooms/{room_id}/recurring-messages",
    response_model=RecurringMessageResponse,
    status_code=status.HTTP_201_CREATED,
)
async def create_recurring_message(
    room_id: str,
    payload: RecurringMessageCreate,
    current_user: CurrentUser = Depends(get_current_user),
    store: SQLRuleStore = Depends(get_rule_store),
    clock: Clock = Depends(get_clock),
):
    """Create a recurring message for a room, attributed to the current user."""
    rule = RecurringMessage(
        room_id=room_id,
        message_content=payload.message_content,
        created_by=current_user.user_id,
        created_by_name=payload.created_by_name or current_user.display_name,
        start_date=payload.start_date,
        recurrence_pattern=payload.recurrence_pattern,
        recurrence_interval=payload.recurrence_interval,
        days_of_week=sorted(set(payload.days_of_week)) if payload.days_of_week else None,
        end_date=payload.end_date,
        is_active=payload.is_active,
    )
    return to_response(store.create(rule), clock)


@router.get("/rooms/{room_id}/recurring-messages", response_model=Dict[str, Any])
async def list_recurring_messages(
    room_id: str,
    include_inactive: bool = Query(True, description="Include paused recurring messages"),
    current_user: CurrentUser = Depends(get_current_user),
    store: SQLRuleStore = Depends(get_rule_store),
    clock: Clock = Depends(get_clock),
):
    """List the recurring messages of a room with their next occurrence."""
    rules: List[RecurringMessageResponse] = [
        to_response(rule, clock) for rule in store.list_for_room(room_id, include_inactive)
    ]
    return {
        "recurring_messages": rules,
        "count": len(rules)
    }


@router.get("/recurring-messages/metrics", response_model=Dict[str, Any])
async def get_dispatch_metrics(current_user: CurrentUser = Depends(get_current_user)):
    """Dispatcher counters since process start."""
    return metrics_collector.get_metrics()


@router.post("/recurring-messages/run-tick", response_model=TickResult)
def run_tick(
    as_of: Optional[date] = Query(None, description="Evaluate as of this date instead of today"),
    current_user: CurrentUser = Depends(get_current_user),
    processor: DispatchProcessor = Depends(get_dispatch_processor),
):
    """Run one dispatcher tick now (manual admin trigger)."""
    return processor.run_tick(as_of)


@router.get("/recurring-messages/{rule_id}", response_model=RecurringMessageResponse)
async def get_recurring_message(
    rule_id: UUID,
    current_user: CurrentUser = Depends(get_current_user),
    store: SQLRuleStore = Depends(get_rule_store),
    clock: Clock = Depends(get_clock),
):
    """Get a specific recurring message by ID."""
    rule = store.get(rule_id)
    if not rule:
        raise _not_found(rule_id)
    return to_response(rule, clock)


@router.put("/recurring-messages/{rule_id}", response_model=RecurringMessageResponse)
async def update_recurring_message(
    rule_id: UUID,
    payload: RecurringMessageUpdate,
    current_user: CurrentUser = Depends(get_current_user),
    store: SQLRuleStore = Depends(get_rule_store),
    clock: Clock = Depends(get_clock),
):
    """Edit, pause or resume a recurring message."""
    rule = store.get(rule_id)
    if not rule:
        raise _not_found(rule_id)

    changes = payload.model_dump(exclude_unset=True)
    for field in ("is_active", "created_by_name"):
        if changes.get(field, "") is None:
            changes.pop(field)
    if changes.get("days_of_week"):
        changes["days_of_week"] = sorted(set(changes["days_of_week"]))

    # Validate the edited rule as a whole, e.g. a new end date against the fixed start date
    merged = SimpleNamespace(**{**rule.model_dump(), **changes})
    validation = RecurrenceValidator.validate_rule(merged)
    if not validation["valid"]:
        raise HTTPException(
            status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
            detail=validation["errors"]
        )

    try:
        rule = store.update(rule_id, **changes)
    except RuleNotFoundError:
        raise _not_found(rule_id)
    return to_response(rule, clock)


@router.delete("/recurring-messages/{rule_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_recurring_message(
    rule_id: UUID,
    current_user: CurrentUser = Depends(get_current_user),
    store: SQLRuleStore = Depends(get_rule_store),
):
    """Delete a recurring message. Messages it already sent stay in the room."""
    try:
        store.delete(rule_id)
    except RuleNotFoundError:
        raise _not_found(rule_id)
    return None
