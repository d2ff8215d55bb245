"""
Pytest configuration and shared fixtures
"""
import os
import sys
from datetime import date, datetime
from pathlib import Path

import pytest

# Keep the application engine off the filesystem during tests
os.environ.setdefault("DATABASE_URL", "sqlite://")

# Add project root to Python path
project_root = Path(__file__).parent.parent
sys.path.insert(0, str(project_root))

from sqlalchemy.pool import StaticPool  # noqa: E402
from sqlmodel import Session, SQLModel, create_engine  # noqa: E402

from app.models.chat_message import ChatMessage  # noqa: E402,F401
from app.models.recurring_message import RecurringMessage  # noqa: E402
from app.services.clock import Clock  # noqa: E402


class FixedClock(Clock):
    """Clock pinned to one instant (naive UTC)."""

    def __init__(self, instant: datetime, timezone_name: str = "UTC"):
        super().__init__(timezone_name)
        self.instant = instant

    def now(self) -> datetime:
        return self.instant


@pytest.fixture
def make_clock():
    """Factory for clocks pinned to an instant"""
    return FixedClock


@pytest.fixture
def clock():
    """Clock fixed at 2024-01-10 08:00 UTC"""
    return FixedClock(datetime(2024, 1, 10, 8, 0))


@pytest.fixture
def make_rule():
    """Factory for unsaved recurring messages with sensible defaults"""
    def _make(**overrides):
        values = {
            "room_id": "room-ops",
            "message_content": "Daily stand-up in 10 minutes",
            "created_by": "user-1",
            "created_by_name": "Dana Ops",
            "start_date": date(2024, 1, 1),
            "recurrence_pattern": "daily",
            "recurrence_interval": 1,
            "days_of_week": None,
            "end_date": None,
            "is_active": True,
            "last_sent_at": None,
        }
        values.update(overrides)
        return RecurringMessage(**values)
    return _make


@pytest.fixture
def engine():
    """In-memory SQLite engine shared across threads"""
    test_engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    SQLModel.metadata.create_all(test_engine)
    yield test_engine
    SQLModel.metadata.drop_all(test_engine)
    test_engine.dispose()


@pytest.fixture
def session(engine):
    """Database session bound to the in-memory engine"""
    with Session(engine) as db_session:
        yield db_session
