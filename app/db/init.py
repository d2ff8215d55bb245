"""Initialize database tables."""
import logging

from sqlmodel import SQLModel
from app.models.recurring_message import RecurringMessage  # noqa: F401
from app.models.chat_message import ChatMessage  # noqa: F401
from app.db.config import engine

logger = logging.getLogger(__name__)


def init_db(bind=None):
    """Create all tables in the database."""
    logger.info("[DB INIT] Creating all tables...")
    SQLModel.metadata.create_all(bind or engine)
    logger.info("[DB INIT] Tables created successfully.")


if __name__ == "__main__":
    logging.basicConfig(level=logging.INFO)
    init_db()
