"""Database configuration for the recurring message service."""
from typing import Generator
from sqlmodel import create_engine, Session
import logging
import os
from dotenv import load_dotenv
from sqlalchemy import event

# Load environment variables but prioritize local development
load_dotenv()

logger = logging.getLogger(__name__)

# Use the DATABASE_URL from environment variable, with fallback to SQLite for local dev
DATABASE_URL = os.environ.get("DATABASE_URL", "sqlite:///./recurring_messages.db")
IS_SQLITE = DATABASE_URL.startswith("sqlite")

if IS_SQLITE:
    logger.info(f"[DB CONFIG] Using SQLite database: {DATABASE_URL}")
else:
    logger.info("[DB CONFIG] Using PostgreSQL database")

# SQLite connections are shared with the tick thread
connect_args = {"check_same_thread": False} if IS_SQLITE else {}

engine = create_engine(DATABASE_URL, echo=False, connect_args=connect_args, pool_pre_ping=not IS_SQLITE)

if IS_SQLITE:
    @event.listens_for(engine, "connect")
    def set_sqlite_pragma(dbapi_connection, connection_record):
        cursor = dbapi_connection.cursor()
        # Enable foreign keys and WAL mode for better concurrency
        cursor.execute("PRAGMA foreign_keys=ON")
        cursor.execute("PRAGMA journal_mode=WAL")
        cursor.close()


def get_session() -> Generator[Session, None, None]:
    """Dependency for getting database sessions."""
    with Session(engine) as session:
        yield session
