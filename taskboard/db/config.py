"""Database configuration for the Taskboard backend."""
from typing import Generator
from sqlmodel import create_engine, Session
import os
import logging
from dotenv import load_dotenv
from sqlalchemy import event
from sqlalchemy.engine import Engine

logger = logging.getLogger(__name__)

load_dotenv()

DATABASE_URL = os.environ.get("DATABASE_URL", "sqlite:///./taskboard.db")
ENVIRONMENT = os.environ.get("ENVIRONMENT", "development")


def configure_sqlite(engine: Engine) -> Engine:
    """
    Attach the SQLite connection hooks.

    pysqlite defers BEGIN until the first write, which breaks SAVEPOINT
    handling; the hooks hand transaction control back to SQLAlchemy.
    """
    @event.listens_for(engine, "connect")
    def set_sqlite_pragma(dbapi_connection, connection_record):
        dbapi_connection.isolation_level = None
        cursor = dbapi_connection.cursor()
        cursor.execute("PRAGMA foreign_keys=ON")
        cursor.close()

    @event.listens_for(engine, "begin")
    def do_begin(conn):
        conn.exec_driver_sql("BEGIN")

    return engine


def build_engine(database_url: str = DATABASE_URL, **kwargs) -> Engine:
    """Create an engine for the given URL, applying SQLite specifics when needed."""
    if database_url.startswith("sqlite"):
        kwargs.setdefault("connect_args", {"check_same_thread": False})
        return configure_sqlite(create_engine(database_url, echo=False, **kwargs))
    return create_engine(database_url, echo=False, pool_pre_ping=True, **kwargs)


engine = build_engine()

if DATABASE_URL.startswith("postgresql"):
    logger.info("Using PostgreSQL database")
else:
    logger.info(f"Using SQLite database: {DATABASE_URL}")


def get_session() -> Generator[Session, None, None]:
    """Dependency for getting database sessions."""
    with Session(engine) as session:
        yield session
