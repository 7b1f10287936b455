"""Initialize database tables."""
import logging
from sqlmodel import SQLModel
from taskboard.models.task import Task  # noqa: F401
from taskboard.models.recurrence_history import RecurrenceHistory  # noqa: F401
from taskboard.models.subtask import Subtask  # noqa: F401
from taskboard.db.config import engine, ENVIRONMENT

logger = logging.getLogger(__name__)


def init_db(bind=None):
    """Create all tables in the database."""
    bind = bind or engine
    if ENVIRONMENT == "development" and str(bind.url).startswith("sqlite"):
        logger.info("Dropping and recreating tables for development...")
        SQLModel.metadata.drop_all(bind)

    SQLModel.metadata.create_all(bind)
    logger.info("Tables created successfully.")


if __name__ == "__main__":
    logging.basicConfig(level=logging.INFO)
    init_db()
