import logging

from sqlalchemy import text
from sqlalchemy.engine import Engine

from formbuilder.db.base import Base
# Importing the models registers their tables on Base.metadata
from formbuilder.models import form, form_response, submission, user  # noqa: F401

logger = logging.getLogger(__name__)


def init_db(engine: Engine) -> None:
    """Create all tables that do not exist yet"""
    Base.metadata.create_all(bind=engine)
    logger.info("Database initialized successfully")


def check_db(engine: Engine) -> bool:
    try:
        with engine.connect() as connection:
            connection.execute(text("SELECT 1"))
        return True
    except Exception as e:
        logger.error(f"Database health check failed: {str(e)}")
        return False
