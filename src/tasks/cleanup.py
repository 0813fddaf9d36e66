"""Celery tasks for auth record housekeeping."""

import logging
from functools import lru_cache

from src.celery_app import app as celery_app
from src.config import get_settings
from src.database import Database
from src.repository import Repository
from src.services.auth import purge_expired

logger = logging.getLogger(__name__)


@lru_cache
def get_worker_database() -> Database:
    """Database shared by tasks in this worker process."""
    settings = get_settings()
    return Database(
        settings.database_url,
        pool_size=settings.database_pool_size,
        max_overflow=settings.database_max_overflow,
    )


def run_purge(database: Database) -> dict[str, int]:
    """Delete expired sessions and spent verifications."""
    db = database.session()
    try:
        result = purge_expired(Repository(db))
    finally:
        db.close()
    logger.info(
        f"Purged {result['sessions']} sessions and {result['verifications']} verifications"
    )
    return result


@celery_app.task
def purge_expired_auth_records() -> dict[str, int]:
    """Periodic cleanup scheduled by Celery beat."""
    return run_purge(get_worker_database())
