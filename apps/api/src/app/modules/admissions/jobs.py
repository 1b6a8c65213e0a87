"""
Admissions Background Jobs

Scheduled housekeeping for email verification challenges.

Expired challenges already fail verification, so removing them only keeps
the table small. The job is idempotent and opens its own database session.
"""

import logging
from datetime import UTC, datetime
from typing import Any

from apscheduler.triggers.interval import IntervalTrigger
from sqlalchemy.exc import SQLAlchemyError

from app.core.config import settings
from app.core.database import async_session_maker
from app.core.scheduler import register_job
from app.modules.admissions import verification

logger = logging.getLogger(__name__)

# Job ID for registration and manual triggering
JOB_ID_PURGE_VERIFICATIONS = "admissions_purge_expired_verifications"


async def purge_expired_verifications() -> dict[str, Any]:
    """
    Delete expired email verification challenges.

    Returns:
        Dict with the number of challenges removed
    """
    started_at = datetime.now(UTC)

    async with async_session_maker() as db:
        try:
            removed = await verification.purge_expired(db)
        except SQLAlchemyError as e:
            await db.rollback()
            logger.error(f"Failed to purge expired verifications: {e}")
            raise

    logger.info(f"Purged {removed} expired verification challenge(s)")

    return {
        "removed": removed,
        "started_at": started_at.isoformat(),
    }


def register_admissions_jobs() -> None:
    """
    Register admissions background jobs with the scheduler.

    Call during application startup, before the scheduler is started.
    """
    interval = settings.verification_purge_interval_minutes

    register_job(
        job_id=JOB_ID_PURGE_VERIFICATIONS,
        func=purge_expired_verifications,
        trigger=IntervalTrigger(minutes=interval),
    )
    logger.info(f"Registered job: {JOB_ID_PURGE_VERIFICATIONS} (interval: {interval} minutes)")
