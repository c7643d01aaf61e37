import logging
from typing import Optional

from apscheduler.schedulers.background import BackgroundScheduler
from apscheduler.triggers.interval import IntervalTrigger

from app.core.config import settings
from app.core.database import SessionLocal
from app.services.mock_test_attempt import MockTestAttemptService

logger = logging.getLogger(__name__)


def sweep_expired_attempts() -> int:
    """
    Scheduled task that submits in-progress attempts left open past their
    deadline, so every started attempt ends with a score.
    """
    db = SessionLocal()
    try:
        return MockTestAttemptService(db).finalize_expired_attempts()
    except Exception as e:
        logger.error(f"Error during expired attempt sweep: {e}")
        db.rollback()
        return 0
    finally:
        db.close()


def start_scheduler() -> Optional[BackgroundScheduler]:
    """
    Initialize and start the APScheduler for the expired attempt sweep.
    Disabled unless EXPIRED_ATTEMPT_SWEEP_ENABLED is set.
    """
    if not settings.expired_attempt_sweep_enabled:
        logger.info("Expired attempt sweep disabled")
        return None

    scheduler = BackgroundScheduler()

    scheduler.add_job(
        sweep_expired_attempts,
        trigger=IntervalTrigger(
            seconds=settings.expired_attempt_sweep_interval_seconds
        ),
        id="expired_attempt_sweep",
        name="Finalize expired mock test attempts",
        replace_existing=True,
        max_instances=1,
        coalesce=True,
    )

    scheduler.start()
    logger.info(
        "Attempt scheduler started. Sweeping every "
        f"{settings.expired_attempt_sweep_interval_seconds}s."
    )

    return scheduler


def shutdown_scheduler(scheduler: Optional[BackgroundScheduler]):
    """
    Gracefully shutdown the scheduler.
    """
    if scheduler:
        scheduler.shutdown()
        logger.info("Attempt scheduler shut down.")
