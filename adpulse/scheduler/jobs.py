"""AdPulse — Scheduler Jobs.

APScheduler nightly job that runs the full sync at the configured hour.
"""

from apscheduler.schedulers.asyncio import AsyncIOScheduler

from adpulse.sync.runner import SyncInProgressError, SyncRunner
from adpulse.core.logging import get_logger

logger = get_logger("scheduler")

JOB_ID = "nightly_sync"


async def nightly_sync_job(runner: SyncRunner) -> None:
    """Run the lookback sync; failures are logged, the scheduler keeps going."""
    logger.info("Scheduled sync starting...")
    try:
        report = await runner.run()
        logger.info(f"Scheduled sync complete. Failed days: {report.failed_days or 'none'}")
    except SyncInProgressError:
        logger.warning("Scheduled sync skipped: a run is already in progress")
    except Exception as e:
        logger.error(f"Scheduled sync failed: {e}")


def start_scheduler(runner: SyncRunner) -> AsyncIOScheduler | None:
    """Configure and start the scheduler. Returns None when disabled."""
    settings = runner.ctx.settings
    if not settings.scheduler_enabled:
        logger.info("Scheduler disabled via config")
        return None

    scheduler = AsyncIOScheduler(timezone="UTC")
    scheduler.add_job(
        nightly_sync_job,
        "cron",
        args=[runner],
        hour=settings.sync_hour,
        minute=0,
        id=JOB_ID,
        replace_existing=True,
        misfire_grace_time=3600,
        max_instances=1,
    )
    scheduler.start()
    logger.info(f"Scheduler started. Nightly sync at {settings.sync_hour}:00 UTC")
    return scheduler


def stop_scheduler(scheduler: AsyncIOScheduler | None) -> None:
    """Shutdown the scheduler gracefully."""
    if scheduler is not None and scheduler.running:
        scheduler.shutdown(wait=False)
        logger.info("Scheduler stopped")
