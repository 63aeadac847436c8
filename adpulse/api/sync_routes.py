"""AdPulse — Sync Routes."""

from fastapi import APIRouter, BackgroundTasks, Depends, HTTPException

from adpulse.api.deps import get_runner
from adpulse.sync.orchestrator import SyncAbortedError
from adpulse.sync.runner import SyncInProgressError, SyncRunner
from adpulse.core.logging import get_logger

logger = get_logger("api.sync")

router = APIRouter(prefix="/sync", tags=["Sync"])


async def _run_in_background(runner: SyncRunner) -> None:
    try:
        await runner.run_acquired()
    except SyncAbortedError as e:
        logger.critical(f"❌ Manual sync aborted: {e}")
    except Exception as e:
        logger.error(f"Manual sync failed: {e}", exc_info=True)


@router.post("/run", status_code=202)
async def trigger_sync(
    background_tasks: BackgroundTasks, runner: SyncRunner = Depends(get_runner)
):
    """Start one full sync run in the background."""
    try:
        await runner.acquire()
    except SyncInProgressError:
        raise HTTPException(status_code=409, detail="A sync run is already in progress")
    background_tasks.add_task(_run_in_background, runner)
    return {"status": "accepted"}


@router.get("/status")
async def sync_status(runner: SyncRunner = Depends(get_runner)):
    """Whether a run is active, plus the last completed report."""
    report = runner.last_report
    return {
        "running": runner.running,
        "last_error": runner.last_error,
        "last_report": report.model_dump(mode="json") if report else None,
        "failed_days": report.failed_days if report else [],
    }
