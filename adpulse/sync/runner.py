"""AdPulse — In-Process Sync Runner.

Guards a long-lived process (API + scheduler) so that at most one sync run
is active at a time, and keeps the last report for status queries.

The API reserves the run with ``acquire()`` before answering 202 and hands
the actual work to a background task via ``run_acquired()``, so a second
request that arrives in between already sees the run as active.
"""

import asyncio
from typing import Optional

from adpulse.models.sync_models import SyncReport
from adpulse.sync.context import SyncContext
from adpulse.sync.orchestrator import SyncOrchestrator


class SyncInProgressError(Exception):
    """A sync run is already active in this process."""


class SyncRunner:
    def __init__(self, ctx: SyncContext, orchestrator: Optional[SyncOrchestrator] = None):
        self.ctx = ctx
        self.orchestrator = orchestrator or SyncOrchestrator(ctx)
        self.last_report: Optional[SyncReport] = None
        self.last_error: Optional[str] = None
        self._lock = asyncio.Lock()

    @property
    def running(self) -> bool:
        return self._lock.locked()

    async def acquire(self) -> None:
        """Reserve the runner, or SyncInProgressError if it is taken."""
        if self._lock.locked():
            raise SyncInProgressError("A sync run is already in progress")
        # Uncontended acquire completes without yielding to the loop
        await self._lock.acquire()

    def release(self) -> None:
        if self._lock.locked():
            self._lock.release()

    async def run_acquired(self) -> SyncReport:
        """Run with the runner already reserved by ``acquire()``; releases it."""
        try:
            self.last_report = await self.orchestrator.run()
            self.last_error = None
            return self.last_report
        except Exception as e:
            self.last_error = str(e)
            raise
        finally:
            self.release()

    async def run(self) -> SyncReport:
        await self.acquire()
        return await self.run_acquired()
