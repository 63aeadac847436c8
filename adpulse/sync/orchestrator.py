"""AdPulse — Sync Orchestrator.

Runs the batch:
  exchange token (best effort) → load long-lived token → day loop

The day loop walks the lookback window most recent first, today included.
Each day is an independent unit: ads fetch, then audience fetch, then a
fixed pause. A failing day is logged and the loop moves on.
"""

import asyncio
from datetime import date, datetime, timedelta, timezone
from typing import Awaitable, Callable, List, Optional

from sqlalchemy.exc import SQLAlchemyError

from adpulse.models.sync_models import (
    DayResult,
    SyncReport,
    TimeRange,
    TokenExchangeOutcome,
    TokenType,
)
from adpulse.sync.ad_insights import fetch_ad_insights
from adpulse.sync.audience_insights import fetch_audience_insights
from adpulse.sync.context import SyncContext
from adpulse.sync.token_exchange import exchange_token
from adpulse.core.logging import get_logger

logger = get_logger("sync.orchestrator")

Sleeper = Callable[[float], Awaitable[None]]


class SyncAbortedError(Exception):
    """The run cannot proceed (no usable long-lived token)."""


def build_day_ranges(today: date, lookback_days: int) -> List[TimeRange]:
    """Single-day ranges for today and the previous ``lookback_days - 1`` days."""
    return [
        TimeRange.single_day((today - timedelta(days=i)).isoformat())
        for i in range(lookback_days)
    ]


class SyncOrchestrator:
    """Drives one full sync run over the lookback window."""

    def __init__(
        self,
        ctx: SyncContext,
        sleep: Sleeper = asyncio.sleep,
        today: Callable[[], date] = date.today,
    ):
        self.ctx = ctx
        self._sleep = sleep
        self._today = today

    async def resolve_token(self) -> str:
        """The authoritative long-lived token, or SyncAbortedError."""
        provider = self.ctx.settings.token_provider
        try:
            row = await asyncio.to_thread(
                self.ctx.credentials.get_token, provider, TokenType.LONG_LIVED
            )
        except SQLAlchemyError as e:
            raise SyncAbortedError(f"Token lookup failed: {e}") from e
        if row is None or not row.access_token:
            raise SyncAbortedError(f"No long-lived {provider} token found in database")
        return row.access_token

    async def run_day(self, time_range: TimeRange, token: str) -> DayResult:
        """Ads then audience for one day; each step isolated from the other."""
        day = DayResult(date=time_range.since)

        try:
            day.ads = await fetch_ad_insights(self.ctx, time_range, token)
        except Exception as e:
            logger.error(f"❌ Ads sync failed for {day.date}: {e}", exc_info=True, extra={"date": day.date})
            day.errors.append(f"ad_insights: {e}")

        try:
            day.audience = await fetch_audience_insights(self.ctx, time_range, token)
        except Exception as e:
            logger.error(f"❌ Audience sync failed for {day.date}: {e}", exc_info=True, extra={"date": day.date})
            day.errors.append(f"audience_insights: {e}")

        return day

    async def run(self) -> SyncReport:
        settings = self.ctx.settings
        report = SyncReport(started_at=datetime.now(timezone.utc))
        logger.info(f"🚀 Starting {settings.sync_lookback_days}-day data sync...")

        try:
            report.exchange = await exchange_token(self.ctx)
        except Exception as e:
            logger.warning(f"⚠️ Token exchange warning (non-critical): {e}")
            report.exchange = TokenExchangeOutcome.FAILED

        token = await self.resolve_token()
        logger.info("🔑 Token retrieved from database")

        ranges = build_day_ranges(self._today(), settings.sync_lookback_days)
        for i, time_range in enumerate(ranges, start=1):
            logger.info(
                f"📅 [Day {i}/{len(ranges)}] Processing {time_range.since}",
                extra={"date": time_range.since},
            )
            day = await self.run_day(time_range, token)
            report.days.append(day)
            if day.ok:
                logger.info(f"✅ Success for {day.date}", extra={"date": day.date})
            else:
                logger.warning(f"⚠️ Partial or failed sync for {day.date}", extra={"date": day.date})

            if i < len(ranges) and settings.sync_day_delay_seconds > 0:
                await self._sleep(settings.sync_day_delay_seconds)

        report.finished_at = datetime.now(timezone.utc)
        failed = report.failed_days
        logger.info(
            f"🎉 Sync complete: {len(report.days) - len(failed)}/{len(report.days)} days clean"
            + (f", check {', '.join(failed)}" if failed else "")
        )
        return report


async def run_sync(ctx: SyncContext, sleep: Optional[Sleeper] = None) -> SyncReport:
    """Convenience wrapper: one full run with default pacing."""
    orchestrator = SyncOrchestrator(ctx, sleep=sleep or asyncio.sleep)
    return await orchestrator.run()
