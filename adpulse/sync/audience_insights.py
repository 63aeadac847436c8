"""AdPulse — Audience-Insights Fetcher.

Campaign-level insights broken down by age and gender, merged into one row
per (date, product, age range, gender) before a single bulk upsert.
"""

import asyncio
from typing import Optional

from adpulse.connectors.meta.endpoints import MetaEndpoints
from adpulse.connectors.meta.transformer import AudienceAggregator
from adpulse.models.store_models import AUDIENCE_BREAKDOWN_KEY, AudienceBreakdownDaily
from adpulse.models.sync_models import DateParam, FetchResult
from adpulse.store.upsert import upsert_rows
from adpulse.sync.context import SyncContext
from adpulse.core.logging import get_logger

logger = get_logger("sync.audience_insights")

FETCHER_NAME = "audience_insights"


async def fetch_audience_insights(
    ctx: SyncContext,
    date_param: DateParam = "today",
    token: Optional[str] = None,
) -> FetchResult:
    """Sync the audience breakdown for ``date_param``."""
    result = FetchResult(fetcher=FETCHER_NAME, date_param=str(date_param))

    token = token or ctx.settings.meta_access_token
    if not token:
        logger.critical("❌ Meta access token is missing (argument or META_ACCESS_TOKEN)")
        result.skipped = True
        return result

    logger.info(f"👥 Starting audience fetcher [range: {date_param}]", extra={"fetcher": FETCHER_NAME})
    aggregator = AudienceAggregator()
    client = ctx.meta_client(token)
    endpoints = MetaEndpoints(client, page_size=ctx.settings.meta_page_size)

    try:
        for account_id in ctx.settings.ad_account_ids:
            try:
                insights = await endpoints.fetch_audience_insights(account_id, date_param)
                for stat in insights:
                    aggregator.add(stat)
                result.accounts_processed.append(account_id)
            except Exception as e:
                logger.error(
                    f"❌ Audience fetch failed for {account_id}: {e}",
                    extra={"account_id": account_id, "date": str(date_param)},
                )
                result.failed_accounts[account_id] = str(e)
    finally:
        await client.close()

    rows = aggregator.rows()
    if not rows:
        logger.info(f"⚠️ No audience data found [range: {date_param}]")
        return result

    logger.info(f"👥 Updating audience stats ({len(rows)} rows, deduplicated)...")
    result.upserts.append(
        await asyncio.to_thread(
            upsert_rows, ctx.engine, AudienceBreakdownDaily, rows, AUDIENCE_BREAKDOWN_KEY
        )
    )
    return result
