"""AdPulse — Ad-Insights Fetcher.

For every configured ad account: list the ads, pull each ad's insights for
the requested day/preset, then upsert per-ad rows and the per-product
rollup. Accounts are processed one after another to stay under Meta's
rate limits; a failing account is logged and skipped. Upserts run in a
worker thread.
"""

import asyncio
from typing import Optional

from adpulse.connectors.meta.endpoints import MetaEndpoints
from adpulse.connectors.meta.transformer import AdInsightAggregator
from adpulse.models.store_models import (
    AD_PERFORMANCE_KEY,
    PRODUCT_PERFORMANCE_KEY,
    AdPerformanceDaily,
    ProductPerformanceDaily,
)
from adpulse.models.sync_models import DateParam, FetchResult
from adpulse.store.upsert import upsert_rows
from adpulse.sync.context import SyncContext
from adpulse.core.logging import get_logger

logger = get_logger("sync.ad_insights")

FETCHER_NAME = "ad_insights"


async def fetch_ad_insights(
    ctx: SyncContext,
    date_param: DateParam = "today",
    token: Optional[str] = None,
) -> FetchResult:
    """Sync ad-level and product-level performance for ``date_param``."""
    result = FetchResult(fetcher=FETCHER_NAME, date_param=str(date_param))

    token = token or ctx.settings.meta_access_token
    if not token:
        logger.critical("❌ Meta access token is missing (argument or META_ACCESS_TOKEN)")
        result.skipped = True
        return result

    logger.info(f"🚀 Starting ads fetcher [range: {date_param}]", extra={"fetcher": FETCHER_NAME})
    aggregator = AdInsightAggregator()
    client = ctx.meta_client(token)
    endpoints = MetaEndpoints(client, page_size=ctx.settings.meta_page_size)

    try:
        for account_id in ctx.settings.ad_account_ids:
            try:
                logger.info(f"🔹 Fetching ads for {account_id}", extra={"account_id": account_id})
                ads = await endpoints.fetch_ads(account_id)
                for ad in ads:
                    insights = await endpoints.fetch_ad_insights(ad["id"], date_param)
                    for stat in insights:
                        aggregator.add(ad, stat)
                result.accounts_processed.append(account_id)
            except Exception as e:
                logger.error(
                    f"❌ Ads fetch failed for {account_id}: {e}",
                    extra={"account_id": account_id, "date": str(date_param)},
                )
                result.failed_accounts[account_id] = str(e)
    finally:
        await client.close()

    product_rows = aggregator.product_rows()
    if product_rows:
        logger.info(f"📦 Upserting {len(product_rows)} product stats...")
        result.upserts.append(
            await asyncio.to_thread(
                upsert_rows, ctx.engine, ProductPerformanceDaily, product_rows, PRODUCT_PERFORMANCE_KEY
            )
        )

    ad_rows = aggregator.ad_rows()
    if ad_rows:
        logger.info(f"🎨 Upserting {len(ad_rows)} ad stats...")
        result.upserts.append(
            await asyncio.to_thread(
                upsert_rows, ctx.engine, AdPerformanceDaily, ad_rows, AD_PERFORMANCE_KEY
            )
        )

    logger.info(
        f"✅ Ads sync complete [range: {date_param}] — {result.row_count} rows",
        extra={"fetcher": FETCHER_NAME, "rows": result.row_count},
    )
    return result
