"""AdPulse — Token Exchange.

Upgrades a stored short-lived Meta token to a long-lived one, in place.
Best effort: every failure is logged and reported, none is raised.
Store calls run in a worker thread so the event loop stays free.
"""

import asyncio

from sqlalchemy.exc import SQLAlchemyError

from adpulse.connectors.meta.client import MetaAPIError
from adpulse.models.sync_models import TokenExchangeOutcome, TokenType
from adpulse.sync.context import SyncContext
from adpulse.core.logging import get_logger

logger = get_logger("sync.token_exchange")


async def exchange_token(ctx: SyncContext) -> TokenExchangeOutcome:
    """Exchange the provider's short-lived token if one is waiting."""
    provider = ctx.settings.token_provider
    logger.info("🔐 Checking for short-lived tokens...", extra={"provider": provider})

    try:
        short = await asyncio.to_thread(
            ctx.credentials.get_token, provider, TokenType.SHORT_LIVED
        )
    except SQLAlchemyError as e:
        logger.error(f"❌ Token lookup failed: {e}", extra={"provider": provider})
        return TokenExchangeOutcome.FAILED

    if short is None:
        logger.info("ℹ️ No short-lived token found. Skipping exchange.")
        return TokenExchangeOutcome.SKIPPED

    if not (ctx.settings.meta_app_id and ctx.settings.meta_app_secret):
        logger.error("❌ META_APP_ID / META_APP_SECRET not configured; cannot exchange")
        return TokenExchangeOutcome.FAILED

    logger.info("🔄 Found short-lived token. Exchanging for long-lived...")
    client = ctx.meta_client(None)
    try:
        long_lived = await client.exchange_token(
            ctx.settings.meta_app_id, ctx.settings.meta_app_secret, short.access_token
        )
    except MetaAPIError as e:
        logger.error(
            f"❌ Token exchange failed ({e.status_code}/{e.error_code}): {e}",
            extra={"provider": provider},
        )
        return TokenExchangeOutcome.FAILED
    except Exception as e:
        # Unparseable or unexpected response shape
        logger.error(
            f"❌ Token exchange failed: {type(e).__name__}: {e}",
            extra={"provider": provider},
        )
        return TokenExchangeOutcome.FAILED
    finally:
        await client.close()

    try:
        await asyncio.to_thread(ctx.credentials.promote_to_long_lived, short.id, long_lived)
    except (SQLAlchemyError, LookupError) as e:
        logger.error(f"❌ Failed to save exchanged token: {e}", extra={"provider": provider})
        return TokenExchangeOutcome.FAILED

    logger.info("✅ Token exchanged and saved (long-lived)", extra={"provider": provider})
    return TokenExchangeOutcome.EXCHANGED
