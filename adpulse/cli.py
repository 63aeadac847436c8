"""AdPulse — Batch Entry Point.

No flags: always the configured lookback window, always both fetchers.
Exit code 0 when the day loop finishes (even with failed days), 1 when no
long-lived token is available or something escapes the top level.
"""

import asyncio
import sys

from adpulse.config import Settings
from adpulse.database import init_db
from adpulse.sync.context import SyncContext
from adpulse.sync.orchestrator import SyncAbortedError, run_sync
from adpulse.core.logging import get_logger

logger = get_logger("cli")


def main() -> int:
    try:
        ctx = SyncContext.from_settings(Settings())
    except Exception as e:
        logger.critical(f"🔥 Could not initialise sync: {e}", exc_info=True)
        return 1

    try:
        init_db(ctx.engine)
        asyncio.run(run_sync(ctx))
    except SyncAbortedError as e:
        logger.critical(f"❌ {e}")
        return 1
    except Exception as e:
        logger.critical(f"🔥 Critical error: {e}", exc_info=True)
        return 1
    finally:
        ctx.close()
    return 0


if __name__ == "__main__":
    sys.exit(main())
