from __future__ import annotations

from datetime import datetime, timezone

from loguru import logger

from dealbot.notifications.dispatcher import DealDispatcher, DispatchResult


async def run_daily_deal(dispatcher: DealDispatcher) -> DispatchResult:
    """每日 Daily Deal 通知任務"""
    logger.info(f"Starting daily deal run at {datetime.now()}")

    result = await dispatcher.run()
    if result.ok:
        logger.info(
            f"Successfully parsed deals on {datetime.now(timezone.utc):%m/%d/%Y}: "
            f"#{result.product_id}, notified={len(result.notified)}, "
            f"failed={len(result.failed)}, pinged={len(result.pinged)}"
        )
    else:
        logger.error(f"Daily deal run aborted: {result.error}")
    return result
