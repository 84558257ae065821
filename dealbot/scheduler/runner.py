from apscheduler.schedulers.asyncio import AsyncIOScheduler
from apscheduler.triggers.cron import CronTrigger
from loguru import logger

from dealbot.config import get_settings
from dealbot.notifications.dispatcher import DealDispatcher
from dealbot.scheduler.jobs import run_daily_deal


def create_scheduler(dispatcher: DealDispatcher) -> AsyncIOScheduler:
    settings = get_settings()
    scheduler = AsyncIOScheduler(timezone=settings.timezone)

    # 每日定時抓取 Daily Deal 並通知
    scheduler.add_job(
        run_daily_deal,
        CronTrigger(
            hour=settings.deal_hour,
            minute=settings.deal_minute,
            timezone=settings.timezone,
        ),
        args=[dispatcher],
        id="daily_deal",
        name="Daily Deal Notification",
    )

    logger.info(
        f"Scheduler configured: daily deal at "
        f"{settings.deal_hour:02d}:{settings.deal_minute:02d} {settings.timezone}"
    )
    return scheduler


def start_scheduler(dispatcher: DealDispatcher) -> AsyncIOScheduler:
    scheduler = create_scheduler(dispatcher)
    scheduler.start()
    logger.info("Scheduler started")
    return scheduler
