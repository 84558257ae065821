import argparse
import asyncio

from loguru import logger
from telegram import Bot

from dealbot.config import get_settings
from dealbot.db.store import get_subscription_store, get_watchlist_store, init_stores
from dealbot.main import run_bot, setup_logging
from dealbot.notifications.dispatcher import DealDispatcher, DispatchResult
from dealbot.notifications.telegram import TelegramGateway
from dealbot.scheduler.jobs import run_daily_deal
from dealbot.trackers.base import FeaturedDeal
from dealbot.trackers.utils import create_http_client, get_deal_site

settings = get_settings()


def init_database():
    """初始化 JSON 資料檔"""
    init_stores()
    logger.info("Stores initialized")


async def fetch_deal() -> FeaturedDeal:
    """抓取目前的 Daily Deal（不發送通知）"""
    async with create_http_client() as client:
        deal = await get_deal_site(client).fetch_featured_deal()
    logger.info(
        f"{deal.name} (#{deal.product_id}): "
        f"{deal.original_price} -> {deal.new_price} {settings.base_currency}"
    )
    logger.info(f"URL: {deal.url}")
    return deal


async def dispatch_now() -> DispatchResult:
    """立即執行一次通知"""
    init_stores()
    async with create_http_client() as client, Bot(settings.telegram_bot_token) as bot:
        dispatcher = DealDispatcher(
            TelegramGateway(bot),
            get_deal_site(client),
            client,
            get_subscription_store(),
            get_watchlist_store(),
        )
        return await run_daily_deal(dispatcher)


def main():
    parser = argparse.ArgumentParser(description="Daily Deal Bot CLI")
    subparsers = parser.add_subparsers(dest="command", help="Commands")

    # init command
    subparsers.add_parser("init", help="Create empty subscription and watchlist files")

    # run command
    subparsers.add_parser("run", help="Start the bot (polling + scheduler)")

    # dispatch command
    subparsers.add_parser("dispatch", help="Run one daily deal notification now")

    # deal command
    subparsers.add_parser("deal", help="Fetch and print the current daily deal")

    args = parser.parse_args()
    setup_logging(settings.log_level)

    if args.command == "init":
        init_database()
    elif args.command == "run":
        run_bot()
    elif args.command == "dispatch":
        if not TelegramGateway.is_configured():
            logger.error("TELEGRAM_BOT_TOKEN is not set")
            raise SystemExit(1)
        result = asyncio.run(dispatch_now())
        if not result.ok:
            raise SystemExit(1)
    elif args.command == "deal":
        asyncio.run(fetch_deal())
    else:
        parser.print_help()


if __name__ == "__main__":
    main()
