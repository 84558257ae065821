import sys

from loguru import logger
from telegram import Update
from telegram.ext import Application, ApplicationBuilder

from dealbot.bot.application import BOT_COMMANDS, register_handlers
from dealbot.bot.handlers import BotCommands
from dealbot.config import get_settings
from dealbot.db.store import get_subscription_store, get_watchlist_store, init_stores
from dealbot.notifications.dispatcher import DealDispatcher
from dealbot.notifications.telegram import TelegramGateway
from dealbot.scheduler.runner import start_scheduler
from dealbot.trackers.utils import create_http_client, get_deal_site


def setup_logging(level: str) -> None:
    logger.remove()
    logger.add(sys.stderr, level=level.upper())


async def _post_init(application: Application) -> None:
    await application.bot.set_my_commands(BOT_COMMANDS)
    # 排程器需要在 event loop 啟動後才能開始
    application.bot_data["scheduler"] = start_scheduler(
        application.bot_data["dispatcher"]
    )


async def _post_shutdown(application: Application) -> None:
    scheduler = application.bot_data.get("scheduler")
    if scheduler:
        scheduler.shutdown(wait=False)
    await application.bot_data["http_client"].aclose()
    logger.info("Shutting down...")


def build_application() -> Application:
    """Wire the Telegram application, command handlers and the deal dispatcher."""
    settings = get_settings()
    application = (
        ApplicationBuilder()
        .token(settings.telegram_bot_token)
        .post_init(_post_init)
        .post_shutdown(_post_shutdown)
        .build()
    )

    http_client = create_http_client()
    gateway = TelegramGateway(application.bot)
    site = get_deal_site(http_client)
    subscription_store = get_subscription_store()
    watchlist_store = get_watchlist_store()

    commands = BotCommands(
        gateway,
        site,
        subscription_store,
        watchlist_store,
        settings.default_currency_list,
    )
    register_handlers(application, commands)

    application.bot_data["http_client"] = http_client
    application.bot_data["dispatcher"] = DealDispatcher(
        gateway, site, http_client, subscription_store, watchlist_store
    )
    return application


def run_bot() -> None:
    settings = get_settings()
    setup_logging(settings.log_level)

    if not TelegramGateway.is_configured():
        logger.error("TELEGRAM_BOT_TOKEN is not set")
        raise SystemExit(1)

    init_stores()

    logger.info("Logging in...")
    application = build_application()
    logger.info("Started!")
    application.run_polling(allowed_updates=Update.ALL_TYPES)


if __name__ == "__main__":
    run_bot()
