from __future__ import annotations

from typing import Awaitable, Callable

from loguru import logger
from telegram import BotCommand, Update
from telegram.ext import Application, CommandHandler, ContextTypes, filters

from dealbot.bot.handlers import BotCommands, CommandRequest

Handler = Callable[[CommandRequest], Awaitable[None]]

# Commands are accepted from private chats, groups and channel posts
COMMAND_FILTER = filters.UpdateType.MESSAGE | filters.UpdateType.CHANNEL_POST

BOT_COMMANDS = [
    BotCommand("start", "Subscribe this chat to Daily Deal alerts"),
    BotCommand("add", "Add an item URL to your watchlist"),
    BotCommand("remove", "Remove an item URL from your watchlist"),
    BotCommand("watchlist", "Show your watchlist"),
    BotCommand("currency", "Set price conversion currencies"),
    BotCommand("delete", "Unsubscribe this chat"),
    BotCommand("help", "Show all commands"),
]


def command_args(text: str) -> str:
    """Raw text after the command token (``/add@MyBot <url>`` -> ``<url>``)."""
    parts = text.split(maxsplit=1)
    return parts[1].strip() if len(parts) > 1 else ""


def request_from_update(update: Update) -> CommandRequest:
    message = update.effective_message
    chat = update.effective_chat
    user = update.effective_user
    return CommandRequest(
        chat_id=chat.id,
        chat_type=chat.type,
        message_id=message.message_id if message else None,
        user_id=user.id if user else None,
        username=user.username if user else None,
        args=command_args(message.text or "") if message else "",
    )


def _wrap(handler: Handler):
    async def callback(update: Update, context: ContextTypes.DEFAULT_TYPE) -> None:
        request = request_from_update(update)
        logger.debug(f"{handler.__name__} from chat {request.chat_id}")
        await handler(request)

    return callback


async def on_error(update: object, context: ContextTypes.DEFAULT_TYPE) -> None:
    logger.opt(exception=context.error).error(f"Error while handling update: {update}")


def register_handlers(application: Application, commands: BotCommands) -> None:
    routes = {
        "start": commands.start,
        "add": commands.add,
        "remove": commands.remove,
        "watchlist": commands.list_watchlist,
        "list": commands.list_watchlist,
        "currency": commands.currency,
        "delete": commands.delete,
        "help": commands.help,
    }
    # Each command runs as its own task; a stuck fetch only holds up its own reply
    for name, handler in routes.items():
        application.add_handler(
            CommandHandler(name, _wrap(handler), filters=COMMAND_FILTER, block=False)
        )
    application.add_error_handler(on_error)
    logger.info(f"Registered {len(routes)} command handlers")
