from __future__ import annotations

from dataclasses import dataclass
from typing import List, Optional

import httpx
from loguru import logger

from dealbot.currencies import split_currency_codes
from dealbot.db import subscriptions, watchlist
from dealbot.db.store import JsonStore
from dealbot.notifications import formatter
from dealbot.notifications.telegram import TelegramGateway
from dealbot.trackers.base import BaseDealSite, ItemMetadata, LayoutError
from dealbot.trackers.utils import is_site_url


@dataclass
class CommandRequest:
    """One inbound command, independent of the Telegram update that carried it."""

    chat_id: int
    chat_type: Optional[str] = None
    message_id: Optional[int] = None
    user_id: Optional[int] = None
    username: Optional[str] = None
    args: str = ""


class BotCommands:
    """Handlers for every user-facing command.

    Stores are reloaded at the start of each command and saved right
    after the mutation; nothing is kept in memory between commands.
    """

    def __init__(
        self,
        gateway: TelegramGateway,
        site: BaseDealSite,
        subscription_store: JsonStore,
        watchlist_store: JsonStore,
        default_currencies: List[str],
    ):
        self.gateway = gateway
        self.site = site
        self.subscription_store = subscription_store
        self.watchlist_store = watchlist_store
        self.default_currencies = default_currencies

    async def reply(self, request: CommandRequest, text: str) -> None:
        await self.gateway.send(request.chat_id, text, reply_to=request.message_id)

    async def require_subscription(self, request: CommandRequest) -> bool:
        """Abort (returning False) with a hint when the chat never ran /start."""
        doc = self.subscription_store.load()
        if subscriptions.is_subscribed(doc, request.chat_id):
            return True
        await self.reply(request, formatter.format_not_subscribed())
        return False

    async def _site_url(self, request: CommandRequest, command: str) -> Optional[str]:
        url = request.args.strip()
        if not is_site_url(url, self.site.domain):
            await self.reply(request, formatter.format_url_usage(command))
            return None
        return url

    async def _fetch_item(
        self, request: CommandRequest, command: str, url: str
    ) -> Optional[ItemMetadata]:
        try:
            return await self.site.fetch_item_metadata(url)
        except (LayoutError, httpx.HTTPError) as e:
            logger.info(f"/{command}: could not parse {url}: {e}")
            await self.reply(request, formatter.format_parse_failure())
            return None

    async def start(self, request: CommandRequest) -> None:
        doc = self.subscription_store.load()
        if subscriptions.subscribe(doc, request.chat_id, self.default_currencies):
            logger.info(f"Chat {request.chat_id} subscribed")
        self.subscription_store.save(doc)
        await self.reply(request, formatter.format_welcome(request.chat_type))

    async def delete(self, request: CommandRequest) -> None:
        doc = self.subscription_store.load()
        if subscriptions.unsubscribe(doc, request.chat_id):
            logger.info(f"Chat {request.chat_id} unsubscribed")
        self.subscription_store.save(doc)
        await self.reply(request, formatter.format_goodbye())

    async def add(self, request: CommandRequest) -> None:
        if not await self.require_subscription(request):
            return
        url = await self._site_url(request, "add")
        if url is None:
            return
        if not request.username:
            await self.reply(request, formatter.format_username_required())
            return

        item = await self._fetch_item(request, "add", url)
        if item is None:
            return

        doc = self.watchlist_store.load()
        added = watchlist.add_watcher(
            doc,
            item.product_id,
            item.name,
            item.url,
            request.user_id,
            request.username,
        )
        self.watchlist_store.save(doc)

        if added:
            logger.info(f"{request.username} is watching #{item.product_id}")
            await self.reply(request, formatter.format_added(item))
        else:
            await self.reply(request, formatter.format_already_watching(item))

    async def remove(self, request: CommandRequest) -> None:
        if not await self.require_subscription(request):
            return

        url = await self._site_url(request, "remove")
        if url is None:
            return

        item = await self._fetch_item(request, "remove", url)
        if item is None:
            return

        doc = self.watchlist_store.load()
        if not request.username or not watchlist.remove_watcher(
            doc, item.product_id, request.username
        ):
            await self.reply(request, formatter.format_not_watching(item))
            return
        self.watchlist_store.save(doc)

        logger.info(f"{request.username} stopped watching #{item.product_id}")
        await self.reply(request, formatter.format_removed(item))

    async def list_watchlist(self, request: CommandRequest) -> None:
        if not await self.require_subscription(request):
            return

        doc = self.watchlist_store.load()
        entries = watchlist.entries_for_user(doc, request.username) if request.username else []
        await self.reply(request, formatter.format_watchlist(entries))

    async def currency(self, request: CommandRequest) -> None:
        if not await self.require_subscription(request):
            return

        codes, invalid = split_currency_codes(request.args)
        # Each bad code gets its own usage reply; the rest are still applied
        for code in invalid:
            await self.reply(request, formatter.format_currency_usage(code))
        if invalid and not codes:
            return

        doc = self.subscription_store.load()
        subscriptions.set_currencies(doc, request.chat_id, codes)
        self.subscription_store.save(doc)

        logger.info(f"Chat {request.chat_id} currencies set to {codes}")
        await self.reply(request, formatter.format_currencies_updated(codes))

    async def help(self, request: CommandRequest) -> None:
        await self.reply(request, formatter.format_help())
