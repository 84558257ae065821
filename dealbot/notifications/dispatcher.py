from __future__ import annotations

import asyncio
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

import httpx
from loguru import logger

from dealbot.config import get_settings
from dealbot.db import watchlist
from dealbot.db.store import JsonStore
from dealbot.notifications.formatter import (
    format_deal_message,
    format_operator_alert,
    format_watchlist_alert,
)
from dealbot.notifications.telegram import TelegramGateway
from dealbot.trackers.base import BaseDealSite, FeaturedDeal
from dealbot.trackers.exchange import fetch_exchange_rates


@dataclass
class DispatchResult:
    product_id: Optional[int] = None
    notified: List[str] = field(default_factory=list)
    failed: List[str] = field(default_factory=list)
    pinged: List[str] = field(default_factory=list)
    error: Optional[BaseException] = None

    @property
    def ok(self) -> bool:
        return self.error is None


class DealDispatcher:
    """Fetches the featured deal and fans it out to every subscribed chat.

    Runs are independent: there is no dispatcher state and no dedup, so
    two runs on the same day send everything twice.
    """

    def __init__(
        self,
        gateway: TelegramGateway,
        site: BaseDealSite,
        http_client: httpx.AsyncClient,
        subscription_store: JsonStore,
        watchlist_store: JsonStore,
    ):
        self.gateway = gateway
        self.site = site
        self.http_client = http_client
        self.subscription_store = subscription_store
        self.watchlist_store = watchlist_store
        self.settings = get_settings()

    async def run(self) -> DispatchResult:
        """Execute one dispatcher run.

        Fetch failures are logged, reported to the operator chat and end
        the run without sending anything to subscribers.
        """
        subscribed = self.subscription_store.load()
        watched = self.watchlist_store.load()
        result = DispatchResult()

        try:
            deal = await self.site.fetch_featured_deal()
            rates = await fetch_exchange_rates(
                self.http_client, self.settings.base_currency
            )
        except Exception as e:
            logger.exception(f"Error fetching {self.site.name} deals")
            await self.gateway.send_operator_alert(format_operator_alert(e))
            result.error = e
            return result

        result.product_id = deal.product_id
        await self._send_deal(deal, rates, subscribed, result)
        logger.info(
            f"Sent daily deal #{deal.product_id} to {len(result.notified)} chats "
            f"({len(result.failed)} failed)"
        )

        entry = watchlist.get_entry(watched, deal.product_id)
        if entry is not None:
            # Give Telegram a moment before membership lookups
            await asyncio.sleep(self.settings.watchlist_ping_delay)
            await self._ping_watchers(entry, subscribed, result)
            logger.info(f"Alerted watchlist users in {len(result.pinged)} chats")

        return result

    async def _send_deal(
        self,
        deal: FeaturedDeal,
        rates: Dict[str, float],
        subscribed: Dict[str, Any],
        result: DispatchResult,
    ) -> None:
        for chat_id, currencies in subscribed.items():
            text = format_deal_message(
                deal, currencies, rates, self.settings.base_currency
            )
            if await self.gateway.send(chat_id, text, best_effort=True):
                result.notified.append(chat_id)
            else:
                result.failed.append(chat_id)

    async def _ping_watchers(
        self,
        entry: Dict[str, Any],
        subscribed: Dict[str, Any],
        result: DispatchResult,
    ) -> None:
        for chat_id in subscribed:
            usernames = [
                user["username"]
                for user in entry["users"]
                if await self.gateway.is_member(chat_id, user["id"])
            ]
            text = format_watchlist_alert(usernames)
            if not text:
                continue
            if await self.gateway.send(chat_id, text, best_effort=True):
                result.pinged.append(chat_id)
