"""End-to-end: commands write the stores, a dispatcher run reads them."""
from unittest.mock import AsyncMock, MagicMock, patch

import pytest

from dealbot.bot.handlers import BotCommands, CommandRequest
from dealbot.db.store import JsonStore
from dealbot.notifications.dispatcher import DealDispatcher
from dealbot.trackers.base import FeaturedDeal, ItemMetadata

ITEM_URL = "https://example-site.com/item.html"


@pytest.fixture
def env(tmp_path):
    gateway = MagicMock()
    gateway.send = AsyncMock(return_value=True)
    gateway.is_member = AsyncMock(return_value=True)
    gateway.send_operator_alert = AsyncMock(return_value=True)

    site = MagicMock()
    site.name = "Example"
    site.domain = "example-site.com"
    site.fetch_item_metadata = AsyncMock(return_value=ItemMetadata(42, "Widget", ITEM_URL))
    site.fetch_featured_deal = AsyncMock(
        return_value=FeaturedDeal(42, "Widget", ITEM_URL, original_price=50, new_price=30)
    )

    subscriptions = JsonStore(tmp_path / "subscriptions.json")
    watchlist = JsonStore(tmp_path / "watchlist.json")
    commands = BotCommands(gateway, site, subscriptions, watchlist, ["USD", "EUR"])
    dispatcher = DealDispatcher(gateway, site, MagicMock(), subscriptions, watchlist)
    dispatcher.settings = MagicMock(base_currency="GBP", watchlist_ping_delay=0)
    return gateway, commands, dispatcher


def _request(args=""):
    return CommandRequest(
        chat_id=100, chat_type="private", message_id=1, user_id=1, username="alice", args=args
    )


@pytest.mark.asyncio
@patch("dealbot.notifications.dispatcher.fetch_exchange_rates", new_callable=AsyncMock)
async def test_currency_change_then_dispatch(mock_rates, env):
    gateway, commands, dispatcher = env
    mock_rates.return_value = {"JPY": 190, "GBP": 1}

    await commands.start(_request())
    await commands.currency(_request("GBP JPY"))
    gateway.send.reset_mock()

    await dispatcher.run()

    chat_id, text = gateway.send.call_args_list[0].args
    assert chat_id == "100"
    lines = [line for line in text.splitlines() if "->" in line]
    assert lines == [
        "GBP <s>£50</s> -> £30",
        "GBP £50.00 -> £30.00",
        "JPY ¥9500.00 -> ¥5700.00",
    ]


@pytest.mark.asyncio
@patch("dealbot.notifications.dispatcher.fetch_exchange_rates", new_callable=AsyncMock)
async def test_watchlisted_item_pings_user(mock_rates, env):
    gateway, commands, dispatcher = env
    mock_rates.return_value = {"USD": 1.25, "EUR": 1.15}

    await commands.start(_request())
    await commands.add(_request(ITEM_URL))
    assert commands.watchlist_store.load()["42"]["users"] == [{"id": 1, "username": "alice"}]
    gateway.send.reset_mock()

    result = await dispatcher.run()

    texts = [c.args[1] for c in gateway.send.call_args_list]
    assert any("@alice" in text for text in texts)
    assert result.pinged == ["100"]
