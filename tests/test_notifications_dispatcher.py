from unittest.mock import AsyncMock, MagicMock, patch

import pytest

from dealbot.db.store import JsonStore
from dealbot.notifications.dispatcher import DealDispatcher
from dealbot.notifications.formatter import WATCHLIST_ALERT_HEADER
from dealbot.trackers.base import FeaturedDeal, LayoutError

DEAL = FeaturedDeal(
    product_id=42,
    name="Widget",
    url="https://example-site.com/item.html",
    original_price=50,
    new_price=30,
)
RATES = {"JPY": 190, "GBP": 1, "USD": 1.25, "EUR": 1.15}


@pytest.fixture
def stores(tmp_path):
    subscriptions = JsonStore(tmp_path / "subscriptions.json")
    watchlist = JsonStore(tmp_path / "watchlist.json")
    subscriptions.ensure_exists()
    watchlist.ensure_exists()
    return subscriptions, watchlist


@pytest.fixture
def gateway():
    gateway = MagicMock()
    gateway.send = AsyncMock(return_value=True)
    gateway.is_member = AsyncMock(return_value=True)
    gateway.send_operator_alert = AsyncMock(return_value=True)
    return gateway


@pytest.fixture
def site():
    site = MagicMock()
    site.name = "Example"
    site.fetch_featured_deal = AsyncMock(return_value=DEAL)
    return site


@pytest.fixture
def dispatcher(gateway, site, stores):
    subscriptions, watchlist = stores
    dispatcher = DealDispatcher(gateway, site, MagicMock(), subscriptions, watchlist)
    dispatcher.settings = MagicMock(base_currency="GBP", watchlist_ping_delay=0)
    return dispatcher


def _sent(gateway):
    return [(c.args[0], c.args[1]) for c in gateway.send.call_args_list]


class TestDealDispatcher:
    @pytest.mark.asyncio
    @patch("dealbot.notifications.dispatcher.fetch_exchange_rates", new_callable=AsyncMock)
    async def test_sends_converted_prices(self, mock_rates, dispatcher, gateway, stores):
        mock_rates.return_value = RATES
        stores[0].save({"100": ["GBP", "JPY"]})

        result = await dispatcher.run()

        assert result.ok
        assert result.product_id == 42
        assert result.notified == ["100"]
        sent = _sent(gateway)
        assert len(sent) == 1
        chat_id, text = sent[0]
        assert chat_id == "100"
        base = "GBP <s>£50</s> -> £30"
        gbp = "GBP £50.00 -> £30.00"
        jpy = "JPY ¥9500.00 -> ¥5700.00"
        assert text.index(base) < text.index(gbp) < text.index(jpy)
        mock_rates.assert_awaited_once()

    @pytest.mark.asyncio
    @patch("dealbot.notifications.dispatcher.fetch_exchange_rates", new_callable=AsyncMock)
    async def test_cleared_currencies_only_base_line(self, mock_rates, dispatcher, gateway, stores):
        mock_rates.return_value = RATES
        stores[0].save({"100": []})

        await dispatcher.run()

        text = _sent(gateway)[0][1]
        assert [line for line in text.splitlines() if "->" in line] == ["GBP <s>£50</s> -> £30"]

    @pytest.mark.asyncio
    @patch("dealbot.notifications.dispatcher.fetch_exchange_rates", new_callable=AsyncMock)
    async def test_sends_to_every_chat_in_store_order(self, mock_rates, dispatcher, gateway, stores):
        mock_rates.return_value = RATES
        stores[0].save({"300": ["USD"], "100": ["EUR"], "-200": []})

        await dispatcher.run()

        assert [chat for chat, _ in _sent(gateway)] == ["300", "100", "-200"]

    @pytest.mark.asyncio
    @patch("dealbot.notifications.dispatcher.fetch_exchange_rates", new_callable=AsyncMock)
    async def test_send_failure_does_not_stop_fan_out(self, mock_rates, dispatcher, gateway, stores):
        mock_rates.return_value = RATES
        stores[0].save({"1": [], "2": [], "3": []})
        gateway.send.side_effect = [True, False, True]

        result = await dispatcher.run()

        assert result.notified == ["1", "3"]
        assert result.failed == ["2"]
        for call in gateway.send.call_args_list:
            assert call.kwargs["best_effort"] is True

    @pytest.mark.asyncio
    @patch("dealbot.notifications.dispatcher.fetch_exchange_rates", new_callable=AsyncMock)
    async def test_fetch_failure_alerts_operator(self, mock_rates, dispatcher, gateway, site, stores):
        stores[0].save({"100": ["USD"]})
        site.fetch_featured_deal.side_effect = LayoutError("No daily deal banner on the home page")

        result = await dispatcher.run()

        assert not result.ok
        assert isinstance(result.error, LayoutError)
        gateway.send.assert_not_awaited()
        mock_rates.assert_not_awaited()
        gateway.send_operator_alert.assert_awaited_once()
        alert = gateway.send_operator_alert.call_args.args[0]
        assert "LayoutError: No daily deal banner on the home page" in alert

    @pytest.mark.asyncio
    @patch("dealbot.notifications.dispatcher.fetch_exchange_rates", new_callable=AsyncMock)
    async def test_exchange_rate_failure_alerts_operator(self, mock_rates, dispatcher, gateway, stores):
        stores[0].save({"100": ["USD"]})
        mock_rates.side_effect = RuntimeError("rate service down")

        result = await dispatcher.run()

        assert not result.ok
        gateway.send.assert_not_awaited()
        gateway.send_operator_alert.assert_awaited_once()

    @pytest.mark.asyncio
    @patch("dealbot.notifications.dispatcher.fetch_exchange_rates", new_callable=AsyncMock)
    async def test_pings_watchlisted_members(self, mock_rates, dispatcher, gateway, stores):
        mock_rates.return_value = RATES
        stores[0].save({"100": ["USD"]})
        stores[1].save(
            {
                "42": {
                    "id": 42,
                    "name": "Widget",
                    "url": DEAL.url,
                    "users": [{"id": 1, "username": "alice"}],
                }
            }
        )

        result = await dispatcher.run()

        sent = _sent(gateway)
        assert sent[1] == ("100", WATCHLIST_ALERT_HEADER + "@alice\n")
        assert result.pinged == ["100"]
        gateway.is_member.assert_awaited_once_with("100", 1)

    @pytest.mark.asyncio
    @patch("dealbot.notifications.dispatcher.fetch_exchange_rates", new_callable=AsyncMock)
    async def test_only_members_are_mentioned(self, mock_rates, dispatcher, gateway, stores):
        mock_rates.return_value = RATES
        stores[0].save({"100": [], "200": []})
        stores[1].save(
            {
                "42": {
                    "id": 42,
                    "name": "Widget",
                    "url": DEAL.url,
                    "users": [
                        {"id": 1, "username": "alice"},
                        {"id": 2, "username": "bob"},
                    ],
                }
            }
        )

        async def is_member(chat_id, user_id):
            return (chat_id, user_id) in {("100", 1), ("100", 2)}

        gateway.is_member.side_effect = is_member

        result = await dispatcher.run()

        alerts = [(chat, text) for chat, text in _sent(gateway) if text.startswith(WATCHLIST_ALERT_HEADER)]
        assert alerts == [("100", WATCHLIST_ALERT_HEADER + "@alice\n@bob\n")]
        assert result.pinged == ["100"]

    @pytest.mark.asyncio
    @patch("dealbot.notifications.dispatcher.asyncio.sleep", new_callable=AsyncMock)
    @patch("dealbot.notifications.dispatcher.fetch_exchange_rates", new_callable=AsyncMock)
    async def test_no_watchlist_entry_skips_pings(self, mock_rates, mock_sleep, dispatcher, gateway, stores):
        mock_rates.return_value = RATES
        stores[0].save({"100": []})
        stores[1].save({"7": {"id": 7, "name": "Other", "url": DEAL.url, "users": [{"id": 1, "username": "alice"}]}})

        result = await dispatcher.run()

        assert len(_sent(gateway)) == 1
        gateway.is_member.assert_not_awaited()
        mock_sleep.assert_not_awaited()
        assert result.pinged == []
