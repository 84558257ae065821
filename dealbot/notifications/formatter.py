"""HTML message bodies for command replies and deal alerts."""
from __future__ import annotations

from html import escape
from typing import Dict, Iterable, List, Optional

from loguru import logger

from dealbot.config import get_settings
from dealbot.currencies import symbol_for
from dealbot.trackers.base import FeaturedDeal, ItemMetadata

WATCHLIST_ALERT_HEADER = "<b>This item is on someone's watchlist!</b>\n\n"


def format_number(value: float) -> str:
    """Render a price the way the site shows it: no trailing ``.0``."""
    if float(value).is_integer():
        return str(int(value))
    return repr(float(value))


def _credit() -> str:
    return f"<i>{get_settings().bot_credit}</i>"


def _item_link(item: ItemMetadata) -> str:
    return (
        f'<a href="{escape(item.url)}"><b>{escape(item.name)}</b> '
        f"(#{item.product_id})</a>"
    )


def format_welcome(chat_type: Optional[str]) -> str:
    site = get_settings().site_name
    if chat_type == "channel":
        audience = f"This channel will now get a post every time the {site} Daily Deal is updated."
    elif chat_type in ("group", "supergroup"):
        audience = f"This group will now get a message every time the {site} Daily Deal is updated."
    else:
        audience = f"This bot will send you a private message every time the {site} Daily Deal is updated."

    return (
        "<b>Welcome!</b>\n\n"
        f"{audience} Add things you're looking to buy using "
        f"<code>/add &lt;{site} Item URL&gt;</code> and get a special ping when "
        "that item is the Daily Deal!\n\n"
        "You can also change the currencies for the auto price conversion. Most "
        "ISO 4217 currencies are supported. Use "
        "<code>/currency &lt;ISO 4217 Codes&gt;</code> to change currencies.\n\n"
        "<i>For example...</i>\n"
        "<code>/currency USD EUR CAD</code> will convert the price to US Dollars, "
        "Euros, and Canadian Dollars at the current exchange rate.\n\n"
        "This bot also works in groups and channels! Invite it so your friends "
        "get alerted of the new Daily Deal too.\n\n"
        "/help for all commands.\n\n"
        f"{_credit()}"
    )


def format_goodbye() -> str:
    return (
        "<b>Unsubscribed from Daily Deal alerts.</b>\n"
        "You will no longer receive alerts when new Daily Deals have been posted. "
        "Use <code>/start</code> to resubscribe.\n\n"
        "Thank you for using me!\n\n"
        f"{_credit()}"
    )


def format_help() -> str:
    site = get_settings().site_name
    return (
        f"<b>{site} Deals Bot</b>\n"
        f"<i>A bot to fetch and alert Telegram chats of new items in {site}'s Daily Deal.</i>\n\n"
        "<b>Commands:</b>\n"
        "- <code>/start</code>: Subscribes your DM/group/channel to Daily Deal alerts.\n"
        "- <code>/currency &lt;ISO 4217 Codes&gt;</code>: Changes auto price conversion "
        "currencies, e.g. USD EUR CAD. Leave empty to turn conversion off.\n"
        "- <code>/watchlist</code> or <code>/list</code>: View your personal item watchlist.\n"
        f"- <code>/add &lt;{site} Item URL&gt;</code>: Add an item to your watchlist. "
        "Get pinged when it becomes the Daily Deal!\n"
        f"- <code>/remove &lt;{site} Item URL&gt;</code>: Removes an item from your watchlist.\n"
        "- <code>/delete</code>: Unsubscribes your DM/group/channel from Daily Deal alerts.\n"
        "- <code>/help</code>: Shows this message.\n\n"
        f"{_credit()}"
    )


def format_not_subscribed() -> str:
    return "Not subscribed to Daily Deal alerts! Please use /start first."


def format_url_usage(command: str) -> str:
    site = get_settings().site_name
    return (
        f"<i>Argument is not a valid {site} URL!</i>\n\n"
        f"<b>Usage:</b> <code>/{command} &lt;{site} Item URL&gt;</code>"
    )


def format_parse_failure() -> str:
    site = get_settings().site_name
    return f"Could not parse {site} item. Are you sure you have a valid {site} URL?"


def format_username_required() -> str:
    return (
        "<i>You need a Telegram username to use the watchlist.</i> "
        "Pings are sent as <code>@username</code> mentions."
    )


def format_added(item: ItemMetadata) -> str:
    return (
        f"{_item_link(item)}<i> added to your personal watchlist! "
        "You will get a ping when your item is the daily deal.</i>"
    )


def format_already_watching(item: ItemMetadata) -> str:
    return f"{_item_link(item)}<i> is already on your watchlist.</i>"


def format_removed(item: ItemMetadata) -> str:
    return f"{_item_link(item)}<i> removed from your personal watchlist.</i>"


def format_not_watching(item: ItemMetadata) -> str:
    return f"{_item_link(item)}<i> is not on your watchlist.</i>"


def format_watchlist(entries: List[Dict]) -> str:
    if not entries:
        return "<i>You have no items on your watchlist.</i>"
    lines = ["<i>Items on your watchlist:</i>", ""]
    for entry in entries:
        lines.append(
            f'- <a href="{escape(entry["url"])}">{escape(entry["name"])} (#{entry["id"]})</a>'
        )
    return "\n".join(lines)


def format_currency_usage(code: str) -> str:
    return (
        f"<i>{escape(code)} is not a valid ISO 4217 currency!</i>\n\n"
        "<b>Usage:</b> <code>/currency &lt;ISO 4217 Codes&gt;</code>\n"
        "To add multiple currencies, separate each currency code with a space. "
        "Ex: <code>/currency USD EUR</code>"
    )


def format_currencies_updated(codes: List[str]) -> str:
    if not codes:
        return "<i>Price conversion turned off.</i> Only the original price will be shown."
    return f"<i>Prices will now be converted to:</i> {', '.join(codes)}"


def format_deal_message(
    deal: FeaturedDeal,
    currencies: Iterable[str],
    rates: Dict[str, float],
    base_currency: str = "GBP",
) -> str:
    """Build the daily deal alert for one chat.

    The first price line is in the site's own currency with the raw
    prices. Every configured currency then gets its own converted line
    with two decimals.
    """
    settings = get_settings()
    base = base_currency.upper()
    base_symbol = symbol_for(base)

    lines = [
        f"<i>A new {settings.site_name} Daily Deal item has been posted!</i>",
        "",
        f'<b><a href="{escape(deal.url)}">{escape(deal.name)} (#{deal.product_id})</a></b>',
        f"{base} <s>{base_symbol}{format_number(deal.original_price)}</s> -> "
        f"{base_symbol}{format_number(deal.new_price)}",
    ]

    for code in currencies:
        code = code.upper()
        rate = rates.get(code)
        if rate is None:
            logger.warning(f"No exchange rate for {code}, skipping conversion")
            continue
        symbol = symbol_for(code)
        lines.append(
            f"{code} {symbol}{deal.original_price * rate:.2f} -> "
            f"{symbol}{deal.new_price * rate:.2f}"
        )

    lines.extend(["", _credit()])
    return "\n".join(lines)


def format_watchlist_alert(usernames: Iterable[str]) -> str:
    """Mention lines for watchers; empty string when nobody is mentioned."""
    mentions = "".join(f"@{name}\n" for name in usernames)
    if not mentions:
        return ""
    return WATCHLIST_ALERT_HEADER + mentions


def format_operator_alert(error: BaseException) -> str:
    return (
        "Help! I'm broken!\n\n"
        f"<code>{escape(type(error).__name__)}: {escape(str(error))}</code>\n\n"
        "<i>Please view the logs for more details.</i>"
    )
