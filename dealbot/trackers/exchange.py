from __future__ import annotations

from typing import Dict

import httpx
from loguru import logger

from dealbot.config import get_settings
from dealbot.trackers.base import ExchangeRateError


async def fetch_exchange_rates(
    client: httpx.AsyncClient, base_currency: str
) -> Dict[str, float]:
    """Fetch current rates against ``base_currency``.

    Returns:
        Mapping of currency code to multiplier (1 base unit = rate units).
    """
    url = get_settings().exchange_rate_url.format(base=base_currency.upper())
    resp = await client.get(url)
    resp.raise_for_status()
    data = resp.json()

    rates = data.get("rates") if isinstance(data, dict) else None
    if not isinstance(rates, dict):
        raise ExchangeRateError(f"No rates in exchange rate response for {base_currency}")

    logger.debug(f"Fetched {len(rates)} exchange rates for {base_currency}")
    return {code.upper(): float(rate) for code, rate in rates.items()}
