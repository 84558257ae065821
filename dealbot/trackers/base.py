from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass


class DealBotError(Exception):
    """Base class for errors raised by the bot itself."""


class LayoutError(DealBotError):
    """The fetched page does not have the expected structure."""


class ExchangeRateError(DealBotError):
    """The exchange-rate service returned an unusable response."""


@dataclass
class FeaturedDeal:
    product_id: int
    name: str
    url: str
    original_price: float
    new_price: float


@dataclass
class ItemMetadata:
    product_id: int
    name: str
    url: str


class BaseDealSite(ABC):
    name: str = ""
    domain: str = ""

    @abstractmethod
    async def fetch_featured_deal(self) -> FeaturedDeal:
        """Fetch the product currently promoted as the daily deal."""
        ...

    @abstractmethod
    async def fetch_item_metadata(self, url: str) -> ItemMetadata:
        """Resolve a product page URL to its id and display name."""
        ...
