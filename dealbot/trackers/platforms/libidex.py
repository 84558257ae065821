from __future__ import annotations

from urllib.parse import urljoin

import httpx
from bs4 import BeautifulSoup, Tag
from loguru import logger

from dealbot.trackers.base import BaseDealSite, FeaturedDeal, ItemMetadata, LayoutError
from dealbot.trackers.utils import parse_price

BASE_URL = "https://libidex.com"

# The site's own (misspelled) class name
BANNER_SELECTOR = ".promtion-banner"
TITLE_SELECTOR = ".page-title span"
OLD_PRICE_SELECTOR = ".old-price .price"
SPECIAL_PRICE_SELECTOR = ".special-price .price"
PRODUCT_ID_SELECTOR = ".price-final_price"
PRODUCT_NAME_SELECTOR = '.product-info-main span[itemprop="name"]'


def _select(soup: BeautifulSoup, selector: str) -> Tag:
    element = soup.select_one(selector)
    if element is None:
        raise LayoutError(f"Element {selector!r} not found")
    return element


def _text(soup: BeautifulSoup, selector: str) -> str:
    text = _select(soup, selector).get_text(strip=True)
    if not text:
        raise LayoutError(f"Element {selector!r} is empty")
    return text


def _product_id(soup: BeautifulSoup) -> int:
    raw = _select(soup, PRODUCT_ID_SELECTOR).get("data-product-id")
    try:
        return int(str(raw).strip())
    except (TypeError, ValueError):
        raise LayoutError(f"Invalid product id {raw!r}") from None


class LibidexSite(BaseDealSite):
    """Scraper for a Magento storefront with a daily-deal banner."""

    def __init__(
        self,
        client: httpx.AsyncClient,
        base_url: str = BASE_URL,
        domain: str = "libidex.com",
        name: str = "Libidex",
    ):
        self.client = client
        self.base_url = base_url
        self.domain = domain
        self.name = name

    async def _get_page(self, url: str) -> BeautifulSoup:
        resp = await self.client.get(url)
        resp.raise_for_status()
        return BeautifulSoup(resp.text, "lxml")

    async def fetch_featured_deal(self) -> FeaturedDeal:
        home = await self._get_page(self.base_url)
        banner = home.select_one(BANNER_SELECTOR)
        if banner is None:
            raise LayoutError("No daily deal banner on the home page")

        link = banner.find("a", href=True)
        if link is None:
            raise LayoutError("Daily deal banner has no link")
        item_url = urljoin(self.base_url, link["href"])

        page = await self._get_page(item_url)
        deal = FeaturedDeal(
            product_id=_product_id(page),
            name=_text(page, TITLE_SELECTOR),
            url=item_url,
            original_price=parse_price(_text(page, OLD_PRICE_SELECTOR)),
            new_price=parse_price(_text(page, SPECIAL_PRICE_SELECTOR)),
        )
        logger.info(f"Featured deal: {deal.name} (#{deal.product_id})")
        return deal

    async def fetch_item_metadata(self, url: str) -> ItemMetadata:
        page = await self._get_page(url)
        product_id = _product_id(page)

        name_el = page.select_one(PRODUCT_NAME_SELECTOR) or page.select_one(TITLE_SELECTOR)
        if name_el is None or not name_el.get_text(strip=True):
            raise LayoutError(f"No product name on {url}")

        return ItemMetadata(
            product_id=product_id,
            name=name_el.get_text(strip=True),
            url=url,
        )
