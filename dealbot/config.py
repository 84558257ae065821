from functools import lru_cache
from pathlib import Path
from typing import List, Optional

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
    )

    # Telegram
    telegram_bot_token: str = ""
    alert_chat_id: str = ""  # operator channel for scrape failures

    # Storage
    data_dir: str = "./data"
    subscriptions_file: str = "subscriptions.json"
    watchlist_file: str = "watchlist.json"

    # Deal site
    site_name: str = "Libidex"
    site_url: str = "https://libidex.com"
    site_domain: str = "libidex.com"
    http_timeout: Optional[float] = None

    # Currency conversion
    exchange_rate_url: str = "https://open.er-api.com/v6/latest/{base}"
    base_currency: str = "GBP"
    default_currencies: str = "USD,EUR"

    # Schedule
    deal_hour: int = 21
    deal_minute: int = 0
    timezone: str = "UTC"
    watchlist_ping_delay: float = 5.0

    # Messages
    bot_credit: str = 'Bot created by <a href="https://pupbodhi.com">Pup_Bodhi</a>'

    log_level: str = "INFO"

    @property
    def subscriptions_path(self) -> Path:
        return Path(self.data_dir) / self.subscriptions_file

    @property
    def watchlist_path(self) -> Path:
        return Path(self.data_dir) / self.watchlist_file

    @property
    def default_currency_list(self) -> List[str]:
        return [
            code.strip().upper()
            for code in self.default_currencies.split(",")
            if code.strip()
        ]


@lru_cache
def get_settings() -> Settings:
    return Settings()
