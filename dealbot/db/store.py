from __future__ import annotations

import json
from pathlib import Path
from typing import Any, Dict, Union

from loguru import logger

from dealbot.config import get_settings


class JsonStore:
    """A whole-document JSON file.

    Every ``load`` reads and parses the full file and every ``save``
    rewrites it from the given mapping. Nothing is cached between calls
    and there is no locking: concurrent load/modify/save sequences can
    lose updates (last write wins).
    """

    def __init__(self, path: Union[str, Path]):
        self.path = Path(path)

    def ensure_exists(self) -> None:
        """Create the file as an empty JSON object if it is missing."""
        if self.path.exists():
            return
        self.path.parent.mkdir(parents=True, exist_ok=True)
        self.save({})
        logger.info(f"Initialized empty store at {self.path}")

    def load(self) -> Dict[str, Any]:
        self.ensure_exists()
        with self.path.open("r", encoding="utf-8") as f:
            return json.load(f)

    def save(self, doc: Dict[str, Any]) -> None:
        with self.path.open("w", encoding="utf-8") as f:
            json.dump(doc, f, indent=2, ensure_ascii=False)


def get_subscription_store() -> JsonStore:
    return JsonStore(get_settings().subscriptions_path)


def get_watchlist_store() -> JsonStore:
    return JsonStore(get_settings().watchlist_path)


def init_stores() -> None:
    """Create both store files on first run."""
    get_subscription_store().ensure_exists()
    get_watchlist_store().ensure_exists()
