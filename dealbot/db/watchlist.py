from __future__ import annotations

from typing import Any, Dict, List, Optional

Entry = Dict[str, Any]


def get_entry(doc: Dict[str, Any], product_id: int) -> Optional[Entry]:
    return doc.get(str(product_id))


def has_user(entry: Entry, username: str) -> bool:
    return any(user.get("username") == username for user in entry["users"])


def add_watcher(
    doc: Dict[str, Any],
    product_id: int,
    name: str,
    url: str,
    user_id: int,
    username: str,
) -> bool:
    """Add a user to a product's watchlist entry, creating the entry if needed.

    Idempotent on username.

    Returns:
        True if the user was appended, False if they were already present.
    """
    key = str(product_id)
    if key not in doc:
        doc[key] = {"id": product_id, "name": name, "url": url, "users": []}
    entry = doc[key]
    if has_user(entry, username):
        return False
    entry["users"].append({"id": user_id, "username": username})
    return True


def remove_watcher(doc: Dict[str, Any], product_id: int, username: str) -> bool:
    """Remove a user from a product's entry.

    The entry is deleted once its last user is gone.

    Returns:
        True if the user was watching the product, False otherwise.
    """
    key = str(product_id)
    entry = doc.get(key)
    if entry is None or not has_user(entry, username):
        return False

    entry["users"] = [u for u in entry["users"] if u.get("username") != username]
    if not entry["users"]:
        del doc[key]
    return True


def entries_for_user(doc: Dict[str, Any], username: str) -> List[Entry]:
    return [entry for entry in doc.values() if has_user(entry, username)]
