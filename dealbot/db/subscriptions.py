from __future__ import annotations

from typing import Any, Dict, List, Union

ChatId = Union[int, str]


def chat_key(chat_id: ChatId) -> str:
    """JSON object keys are strings, so chat ids are stored as strings."""
    return str(chat_id)


def is_subscribed(doc: Dict[str, Any], chat_id: ChatId) -> bool:
    return chat_key(chat_id) in doc


def subscribe(doc: Dict[str, Any], chat_id: ChatId, defaults: List[str]) -> bool:
    """Ensure the chat has a record. Returns True if one was created."""
    key = chat_key(chat_id)
    if key in doc:
        return False
    doc[key] = list(defaults)
    return True


def unsubscribe(doc: Dict[str, Any], chat_id: ChatId) -> bool:
    """Drop the chat's record. Returns True if one existed."""
    return doc.pop(chat_key(chat_id), None) is not None


def set_currencies(doc: Dict[str, Any], chat_id: ChatId, codes: List[str]) -> None:
    doc[chat_key(chat_id)] = list(codes)
