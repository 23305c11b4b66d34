from __future__ import annotations

import hashlib
import json
from typing import Iterable, Mapping, Optional, Tuple, Union

from ttlstate.utils.types import ConversationItem

NAMESPACE = "translation"

ItemLike = Union[ConversationItem, Tuple[str, str], Mapping[str, str]]


def _item_fields(item: ItemLike) -> Tuple[str, str]:
    if isinstance(item, ConversationItem):
        return item.speaker, item.content
    if isinstance(item, Mapping):
        # message dicts as delivered by the chat platform
        return str(item.get("user", "")), str(item.get("text", ""))
    speaker, content = item
    return str(speaker), str(content)


def canonical_form(items: Iterable[ItemLike], target_role: str, language: str, style: str) -> str:
    """
    Unambiguous serialisation hashed by generate_key():
        [[[speaker, content], ...], role, language, style]  (compact JSON)
    Every field is a quoted JSON string, so delimiters inside message text
    (e.g. Slack's <url|label>) cannot shift field boundaries.
    """
    messages = [[speaker, content] for speaker, content in map(_item_fields, items)]
    return json.dumps(
        [messages, str(target_role), str(language), str(style)],
        ensure_ascii=False,
        separators=(",", ":"),
    )


def generate_key(items: Iterable[ItemLike], target_role: str, language: str, style: str) -> str:
    """
    Deterministic cache key for a computation over `items`.

    Items keep their given order (same messages reordered -> different key).
    Returns "translation:<sha256 hex of canonical_form(...)>".
    """
    raw = canonical_form(items, target_role, language, style)
    digest = hashlib.sha256(raw.encode("utf-8")).hexdigest()
    return f"{NAMESPACE}:{digest}"


def generate_prefix(role: Optional[str] = None, language: Optional[str] = None) -> str:
    """
    Prefix for KeyedResultCache.delete_by_prefix():
      ()                -> "translation"
      (role)            -> "translation:<role>"
      (role, language)  -> "translation:<role>:<language>"
      (language=...)    -> "translation:<language>"
    """
    parts = [NAMESPACE]
    if role:
        parts.append(role)
    if language:
        parts.append(language)
    return ":".join(parts)
