# Fichier : app/utils/normalizer.py
"""Reconcile loosely-shaped LLM objects into canonical values.

Models drift between ``promptKo``, ``prompt_ko`` and ``prompt`` from one call
to the next, so every logical field is described by an ordered tuple of
accepted spellings (camelCase first). Nothing here raises: degenerate input
yields empty values and the callers decide what is fatal.
"""

from __future__ import annotations

from typing import Any, Collection, Iterable, Mapping, Sequence

from pydantic import BaseModel

MAX_TARGET_IDS = 3

PROMPT_KO_KEYS = ("promptKo", "prompt_ko", "prompt")
MODEL_ANSWER_JA_KEYS = ("modelAnswerJa", "model_answer_ja", "modelAnswer", "model_answer")
ALT_ANSWER_JA_KEYS = ("altAnswerJa", "alt_answer_ja", "altAnswer", "alt_answer")
TARGET_ITEM_IDS_KEYS = ("targetItemIds", "target_item_ids", "targetIds", "target_ids")

ITEM_KEY_KEYS = ("key", "itemKey", "item_key")
JA_SURFACE_KEYS = ("jaSurface", "ja_surface", "surface")
KO_MEANING_KEYS = ("koMeaning", "ko_meaning", "meaning")
MEMO_KEYS = ("memo", "note")
LIST_NAME_KEYS = ("listName", "list_name", "name")
TARGET_ITEM_KEYS_KEYS = ("targetItemKeys", "target_item_keys", "targetKeys", "target_keys")


def as_mapping(obj: Any) -> Mapping[str, Any]:
    """Return a plain mapping view of a dict or a pydantic model (extras included)."""

    if isinstance(obj, BaseModel):
        return obj.model_dump(exclude_none=True)
    if isinstance(obj, Mapping):
        return obj
    return {}


def pick_field(obj: Any, candidate_keys: Sequence[str]) -> str:
    data = as_mapping(obj)
    for key in candidate_keys:
        value = data.get(key)
        if value is None or isinstance(value, (dict, list)):
            continue
        text = str(value).strip()
        if text:
            return text
    return ""


def pick_raw(obj: Any, candidate_keys: Sequence[str]) -> Any:
    """Return the first present (non-None) raw value, used for list-valued fields."""

    data = as_mapping(obj)
    for key in candidate_keys:
        value = data.get(key)
        if value is not None:
            return value
    return None


def normalize_target_ids(
    raw: Any,
    valid_ids: Collection[str],
    alias_to_id: Mapping[str, str] | None = None,
) -> list[str]:
    """Filter ``raw`` down to at most three distinct members of ``valid_ids``.

    Entries are stringified and trimmed; an entry that is not a valid id but
    matches a key of ``alias_to_id`` (e.g. a Japanese surface echoed instead
    of the uuid) is replaced by the mapped id. First occurrence wins.
    """

    if not isinstance(raw, (list, tuple)):
        return []

    resolved: list[str] = []
    for entry in raw:
        if entry is None:
            continue
        value = str(entry).strip()
        if value not in valid_ids and alias_to_id:
            value = alias_to_id.get(value, value)
        if value not in valid_ids or value in resolved:
            continue
        resolved.append(value)
        if len(resolved) >= MAX_TARGET_IDS:
            break
    return resolved


def pick_fallback_target_ids(valid_ids: Iterable[str]) -> list[str]:
    first = next(iter(valid_ids), None)
    return [first] if first else []
