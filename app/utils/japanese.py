from __future__ import annotations

import re
import unicodedata

_KANJI_RE = re.compile(r"[\u4e00-\u9fff]")
_WHITESPACE_RE = re.compile(r"\s+")


def has_kanji(text: str) -> bool:
    return bool(_KANJI_RE.search(text or ""))


def normalize_japanese_answer(text: str) -> str:
    """NFKC-fold full/half-width forms, trim and collapse whitespace."""
    return _WHITESPACE_RE.sub(" ", unicodedata.normalize("NFKC", text or "").strip())


def collapse_whitespace(text: str) -> str:
    return _WHITESPACE_RE.sub(" ", (text or "").strip())
