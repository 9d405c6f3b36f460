"""Text normalization shared by every matching routine."""

from __future__ import annotations

import re
import unicodedata

_NON_ALNUM = re.compile(r"[^A-Z0-9]+")
_TOKEN_SPLIT = re.compile(r"[\W_]+")


def normalize_text(text: str | None) -> str:
    """Strip surrounding whitespace and upper-case.

    Used for codes, descriptions, keywords and vehicle series.
    """
    if not text:
        return ""
    return str(text).strip().upper()


def normalize_header(text: str | None) -> str:
    """Normalize a column header: upper-case ASCII letters and digits only.

    Accents are folded first so "Código" and "CODIGO" compare equal.
    """
    if not text:
        return ""
    folded = unicodedata.normalize("NFKD", str(text))
    folded = "".join(ch for ch in folded if not unicodedata.combining(ch))
    return _NON_ALNUM.sub("", folded.upper())


def tokenize(text: str | None) -> list[str]:
    """Split normalized text into alphanumeric tokens."""
    normalized = normalize_text(text)
    return [token for token in _TOKEN_SPLIT.split(normalized) if token]


def first_tokens(text: str | None, count: int) -> str:
    """Join the first `count` whitespace-separated tokens of normalized text."""
    parts = normalize_text(text).split()
    return " ".join(parts[:count])
