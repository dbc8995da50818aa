"""Text helpers shared by the tree, the predicates and the content readers."""

from __future__ import annotations

import re
from functools import lru_cache
from typing import Iterable, Pattern

WILDCARD_CHARS = ("*", "?")


def normalize_text(text: str) -> str:
    """Normalize whitespace and trim."""
    text = re.sub(r"\s+", " ", text)
    return text.strip()


def join_texts(parts: Iterable[str]) -> str:
    """Join non-empty text fragments with single spaces."""
    return " ".join(p for p in (normalize_text(part) for part in parts) if p)


def has_wildcard(pattern: str) -> bool:
    return any(ch in pattern for ch in WILDCARD_CHARS)


@lru_cache(maxsize=1024)
def compile_text_pattern(pattern: str, exact: bool, match_case: bool) -> Pattern[str]:
    """
    Compile a text pattern into a regular expression.

    `*` matches any run of characters and `?` exactly one. A pattern with
    wildcards always covers the whole text. Without wildcards, `exact`
    decides between equality and "starts with".
    """
    pattern = normalize_text(pattern)
    regex = "".join(
        ".*" if ch == "*" else "." if ch == "?" else re.escape(ch) for ch in pattern
    )
    if not exact and not has_wildcard(pattern):
        regex += ".*"
    flags = re.DOTALL if match_case else re.DOTALL | re.IGNORECASE
    return re.compile(regex, flags)


def text_matches(
    text: str,
    patterns: Iterable[str],
    *,
    exact: bool = False,
    match_case: bool = False,
) -> bool:
    """Return True if the normalized text matches any of the patterns."""
    text = normalize_text(text or "")
    return any(
        compile_text_pattern(pattern, exact, match_case).fullmatch(text) is not None
        for pattern in patterns
    )
