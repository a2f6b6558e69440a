"""Word-list scanning (core domain)."""

from __future__ import annotations

import re
from typing import FrozenSet, Iterable, Optional

_TOKEN_PATTERN = re.compile(r"\w+")


def build_word_list(words: Optional[Iterable[object]]) -> FrozenSet[str]:
    """Normalize a raw word list once so per-message scanning stays cheap.

    Non-strings and blank entries are dropped; everything is lowercased.
    """

    if not words:
        return frozenset()
    return frozenset(
        word.strip().lower() for word in words if isinstance(word, str) and word.strip()
    )


def tokenize(text: str) -> list[str]:
    return _TOKEN_PATTERN.findall(text)


def find_matched_terms(text: object, word_list: Optional[Iterable[str]]) -> FrozenSet[str]:
    """Return the tokens of ``text`` that appear in ``word_list``.

    Matching logic:
    - Tokens are runs of word characters, so punctuation never matches.
    - Comparison is case-insensitive.
    - Each term is reported once, in the casing of its first occurrence.
    """

    if not isinstance(text, str) or not text:
        return frozenset()
    words = word_list if isinstance(word_list, frozenset) else build_word_list(word_list)
    if not words:
        return frozenset()

    found: dict[str, str] = {}
    for token in tokenize(text):
        lowered = token.lower()
        if lowered in words and lowered not in found:
            found[lowered] = token
    return frozenset(found.values())
