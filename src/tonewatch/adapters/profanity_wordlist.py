"""Moderation word list sourced from ``better_profanity``.

The default censor list is a good baseline but flags words that are normal in
some support contexts, so deployments can add and remove entries in
config.json.
"""

from __future__ import annotations

from typing import FrozenSet, Iterable

from better_profanity import profanity

from tonewatch.core.scanner import build_word_list


def default_censor_words() -> FrozenSet[str]:
    """Return the lowercased default ``better_profanity`` censor words."""

    profanity.load_censor_words()
    # Entries are VaryingString objects in recent releases; str() gives the word.
    return build_word_list(str(word) for word in profanity.CENSOR_WORDSET)


def load_word_list(
    extra_words: Iterable[str] = (),
    allow_words: Iterable[str] = (),
) -> FrozenSet[str]:
    """Build the effective word list: defaults plus extras, minus allowlist."""

    words = set(default_censor_words()) | set(build_word_list(extra_words))
    return frozenset(words - build_word_list(allow_words))
