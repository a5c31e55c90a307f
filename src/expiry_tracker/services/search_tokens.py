"""Search token generation for product names and tags."""

import re

_SPLIT = re.compile(r"[\W_]+")
MIN_TOKEN_LENGTH = 2


def _words(text: str | None) -> list[str]:
    if not text:
        return []
    cleaned = text.strip().lower()
    if not cleaned:
        return []
    return [word for word in _SPLIT.split(cleaned) if len(word) >= MIN_TOKEN_LENGTH]


def _dedupe(tokens: list[str]) -> list[str]:
    return list(dict.fromkeys(tokens))


def tokenize(text: str | None) -> list[str]:
    """Return prefix tokens for every word of ``text``.

    ``"Whole Milk"`` yields ``wh, who, whol, whole, mi, mil, milk``.
    """
    tokens: list[str] = []
    for word in _words(text):
        tokens.extend(word[:end] for end in range(MIN_TOKEN_LENGTH, len(word) + 1))
    return _dedupe(tokens)


def tokenize_tags(tags: list[str] | None) -> list[str]:
    """Return the half-length fragment and the full word for each tag word."""
    tokens: list[str] = []
    for tag in tags or []:
        for word in _words(tag):
            half = word[: len(word) // 2]
            if len(half) >= MIN_TOKEN_LENGTH:
                tokens.append(half)
            tokens.append(word)
    return _dedupe(tokens)


def build_search_tokens(name_normalized: str | None, tags: list[str] | None) -> list[str]:
    """Combine name and tag tokens, name tokens first."""
    return _dedupe(tokenize(name_normalized) + tokenize_tags(tags))


def query_terms(query: str | None) -> list[str]:
    """Split a search query into terms comparable with stored tokens."""
    return _dedupe(_words(query))
