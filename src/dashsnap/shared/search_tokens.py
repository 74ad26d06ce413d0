"""Search tokenization utilities.

Both indexing and querying run through the same normalization so that a
query token matches an indexed token exactly.

Limitations:
- This is a term-based index (no stemming, no phrase matching).
"""

from __future__ import annotations

import re

# Unicode-aware "word" tokens, excluding underscores.
_WORD_RE = re.compile(r"[^\W_]+", flags=re.UNICODE)

# Common English stop words to ignore for indexing and queries.
_STOP_WORDS = {
    "a",
    "an",
    "and",
    "are",
    "as",
    "at",
    "be",
    "by",
    "for",
    "from",
    "in",
    "is",
    "it",
    "of",
    "on",
    "or",
    "the",
    "to",
    "was",
    "with",
}

MAX_TOKEN_LENGTH = 128
PREFIX_TOKEN_LENGTH = 6


def _normalize_token(token: str) -> str | None:
    t = token.casefold()
    if len(t) < 2:
        return None
    if t in _STOP_WORDS:
        return None
    if len(t) > MAX_TOKEN_LENGTH:
        t = t[:MAX_TOKEN_LENGTH]
    return t


def _expand_token(token: str) -> set[str]:
    tokens = {token}
    # Add a prefix token to improve recall for long and compound words.
    if len(token) >= 8:
        tokens.add(token[:PREFIX_TOKEN_LENGTH])
    return tokens


def _tokens(text: str, max_unique_tokens: int) -> list[str]:
    tokens: set[str] = set()

    for raw in _WORD_RE.findall(text):
        normalized = _normalize_token(raw)
        if normalized is None:
            continue
        for expanded in _expand_token(normalized):
            tokens.add(expanded)
            if len(tokens) >= max_unique_tokens:
                break
        if len(tokens) >= max_unique_tokens:
            break

    return sorted(tokens)


def tokens_from_text(text: str, *, max_unique_tokens: int = 20_000) -> list[str]:
    """Extract unique, sorted tokens for indexing a document."""
    return _tokens(text, max_unique_tokens)


def tokens_from_query(query: str, *, max_unique_tokens: int = 32) -> list[str]:
    """Extract unique, sorted tokens for a user query."""
    return _tokens(query, max_unique_tokens)
