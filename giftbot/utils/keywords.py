# =============================================
# File: giftbot/utils/keywords.py
# Purpose: Keyword extraction for relevance scoring (lowercase, split, filter)
# =============================================
from __future__ import annotations
import re
from typing import FrozenSet

MIN_KEYWORD_LEN = 4

STOP_WORDS: FrozenSet[str] = frozenset(
    {"gift", "toys", "looking", "want", "recommend", "need", "please"}
)

# Whitespace, ASCII punctuation (hyphen and apostrophe stay inside words),
# typographic quotes/ellipsis and the Bengali danda.
_SPLIT_RE = re.compile(r"[\s!\"#$%&()*+,./:;<=>?@\[\\\]^_`{|}~“”‘’«»…।॥]+")


def tokenize(text: str) -> list[str]:
    if not text:
        return []
    return [tok for tok in _SPLIT_RE.split(text.lower()) if tok]


def extract_keywords(text: str) -> FrozenSet[str]:
    """
    Candidate keywords of a free-text reply.
    Tokens of 3 characters or fewer and stop words are dropped.
    """
    return frozenset(
        tok for tok in tokenize(text)
        if len(tok) >= MIN_KEYWORD_LEN and tok not in STOP_WORDS
    )
