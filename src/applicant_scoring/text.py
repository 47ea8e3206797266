"""Shared text-processing utilities.

Pure functions with no domain dependencies — safe to import from any
layer (CLI, pipeline, scoring rules).
"""

from __future__ import annotations

import re

from rapidfuzz.distance import Levenshtein

# Characters that separate tokens.  ``#`` and ``+`` are kept inside tokens
# so that "c#" and "c++" survive tokenisation.
_TOKEN_SPLIT = re.compile(r"[ .,;:!?\-_/\\()\[\]{}\n\r\t]+")

QUESTION_STOPWORDS = frozenset({
    "the", "a", "an", "and", "or", "but", "in", "on", "at", "to", "for", "of",
    "with", "by", "is", "are", "was", "were", "be", "been", "have", "has",
    "had", "do", "does", "did", "will", "would", "could", "should", "may",
    "might", "can", "what", "how", "when", "where", "why", "describe",
    "explain", "tell", "your",
})

MAX_FUZZY_DISTANCE = 2
_MIN_CONTAINMENT_LEN = 5


def tokenize(text: str) -> list[str]:
    """Split *text* on whitespace/punctuation and drop single-character tokens.

    The input is lowercased.  Order and duplicates are preserved so callers
    can count repeated hits.

    >>> tokenize("Led a team of 5, shipped v2.")
    ['led', 'team', 'of', 'shipped', 'v2']
    """
    return [tok for tok in _TOKEN_SPLIT.split(text.lower()) if len(tok) > 1]


def question_keywords(question_text: str) -> list[str]:
    """Distinct, stopword-filtered keywords (length > 2) from a question, in order."""
    seen: set[str] = set()
    keywords: list[str] = []
    for tok in tokenize(question_text):
        if tok in QUESTION_STOPWORDS or len(tok) <= 2 or tok in seen:
            continue
        seen.add(tok)
        keywords.append(tok)
    return keywords


def is_fuzzy_match(word: str, keyword: str) -> bool:
    """Loose equality between an answer token and a question keyword.

    Matches on exact equality, on substring containment when both words
    are at least five characters long, or on an edit distance of at most
    :data:`MAX_FUZZY_DISTANCE`.
    """
    if word == keyword:
        return True
    if len(word) >= _MIN_CONTAINMENT_LEN and len(keyword) >= _MIN_CONTAINMENT_LEN:
        if keyword in word or word in keyword:
            return True
    distance = Levenshtein.distance(word, keyword, score_cutoff=MAX_FUZZY_DISTANCE)
    return distance <= MAX_FUZZY_DISTANCE


def count_pattern_hits(patterns: tuple[re.Pattern[str], ...], text: str) -> int:
    """Number of *patterns* that match anywhere in *text* (each counts once)."""
    return sum(1 for pattern in patterns if pattern.search(text))


def count_substring_hits(terms: tuple[str, ...], text: str) -> int:
    """Number of *terms* that occur as substrings of *text* (each counts once)."""
    return sum(1 for term in terms if term in text)
