"""Word-level text helpers shared by matching and pattern lookup."""

import re
from typing import FrozenSet, Iterable, List, Set

_WORD_RE = re.compile(r"[a-z0-9]+")

STOPWORDS: FrozenSet[str] = frozenset(
    {
        "a", "an", "and", "are", "as", "at", "be", "but", "by", "for", "from",
        "has", "have", "in", "is", "it", "its", "not", "of", "on", "or", "our",
        "that", "the", "their", "this", "to", "was", "were", "with",
    }
)


def tokenize(text: str) -> List[str]:
    """Split text into lowercase alphanumeric words."""
    return _WORD_RE.findall(text.lower())


def keywords(text: str) -> Set[str]:
    """Distinct words of ``text`` without stopwords."""
    return {word for word in tokenize(text) if word not in STOPWORDS}


def jaccard(left: Iterable[str], right: Iterable[str]) -> float:
    """Jaccard overlap of two collections; 0.0 when both are empty."""
    left_set, right_set = set(left), set(right)
    union = left_set | right_set
    if not union:
        return 0.0
    return len(left_set & right_set) / len(union)
