"""Token helpers shared by the evidence gatherer, topic scoping and insights."""
import re
from typing import Iterable, List

from shared.utils.constants import CONCEPT_STOP_WORDS, DEFAULT_CONCEPT

_NON_ALNUM = re.compile(r"[^a-z0-9\s]")


def _raw_tokens(text: str) -> List[str]:
    return _NON_ALNUM.sub(" ", text.lower()).split()


def tokenize(text: str, stop_words: Iterable[str], limit: int) -> List[str]:
    """
    Lowercase alphanumeric tokens longer than two characters.

    Stop words are removed, duplicates dropped keeping first occurrence,
    and at most `limit` tokens are returned.
    """
    stop = set(stop_words)
    seen: List[str] = []
    for token in _raw_tokens(text):
        if len(token) > 2 and token not in stop and token not in seen:
            seen.append(token)
    return seen[:limit]


def match_score(text: str, tokens: Iterable[str]) -> int:
    """Number of tokens that appear as substrings of the lowercased text."""
    lowered = (text or "").lower()
    return sum(1 for token in tokens if token in lowered)


def dedupe_labels(labels: Iterable[str]) -> List[str]:
    """Trim labels and drop case-insensitive duplicates, preserving order."""
    seen = set()
    result = []
    for label in labels:
        cleaned = str(label).strip()
        key = cleaned.lower()
        if key in seen:
            continue
        seen.add(key)
        result.append(cleaned)
    return result


def infer_concept_from_title(title: str) -> str:
    """
    Turn an assignment title into a short concept hint.

    >>> infer_concept_from_title("Unit 3 Quiz: Solving Linear Systems")
    'solving linear systems'
    """
    tokens = [
        token for token in _raw_tokens(title)
        if len(token) > 2 and token not in CONCEPT_STOP_WORDS
    ]
    if not tokens:
        return DEFAULT_CONCEPT
    return " ".join(tokens[:4])
