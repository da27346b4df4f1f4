from __future__ import annotations

import re

from Levenshtein import distance as levenshtein_distance

"""String similarity used by header reconciliation.

score() is pure and deterministic:
1. normalize both strings (lowercase, drop whitespace and underscores)
2. exact match -> 1.0
3. containment in either direction -> 0.8
4. otherwise 1 - levenshtein / max(len), clamped to [0, 1]
"""

__all__ = [
    "normalize_header",
    "levenshtein_distance",
    "score",
]

EXACT_SCORE = 1.0
CONTAINMENT_SCORE = 0.8

_STRIP_RE = re.compile(r"[_\s]")


def normalize_header(text: str) -> str:
    return _STRIP_RE.sub("", str(text).lower())


def score(expected: str, candidate: str) -> float:
    """Similarity of two header names in [0, 1].

    Examples:
        >>> score("ClientID", "client_id")
        1.0
        >>> score("Skills", "RequiredSkills")
        0.8
    """
    a = normalize_header(expected)
    b = normalize_header(candidate)

    if a == b:
        # 両方空の場合もここで 1.0
        return EXACT_SCORE
    if a in b or b in a:
        return CONTAINMENT_SCORE

    longest = max(len(a), len(b))
    distance = levenshtein_distance(a, b)
    return min(1.0, max(0.0, 1 - distance / longest))
