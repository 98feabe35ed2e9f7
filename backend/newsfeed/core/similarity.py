"""
Edit-distance based headline similarity.
"""
from __future__ import annotations


def edit_distance(a: str, b: str) -> int:
    """
    Levenshtein distance between two strings.

    Uses two rolling rows, so memory is O(min(len(a), len(b))) while time
    stays O(len(a) * len(b)).

    Args:
        a: First string
        b: Second string

    Returns:
        Minimum number of single-character insertions, deletions and
        substitutions turning ``a`` into ``b``
    """
    if a == b:
        return 0
    if len(a) < len(b):
        a, b = b, a
    if not b:
        return len(a)

    previous = list(range(len(b) + 1))
    for i, char_a in enumerate(a, start=1):
        current = [i]
        for j, char_b in enumerate(b, start=1):
            if char_a == char_b:
                current.append(previous[j - 1])
            else:
                current.append(1 + min(previous[j - 1], previous[j], current[j - 1]))
        previous = current
    return previous[-1]


def similarity(a: str, b: str) -> float:
    """
    Normalized similarity between two headlines.

    Both strings are lower-cased and trimmed first. The score is
    ``1 - distance / max(len(a), len(b))``, and 1.0 when the normalized
    strings are identical (including both empty).

    Args:
        a: First headline
        b: Second headline

    Returns:
        Similarity in [0.0, 1.0]
    """
    s1 = (a or "").lower().strip()
    s2 = (b or "").lower().strip()

    if s1 == s2:
        return 1.0

    longest = max(len(s1), len(s2))
    return 1.0 - edit_distance(s1, s2) / longest
