"""
Identifier Similarity

Fuzzy comparison of counterparty identifiers (merchant names, VPAs, phone
numbers) used by both duplicate detection paths.
"""

import re

DEFAULT_SIMILARITY_THRESHOLD = 0.80

_NON_ALPHANUMERIC = re.compile(r"[^A-Z0-9]")


def normalize_identifier(identifier: str) -> str:
    """Uppercase and strip everything except letters and digits."""
    return _NON_ALPHANUMERIC.sub("", identifier.upper())


def levenshtein_distance(s1: str, s2: str) -> int:
    """Classic edit distance with unit insert, delete and substitute costs."""
    if len(s1) < len(s2):
        s1, s2 = s2, s1

    previous = list(range(len(s2) + 1))
    for i, c1 in enumerate(s1, start=1):
        current = [i]
        for j, c2 in enumerate(s2, start=1):
            if c1 == c2:
                current.append(previous[j - 1])
            else:
                current.append(1 + min(previous[j], current[j - 1], previous[j - 1]))
        previous = current

    return previous[-1]


def similarity_ratio(s1: str, s2: str) -> float:
    """Return 1 - distance / max length, 0.0 when both are empty."""
    max_length = max(len(s1), len(s2))
    if max_length == 0:
        return 0.0
    return 1.0 - levenshtein_distance(s1, s2) / max_length


def is_similar(
    identifier1: str,
    identifier2: str,
    threshold: float = DEFAULT_SIMILARITY_THRESHOLD
) -> bool:
    """Check whether two identifiers refer to the same counterparty.

    Args:
        identifier1: First identifier
        identifier2: Second identifier
        threshold: Minimum similarity ratio for the edit-distance test

    Returns:
        True if one normalized identifier contains the other, or both have at
        least three characters and their similarity ratio meets the threshold.
        An identifier with no letters or digits is similar to nothing.
    """
    a = normalize_identifier(identifier1)
    b = normalize_identifier(identifier2)

    if not a or not b:
        return False

    if a in b or b in a:
        return True

    if len(a) >= 3 and len(b) >= 3:
        return similarity_ratio(a, b) >= threshold

    return False
