"""String similarity and url normalization used for duplicate detection."""
from __future__ import annotations


def normalize_url(url: str | None) -> str:
    """Lower-case, trim and drop trailing slashes. Idempotent."""
    return (url or "").lower().strip().rstrip("/")


def _edit_distance(a: str, b: str) -> int:
    # Rows are sized by the shorter string.
    if len(a) < len(b):
        a, b = b, a
    prev = list(range(len(b) + 1))
    curr = [0] * (len(b) + 1)
    for i, ca in enumerate(a, 1):
        curr[0] = i
        for j, cb in enumerate(b, 1):
            cost = 0 if ca == cb else 1
            curr[j] = min(prev[j] + 1, curr[j - 1] + 1, prev[j - 1] + cost)
        prev, curr = curr, prev
    return prev[len(b)]


def similarity(a: str | None, b: str | None) -> float:
    """Normalized Levenshtein similarity in [0, 1].

    Both inputs are lower-cased and trimmed first. Two empty strings are
    equal (1.0); an empty string against a non-empty one scores 0.0.
    """
    s1 = (a or "").lower().strip()
    s2 = (b or "").lower().strip()
    if s1 == s2:
        return 1.0
    if not s1 or not s2:
        return 0.0
    return 1.0 - _edit_distance(s1, s2) / max(len(s1), len(s2))
