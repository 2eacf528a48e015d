"""Approximate command name matching used for suggestions."""

from __future__ import annotations


def levenshtein_distance(left: str, right: str, max_distance: int | None = None) -> int:
    """Return the edit distance between ``left`` and ``right``.

    Insertions, deletions and substitutions cost one; transpositions are not
    special-cased. When ``max_distance`` is given the computation stops as soon
    as every cell of a row exceeds it, and ``max_distance + 1`` is returned.
    """

    if left == right:
        return 0
    if len(left) < len(right):
        left, right = right, left
    if max_distance is not None and len(left) - len(right) > max_distance:
        return max_distance + 1
    if not right:
        return len(left)

    previous = list(range(len(right) + 1))
    for i, lch in enumerate(left, start=1):
        current = [i]
        for j, rch in enumerate(right, start=1):
            cost = 0 if lch == rch else 1
            current.append(min(previous[j] + 1, current[j - 1] + 1, previous[j - 1] + cost))
        if max_distance is not None and min(current) > max_distance:
            return max_distance + 1
        previous = current
    return previous[-1]


def maybe_match_name(candidate: str, typed: str) -> bool:
    """Tell whether ``typed`` looks like a mistyped ``candidate``.

    A one-edit typo matches, and so does a truncated or extended name (one
    string contained in the other with a different length). Identical strings
    never match here; exact hits are handled by the resolver.
    """

    if levenshtein_distance(candidate, typed, max_distance=1) == 1:
        return True
    if len(candidate) > len(typed) and typed in candidate:
        return True
    if len(typed) > len(candidate) and candidate in typed:
        return True
    return False
