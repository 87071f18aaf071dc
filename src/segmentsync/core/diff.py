"""Similarity-based line alignment for change highlighting.

Lines that share a contiguous run of at least two characters count as "the
same line, edited" rather than a delete plus an add, which is closer to what
a user expects when comparing a document against its saved baseline.
"""

from __future__ import annotations

from typing import List, Optional, Sequence, Tuple

from segmentsync.core.models import ChangeReport, DiffAlignment


DEFAULT_MIN_COMMON = 2


def longest_common_substring_length(a: str, b: str) -> int:
    """Length of the longest common contiguous substring, O(len(a)·len(b))."""
    if not a or not b:
        return 0
    prev = [0] * (len(b) + 1)
    longest = 0
    for i in range(1, len(a) + 1):
        curr = [0] * (len(b) + 1)
        ca = a[i - 1]
        for j in range(1, len(b) + 1):
            if ca == b[j - 1]:
                curr[j] = prev[j - 1] + 1
                if curr[j] > longest:
                    longest = curr[j]
        prev = curr
    return longest


def lines_are_similar(a: str, b: str, min_common: int = DEFAULT_MIN_COMMON) -> bool:
    """Exact matches are always similar; otherwise require a shared run."""
    if a == b:
        return True
    return longest_common_substring_length(a, b) >= min_common


def align(
    baseline_lines: Sequence[str],
    current_lines: Sequence[str],
    min_common: int = DEFAULT_MIN_COMMON,
) -> DiffAlignment:
    """Align *current_lines* against *baseline_lines*.

    Builds a longest-common-subsequence table using :func:`lines_are_similar`
    in place of equality, then walks it from the top-left.  Baseline lines
    with no partner are recorded as deletions at the current-side position
    where they would have been; unmatched current lines are additions and
    are not recorded (callers treat any unpaired current line as new).
    Ties prefer consuming the baseline side first.
    """
    base = [str(line if line is not None else "") for line in baseline_lines or []]
    curr = [str(line if line is not None else "") for line in current_lines or []]
    m, n = len(base), len(curr)

    similar = [[lines_are_similar(base[i], curr[j], min_common) for j in range(n)] for i in range(m)]

    dp = [[0] * (n + 1) for _ in range(m + 1)]
    for i in range(m - 1, -1, -1):
        for j in range(n - 1, -1, -1):
            if similar[i][j]:
                dp[i][j] = dp[i + 1][j + 1] + 1
            else:
                dp[i][j] = max(dp[i + 1][j], dp[i][j + 1])

    pairs: List[Tuple[int, int]] = []
    deletions: set[int] = set()
    i = j = 0
    while i < m or j < n:
        if i < m and j < n and similar[i][j]:
            pairs.append((i, j))
            i += 1
            j += 1
        elif i < m and (j == n or dp[i + 1][j] >= dp[i][j + 1]):
            deletions.add(j)
            i += 1
        else:
            j += 1

    return DiffAlignment(pairs=pairs, deletions=sorted(deletions))


def compute_change_status(
    baseline_lines: Sequence[str],
    current_lines: Sequence[str],
    min_common: int = DEFAULT_MIN_COMMON,
) -> ChangeReport:
    """Classify every current line as ``"new"``, ``"edited"`` or unchanged."""
    base = [str(line if line is not None else "") for line in baseline_lines or []]
    curr = [str(line if line is not None else "") for line in current_lines or []]
    alignment = align(base, curr, min_common)
    partner = {cj: bi for bi, cj in alignment.pairs}

    statuses: List[Optional[str]] = []
    for j, content in enumerate(curr):
        if j not in partner:
            statuses.append("new")
        elif content != base[partner[j]]:
            statuses.append("edited")
        else:
            statuses.append(None)
    return ChangeReport(statuses=statuses, deletions=alignment.deletions)
