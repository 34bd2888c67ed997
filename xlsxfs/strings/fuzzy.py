"""
Approximate string matching for shared-string search.

Scores fall into three bands so callers can pick a threshold by intent:

    >= 100   query occurs in the candidate with exact case
    50..99   query occurs in the candidate once case is folded
    1..49    query characters occur in order, with gaps

Candidates where the query is not even a subsequence get no score at all.
Within a band, matches at the start of the candidate or of a word, and
matches covering more of the candidate, score higher. In the subsequence
band a match with less total gap never scores below one with more, and
among equal gaps fewer separate runs never score lower.
"""

from __future__ import annotations

from dataclasses import dataclass, replace
from typing import Iterable

from xlsxfs.config import CaseMode

EXACT_BASE = 100
FOLDED_BASE = 50
SUBSEQUENCE_MAX = 49

EQUAL_BONUS = 50
START_BONUS = 20
BOUNDARY_BONUS = 10
COVERAGE_MAX = 20


@dataclass(frozen=True, slots=True)
class FuzzyMatch:
    """A scored match and the candidate positions it used."""

    score: int
    positions: tuple[int, ...]


# -----------------------------------------------------------------------------
# Scoring helpers
# -----------------------------------------------------------------------------


def _fold(text: str) -> str:
    """
    Case-fold text one character at a time, keeping its length.

    Characters whose folded form is longer than one character (such as
    'ß') are left as they are so positions line up with the original.
    """
    out = []
    for ch in text:
        folded = ch.casefold()
        out.append(folded if len(folded) == 1 else ch)
    return "".join(out)


def _position_bonus(candidate: str, pos: int) -> int:
    if pos == 0:
        return START_BONUS
    prev = candidate[pos - 1]
    if not prev.isalnum():
        return BOUNDARY_BONUS
    if prev.islower() and candidate[pos].isupper():
        return BOUNDARY_BONUS
    return 0


def _substring_score(base: int, candidate: str, query: str, pos: int) -> int:
    coverage = COVERAGE_MAX * len(query) // len(candidate)
    return base + _position_bonus(candidate, pos) + coverage


def _shortest_window(text: str, pattern: str) -> tuple[int, int] | None:
    """
    Find the shortest slice of text containing pattern as a subsequence.

    Returns:
        (start, end) with end exclusive, leftmost among equal lengths,
        or None when pattern is not a subsequence of text
    """
    n, m = len(text), len(pattern)
    best: tuple[int, int] | None = None
    start = text.find(pattern[0])

    while start >= 0:
        i, k = start, 0
        while i < n and k < m:
            if text[i] == pattern[k]:
                k += 1
            i += 1
        if k < m:
            # No later start can complete the pattern either
            break
        end = i

        # Walk back from the end to the latest start that still works
        i, k = end - 1, m - 1
        while k >= 0:
            if text[i] == pattern[k]:
                k -= 1
            i -= 1
        tight = i + 1

        if best is None or end - tight < best[1] - best[0]:
            best = (tight, end)
        start = text.find(pattern[0], tight + 1)

    return best


def _subsequence_match(text: str, pattern: str) -> FuzzyMatch | None:
    window = _shortest_window(text, pattern)
    if window is None:
        return None

    start, end = window
    positions: list[int] = []
    k = 0
    for i in range(start, end):
        if k < len(pattern) and text[i] == pattern[k]:
            positions.append(i)
            k += 1

    m = len(pattern)
    runs = 1 + sum(1 for a, b in zip(positions, positions[1:]) if b != a + 1)
    gap = (end - start) - m
    # runs - 1 < m, so gap orders first and runs only break ties
    score = SUBSEQUENCE_MAX - (gap * m + runs - 1)
    return FuzzyMatch(max(1, min(SUBSEQUENCE_MAX, score)), tuple(positions))


def _respects_case(case_mode: CaseMode, query: str) -> bool:
    if case_mode is CaseMode.RESPECT:
        return True
    if case_mode is CaseMode.SMART:
        return any(ch.isupper() for ch in query)
    return False


def fuzzy_match(
    candidate: str,
    query: str,
    case_mode: CaseMode = CaseMode.IGNORE,
) -> FuzzyMatch | None:
    """
    Score candidate against query.

    Args:
        candidate: Text being searched
        query: What the user typed
        case_mode: How letter case is compared

    Returns:
        FuzzyMatch with score and matched positions, or None if query is
        not a subsequence of candidate
    """
    m = len(query)
    if m == 0:
        return FuzzyMatch(EXACT_BASE, ())

    pos = candidate.find(query)
    if pos >= 0:
        score = _substring_score(EXACT_BASE, candidate, query, pos)
        if candidate == query:
            score += EQUAL_BONUS
        return FuzzyMatch(score, tuple(range(pos, pos + m)))

    if _respects_case(case_mode, query):
        return _subsequence_match(candidate, query)

    folded_candidate = _fold(candidate)
    folded_query = _fold(query)
    pos = folded_candidate.find(folded_query)
    if pos >= 0:
        score = _substring_score(FOLDED_BASE, candidate, query, pos)
        return FuzzyMatch(score, tuple(range(pos, pos + m)))

    return _subsequence_match(folded_candidate, folded_query)


def fuzzy_score(
    candidate: str,
    query: str,
    case_mode: CaseMode = CaseMode.IGNORE,
) -> int | None:
    """Like fuzzy_match, but return only the score."""
    match = fuzzy_match(candidate, query, case_mode)
    return None if match is None else match.score


# -----------------------------------------------------------------------------
# Reusable matcher
# -----------------------------------------------------------------------------


@dataclass(frozen=True, slots=True)
class FuzzyMatcher:
    """
    Reusable fuzzy matching configuration.

    Immutable, so one instance can be shared between threads and reused
    across any number of searches:

        matcher = FuzzyMatcher().case_sensitive()
        table.fuzzy_find_with_matcher(matcher, "Total", 100)
    """

    case_mode: CaseMode = CaseMode.IGNORE

    def case_sensitive(self, enabled: bool = True) -> FuzzyMatcher:
        """Return a matcher that respects (or ignores) case."""
        return replace(self, case_mode=CaseMode.RESPECT if enabled else CaseMode.IGNORE)

    def smart_case(self) -> FuzzyMatcher:
        """Return a matcher that respects case only for queries with uppercase."""
        return replace(self, case_mode=CaseMode.SMART)

    def fuzzy_match(self, candidate: str, query: str) -> FuzzyMatch | None:
        return fuzzy_match(candidate, query, self.case_mode)

    def score(self, candidate: str, query: str) -> int | None:
        return fuzzy_score(candidate, query, self.case_mode)

    def rank(
        self,
        candidates: Iterable[str],
        query: str,
        threshold: int,
    ) -> list[tuple[int, int]]:
        """
        Score every candidate and keep those at or above threshold.

        Args:
            candidates: Texts in index order
            query: Search query
            threshold: Inclusive minimum score

        Returns:
            (index, score) pairs by descending score, then ascending index
        """
        results: list[tuple[int, int]] = []
        for index, candidate in enumerate(candidates):
            score = self.score(candidate, query)
            if score is not None and score >= threshold:
                results.append((index, score))

        results.sort(key=lambda item: (-item[1], item[0]))
        return results
