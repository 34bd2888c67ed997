"""Shared string table parsing and fuzzy search."""

from __future__ import annotations

from xlsxfs.config import CaseMode

from .fuzzy import FuzzyMatch, FuzzyMatcher, fuzzy_match, fuzzy_score
from .shared import SharedStringTable

__all__ = [
    "SharedStringTable",
    "FuzzyMatcher",
    "FuzzyMatch",
    "CaseMode",
    "fuzzy_match",
    "fuzzy_score",
]
