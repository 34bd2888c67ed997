"""
Path filters for selecting which archive members get materialized.

A PathFilter is an immutable set of rules. Each add_* call validates the
rule and returns a new filter, so a rejected rule never changes the
filter it was offered to:

    path_filter = (
        PathFilter()
        .add_exact("xl/workbook.xml")
        .add_glob("xl/worksheets/*.xml")
    )

A filter with no rules matches nothing. To load every member, pass no
filter to ArchiveIndex.build at all.
"""

from __future__ import annotations

import re
from dataclasses import dataclass, field, replace
from typing import Iterable, Union

from .paths import validate_rule


def compile_glob(pattern: str) -> re.Pattern[str]:
    """
    Compile a glob pattern into an anchored regular expression.

    Only two wildcards exist: '*' matches any run of characters (including
    '/' and the empty run) and '?' matches exactly one character. Every
    other character, brackets included, is literal.

    Args:
        pattern: Normalized glob pattern

    Returns:
        Compiled pattern to be used with fullmatch()
    """
    parts: list[str] = []
    for ch in pattern:
        if ch == "*":
            # Collapse '**' into a single '.*'
            if not parts or parts[-1] != ".*":
                parts.append(".*")
        elif ch == "?":
            parts.append(".")
        else:
            parts.append(re.escape(ch))
    return re.compile("".join(parts), re.DOTALL)


# -----------------------------------------------------------------------------
# Rules
# -----------------------------------------------------------------------------


@dataclass(frozen=True, slots=True)
class ExactRule:
    """Matches one normalized path by equality."""

    path: str

    def matches(self, path: str) -> bool:
        return path == self.path


@dataclass(frozen=True, slots=True)
class GlobRule:
    """Matches paths against a compiled '*'/'?' pattern."""

    pattern: str
    regex: re.Pattern[str] = field(compare=False, repr=False)

    @classmethod
    def compile(cls, pattern: str) -> GlobRule:
        return cls(pattern=pattern, regex=compile_glob(pattern))

    def matches(self, path: str) -> bool:
        return self.regex.fullmatch(path) is not None


Rule = Union[ExactRule, GlobRule]


# -----------------------------------------------------------------------------
# Filter
# -----------------------------------------------------------------------------


@dataclass(frozen=True, slots=True)
class PathFilter:
    """
    Immutable predicate over normalized archive paths.

    Attributes:
        exact_paths: Paths matched by equality
        glob_rules: Compiled glob rules, in insertion order
    """

    exact_paths: frozenset[str] = frozenset()
    glob_rules: tuple[GlobRule, ...] = ()

    @classmethod
    def from_rules(
        cls,
        exact: Iterable[str] = (),
        globs: Iterable[str] = (),
    ) -> PathFilter:
        """
        Build a filter from iterables of exact paths and glob patterns.

        Raises:
            InvalidPatternError: On the first invalid rule
        """
        path_filter = cls()
        for path in exact:
            path_filter = path_filter.add_exact(path)
        for pattern in globs:
            path_filter = path_filter.add_glob(pattern)
        return path_filter

    def add_exact(self, path: str) -> PathFilter:
        """
        Return a filter that also matches path exactly.

        Raises:
            InvalidPatternError: If path is empty or has a '..' segment
        """
        normalized = validate_rule(path)
        return replace(self, exact_paths=self.exact_paths | {normalized})

    def add_glob(self, pattern: str) -> PathFilter:
        """
        Return a filter that also matches the glob pattern.

        Raises:
            InvalidPatternError: If pattern is empty or has a '..' segment
        """
        rule = GlobRule.compile(validate_rule(pattern))
        return replace(self, glob_rules=self.glob_rules + (rule,))

    @property
    def rules(self) -> tuple[Rule, ...]:
        """All rules, exact paths (sorted) first, then globs in insertion order."""
        exact = tuple(ExactRule(p) for p in sorted(self.exact_paths))
        return exact + self.glob_rules

    def matches(self, path: str) -> bool:
        """
        Check whether a normalized path matches any rule.

        Args:
            path: Normalized path (no leading slash, forward slashes)

        Returns:
            True if path equals an exact rule or fully matches a glob
        """
        if path in self.exact_paths:
            return True
        return any(rule.matches(path) for rule in self.glob_rules)

    def is_empty(self) -> bool:
        """True if no rules were added (such a filter matches nothing)."""
        return not self.exact_paths and not self.glob_rules

    def __len__(self) -> int:
        return len(self.exact_paths) + len(self.glob_rules)
