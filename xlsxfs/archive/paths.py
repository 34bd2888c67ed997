"""
Path helpers for archive member names and filter rules.

Member names inside a ZIP may use backslashes or carry a leading slash
depending on the tool that wrote them. Everything stored in or looked up
from an ArchiveIndex goes through normalize_path first, so comparisons
are plain string equality.
"""

from __future__ import annotations

from xlsxfs.errors import InvalidPatternError


def normalize_path(path: str) -> str:
    """
    Normalize a member path to forward slashes with no leading slash.

    Args:
        path: Raw path as stored in the archive or supplied by a caller

    Returns:
        Normalized path (may be empty)
    """
    if "\\" in path:
        path = path.replace("\\", "/")
    return path.lstrip("/")


def normalize_dir(directory: str) -> str:
    """Normalize a directory path, also dropping trailing slashes."""
    return normalize_path(directory).rstrip("/")


def parent_dir(path: str) -> str:
    """
    Return everything before the last '/' of a normalized path.

    Top-level paths have the empty string as their parent.
    """
    pos = path.rfind("/")
    return "" if pos < 0 else path[:pos]


def has_traversal(path: str) -> bool:
    """Check whether any '/'-separated segment of path is '..'."""
    return ".." in path.split("/")


def is_path_safe(path: str) -> bool:
    """
    Check if a normalized path is safe to store.

    Rejects empty paths and paths with a '..' segment (zip slip).

    Args:
        path: Normalized path to check

    Returns:
        True if path is safe
    """
    return bool(path) and not has_traversal(path)


def validate_rule(rule: str) -> str:
    """
    Normalize and validate a filter rule.

    Args:
        rule: Exact path or glob pattern

    Returns:
        The normalized rule

    Raises:
        InvalidPatternError: If the rule is empty or contains a '..' segment
    """
    normalized = normalize_path(rule)
    if not normalized:
        raise InvalidPatternError(rule, "empty path")
    if has_traversal(normalized):
        raise InvalidPatternError(rule, "path traversal not allowed")
    return normalized
