"""Exceptions raised by xlsxfs."""

from __future__ import annotations


class XlsxFsError(Exception):
    """Base exception for all xlsxfs failures."""

    pass


# -----------------------------------------------------------------------------
# Filter rules
# -----------------------------------------------------------------------------


class InvalidPatternError(XlsxFsError, ValueError):
    """Raised when a filter rule is empty or contains a '..' segment."""

    def __init__(self, pattern: str, reason: str) -> None:
        self.pattern = pattern
        self.reason = reason
        super().__init__(f"Invalid pattern {pattern!r}: {reason}")


# -----------------------------------------------------------------------------
# Archive construction
# -----------------------------------------------------------------------------


class ArchiveError(XlsxFsError):
    """Base exception for failures while building an archive index."""

    pass


class ArchiveTooLargeError(ArchiveError):
    """Raised when the bytes counted during a build exceed the ceiling."""

    def __init__(self, actual: int, limit: int) -> None:
        self.actual = actual
        self.limit = limit
        super().__init__(f"Archive size {actual} exceeds limit {limit}")


class ArchiveFormatError(ArchiveError):
    """Raised for malformed ZIP structure or entries that cannot be decoded."""

    pass


class ArchiveIOError(ArchiveError, OSError):
    """Raised when the archive byte source cannot be read."""

    pass


# -----------------------------------------------------------------------------
# Shared strings
# -----------------------------------------------------------------------------


class StringTableError(XlsxFsError):
    """Raised when shared-string XML is malformed or has the wrong shape."""

    pass
