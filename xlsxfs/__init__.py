"""
xlsxfs - in-memory access to spreadsheet packages.

Opens a ZIP-based document package in memory, materializes only the parts
a caller asks for, and exposes the shared string table with fuzzy search.

Usage:
    from xlsxfs import ArchiveIndex, PathFilter, SharedStringTable

    index = ArchiveIndex.build(
        "book.xlsx",
        PathFilter().add_exact("xl/sharedStrings.xml"),
        size_ceiling=50 * 1024 * 1024,
    )
    table = SharedStringTable.parse(index.get("xl/sharedStrings.xml"))
    for i, score in table.fuzzy_find("math", 50):
        print(i, table.get(i), score)
"""

from __future__ import annotations

from loguru import logger

from .archive import ArchiveEntry, ArchiveIndex, PathFilter
from .config import (
    CaseMode,
    LoaderConfig,
    SizePolicy,
    get_global_config,
    get_loader_config,
    set_global_config,
)
from .errors import (
    ArchiveError,
    ArchiveFormatError,
    ArchiveIOError,
    ArchiveTooLargeError,
    InvalidPatternError,
    StringTableError,
    XlsxFsError,
)
from .log import disable_logging, enable_logging
from .package import load_shared_strings, open_package, spreadsheet_filter
from .strings import FuzzyMatch, FuzzyMatcher, SharedStringTable, fuzzy_score

__version__ = "0.1.0"

# Silent unless the application calls enable_logging()
logger.disable("xlsxfs")

__all__ = [
    # Archive
    "ArchiveIndex",
    "ArchiveEntry",
    "PathFilter",
    # Strings
    "SharedStringTable",
    "FuzzyMatcher",
    "FuzzyMatch",
    "fuzzy_score",
    # Package helpers
    "open_package",
    "load_shared_strings",
    "spreadsheet_filter",
    # Config
    "LoaderConfig",
    "SizePolicy",
    "CaseMode",
    "get_loader_config",
    "get_global_config",
    "set_global_config",
    # Logging
    "enable_logging",
    "disable_logging",
    # Exceptions
    "XlsxFsError",
    "InvalidPatternError",
    "ArchiveError",
    "ArchiveTooLargeError",
    "ArchiveFormatError",
    "ArchiveIOError",
    "StringTableError",
]
