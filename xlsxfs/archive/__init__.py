"""
xlsxfs archive layer.

Loads the members of a ZIP package into a frozen, in-memory index,
optionally restricted by path filters and bounded by a size ceiling.

Usage:
    from xlsxfs.archive import ArchiveIndex, PathFilter

    path_filter = PathFilter().add_exact("xl/workbook.xml").add_glob("xl/worksheets/*.xml")
    index = ArchiveIndex.build("book.xlsx", path_filter, size_ceiling=100_000_000)
    workbook = index.get("xl/workbook.xml")
"""

from xlsxfs.config import SizePolicy

from .filters import ExactRule, GlobRule, PathFilter, compile_glob
from .index import ArchiveEntry, ArchiveIndex, ArchiveSource
from .paths import is_path_safe, normalize_dir, normalize_path, parent_dir, validate_rule

__all__ = [
    # Filters
    "PathFilter",
    "ExactRule",
    "GlobRule",
    "compile_glob",
    # Index
    "ArchiveIndex",
    "ArchiveEntry",
    "ArchiveSource",
    "SizePolicy",
    # Paths
    "normalize_path",
    "normalize_dir",
    "parent_dir",
    "is_path_safe",
    "validate_rule",
]
