"""
Spreadsheet package helpers.

Ties the archive index and the shared string table together for the common
case of opening an .xlsx file and reading its shared strings.
"""

from __future__ import annotations

from loguru import logger

from .archive import ArchiveIndex, ArchiveSource, PathFilter
from .config import FROM_CONFIG
from .strings import SharedStringTable

WORKBOOK_PART = "xl/workbook.xml"
WORKSHEETS_GLOB = "xl/worksheets/*.xml"
SHARED_STRINGS_PART = "xl/sharedStrings.xml"


def spreadsheet_filter() -> PathFilter:
    """Filter selecting the workbook, its worksheets and the shared strings."""
    return (
        PathFilter()
        .add_exact(WORKBOOK_PART)
        .add_glob(WORKSHEETS_GLOB)
        .add_exact(SHARED_STRINGS_PART)
    )


def open_package(
    source: ArchiveSource,
    path_filter: PathFilter | None = None,
    size_ceiling: int | None = FROM_CONFIG,
) -> ArchiveIndex:
    """
    Build an index of a spreadsheet package.

    Args:
        source: Archive bytes, path, or seekable binary file
        path_filter: Members to load (default: spreadsheet_filter())
        size_ceiling: Byte ceiling for loaded content; None is unbounded
            (default from config)

    Returns:
        The built ArchiveIndex
    """
    if path_filter is None:
        path_filter = spreadsheet_filter()
    return ArchiveIndex.build(source, path_filter, size_ceiling)


def load_shared_strings(
    index: ArchiveIndex,
    part: str = SHARED_STRINGS_PART,
) -> SharedStringTable:
    """
    Parse the shared strings part of an indexed package.

    Workbooks without any text cells have no shared strings part; an
    empty table is returned for them.

    Raises:
        StringTableError: If the part exists but is malformed
    """
    data = index.get(part)
    if data is None:
        logger.debug("No {} in package, using an empty table", part)
        return SharedStringTable()
    return SharedStringTable.parse(data)
