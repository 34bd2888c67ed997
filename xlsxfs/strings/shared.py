"""
Shared string table parsing (xl/sharedStrings.xml).

Workbooks store each distinct cell string once and refer to it by index.
The part looks like:

    <sst count="3" uniqueCount="2">
      <si><t>First string</t></si>
      <si><r><t>Second </t></r><r><rPr><b/></rPr><t>string</t></r></si>
    </sst>

Every <si> directly under <sst> becomes one entry, in document order. The
text of every <t> nested anywhere inside it is concatenated with nothing
in between; rich-text runs only mark formatting boundaries.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Iterator
from xml.etree import ElementTree as ET

from loguru import logger

from xlsxfs.config import get_global_config
from xlsxfs.errors import StringTableError

from .fuzzy import FuzzyMatcher

ROOT_TAG = "sst"
ITEM_TAG = "si"
TEXT_TAG = "t"


def _local_name(tag: str) -> str:
    """Strip a '{namespace}' prefix from an element tag."""
    return tag.rpartition("}")[2]


def _optional_int(value: str | None) -> int | None:
    if value is None:
        return None
    try:
        return int(value)
    except ValueError:
        return None


class _TableBuilder:
    """Accumulates entries from pull-parser events."""

    def __init__(self) -> None:
        self.strings: list[str] = []
        self.declared_count: int | None = None
        self.declared_unique_count: int | None = None
        self._depth = 0
        self._item: list[str] | None = None

    def handle(self, event: str, elem: ET.Element) -> None:
        name = _local_name(elem.tag)

        if event == "start":
            self._depth += 1
            if self._depth == 1:
                if name != ROOT_TAG:
                    raise StringTableError(
                        f"Expected <{ROOT_TAG}> root element, found <{name}>"
                    )
                self.declared_count = _optional_int(elem.get("count"))
                self.declared_unique_count = _optional_int(elem.get("uniqueCount"))
            elif self._depth == 2 and name == ITEM_TAG:
                self._item = []
            return

        # end event
        if name == TEXT_TAG and self._item is not None:
            self._item.append(elem.text or "")
        elif self._depth == 2 and name == ITEM_TAG:
            self.strings.append("".join(self._item or ()))
            self._item = None
            elem.clear()
        self._depth -= 1


# -----------------------------------------------------------------------------
# Shared string table
# -----------------------------------------------------------------------------


@dataclass(frozen=True, slots=True)
class SharedStringTable:
    """
    Immutable table of shared strings.

    Safe to share between threads: nothing changes after parse().

    Attributes:
        strings: Entries in shared-string index order
        declared_count: The root 'count' attribute, if present
        declared_unique_count: The root 'uniqueCount' attribute, if present
    """

    strings: tuple[str, ...] = ()
    declared_count: int | None = None
    declared_unique_count: int | None = None

    @classmethod
    def parse(cls, xml: bytes, *, chunk_size: int | None = None) -> SharedStringTable:
        """
        Parse shared-string XML in a single streaming pass.

        Args:
            xml: Raw bytes of the sharedStrings part
            chunk_size: Bytes fed to the parser at a time (default from config)

        Returns:
            The parsed table

        Raises:
            StringTableError: If the XML is malformed or the root is not <sst>
        """
        if chunk_size is None:
            chunk_size = get_global_config().xml_chunk_size

        data = memoryview(xml)
        parser = ET.XMLPullParser(events=("start", "end"))
        builder = _TableBuilder()

        try:
            for offset in range(0, len(data), chunk_size):
                parser.feed(bytes(data[offset : offset + chunk_size]))
                for event, elem in parser.read_events():
                    builder.handle(event, elem)
            parser.close()
            for event, elem in parser.read_events():
                builder.handle(event, elem)
        except ET.ParseError as e:
            raise StringTableError(f"Malformed shared strings XML: {e}") from e

        table = cls(
            strings=tuple(builder.strings),
            declared_count=builder.declared_count,
            declared_unique_count=builder.declared_unique_count,
        )
        if (
            table.declared_unique_count is not None
            and table.declared_unique_count != len(table.strings)
        ):
            logger.warning(
                "uniqueCount={} but {} <si> items were parsed",
                table.declared_unique_count,
                len(table.strings),
            )
        logger.debug("Parsed {} shared strings", len(table.strings))
        return table

    def get(self, index: int) -> str | None:
        """
        Return the string at index, or None if out of range.

        Negative indices are out of range; they are not counted from the end.
        """
        if 0 <= index < len(self.strings):
            return self.strings[index]
        return None

    def __len__(self) -> int:
        return len(self.strings)

    def __iter__(self) -> Iterator[str]:
        return iter(self.strings)

    # -------------------------------------------------------------------------
    # Fuzzy search
    # -------------------------------------------------------------------------

    def fuzzy_find(self, query: str, threshold: int = 0) -> list[tuple[int, int]]:
        """
        Search all strings with the default matcher.

        Case handling comes from the global LoaderConfig (IGNORE unless changed).

        Args:
            query: Search text
            threshold: Inclusive minimum score; 0 keeps every subsequence match

        Returns:
            (index, score) pairs, best score first, ties by ascending index
        """
        matcher = FuzzyMatcher(get_global_config().case_mode)
        return self.fuzzy_find_with_matcher(matcher, query, threshold)

    def fuzzy_find_with_matcher(
        self,
        matcher: FuzzyMatcher,
        query: str,
        threshold: int = 0,
    ) -> list[tuple[int, int]]:
        """Same as fuzzy_find, using a caller-configured matcher."""
        return matcher.rank(self.strings, query, threshold)

    def fuzzy_find_indices(self, query: str, threshold: int = 0) -> list[int]:
        """Indices from fuzzy_find, in the same order, without scores."""
        return [index for index, _ in self.fuzzy_find(query, threshold)]
