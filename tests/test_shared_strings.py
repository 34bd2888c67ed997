"""SharedStringTable parsing and lookups."""

from __future__ import annotations

from xml.sax.saxutils import escape

import pytest
from hypothesis import given, strategies as st

from xlsxfs.errors import StringTableError
from xlsxfs.strings import FuzzyMatcher, SharedStringTable

from tests.conftest import MAIN_NS, SHARED_STRINGS_XML


def test_runs_are_concatenated_without_separator():
    xml = b"<sst><si><t>First string</t></si><si><t>Second </t><t>string</t></si></sst>"
    table = SharedStringTable.parse(xml)

    assert len(table) == 2
    assert table.get(0) == "First string"
    assert table.get(1) == "Second string"


def test_namespaced_rich_text():
    table = SharedStringTable.parse(SHARED_STRINGS_XML)

    assert list(table) == [
        "Mathematics",
        "Physics and Chemistry",
        " Total ",
        "math club",
    ]
    assert table.declared_count == 5
    assert table.declared_unique_count == 4


def test_small_feed_chunks_give_same_table():
    whole = SharedStringTable.parse(SHARED_STRINGS_XML)
    chunked = SharedStringTable.parse(SHARED_STRINGS_XML, chunk_size=3)
    assert chunked == whole


def test_empty_items_and_entities():
    xml = (
        b"<sst><si/><si><t/></si><si><t>a &amp; b &lt;c&gt;</t></si>"
        b"<si><r><t>x</t></r><r><t></t></r><r><t>y</t></r></si></sst>"
    )
    table = SharedStringTable.parse(xml)
    assert table.strings == ("", "", "a & b <c>", "xy")


def test_phonetic_runs_are_part_of_the_item():
    xml = (
        f'<sst xmlns="{MAIN_NS}"><si><t>東京</t>'
        "<rPh sb=\"0\" eb=\"2\"><t>トウキョウ</t></rPh></si></sst>"
    ).encode("utf-8")
    table = SharedStringTable.parse(xml)
    assert table.get(0) == "東京トウキョウ"


def test_non_item_children_are_ignored():
    xml = b"<sst><si><t>a</t></si><extLst><ext><t>ignored</t></ext></extLst><si><t>b</t></si></sst>"
    assert SharedStringTable.parse(xml).strings == ("a", "b")


def test_empty_root():
    table = SharedStringTable.parse(b'<sst count="0" uniqueCount="0"/>')
    assert len(table) == 0
    assert table.get(0) is None


def test_out_of_range_is_none():
    table = SharedStringTable.parse(SHARED_STRINGS_XML)
    assert table.get(len(table)) is None
    assert table.get(10**9) is None
    assert table.get(-1) is None


def test_unparsable_count_attributes_are_none():
    table = SharedStringTable.parse(b'<sst count="many"><si><t>a</t></si></sst>')
    assert table.declared_count is None
    assert table.get(0) == "a"


@pytest.mark.parametrize(
    "xml",
    [
        b"",
        b"not xml",
        b"<sst><si><t>open</si></sst>",
        b"<sst><si><t>truncated",
        b"<sst></sst><sst></sst>",
        b"<workbook><si><t>a</t></si></workbook>",
    ],
)
def test_malformed_xml(xml):
    with pytest.raises(StringTableError):
        SharedStringTable.parse(xml)


def test_table_is_immutable():
    table = SharedStringTable.parse(SHARED_STRINGS_XML)
    with pytest.raises(AttributeError):
        table.strings = ()  # type: ignore[misc]
    assert isinstance(table.strings, tuple)


# ==================== Fuzzy search ====================


@pytest.fixture
def table() -> SharedStringTable:
    return SharedStringTable.parse(SHARED_STRINGS_XML)


def test_fuzzy_find_case_insensitive_band(table):
    results = dict(table.fuzzy_find("math", 0))
    assert 50 <= results[0] <= 99  # "Mathematics"
    assert results[3] >= 100  # "math club"


def test_fuzzy_find_exact_band(table):
    results = dict(table.fuzzy_find("Math", 0))
    assert results[0] >= 100


def test_fuzzy_find_threshold_is_inclusive(table):
    score = dict(table.fuzzy_find("math", 0))[0]
    assert 0 in dict(table.fuzzy_find("math", score))
    assert 0 not in dict(table.fuzzy_find("math", score + 1))


def test_fuzzy_find_orders_by_score_then_index():
    table = SharedStringTable(strings=("zz abc", "abc", "yy abc", "a-b-c", "nothing"))
    results = table.fuzzy_find("abc", 0)

    assert [index for index, _ in results] == [1, 0, 2, 3]
    scores = [score for _, score in results]
    assert scores == sorted(scores, reverse=True)
    assert results[1][1] == results[2][1]


def test_non_subsequence_never_returned(table):
    assert table.fuzzy_find("xyz", 0) == []
    assert table.fuzzy_find("xyz", -1000) == []


def test_fuzzy_find_indices_matches_fuzzy_find(table):
    for query in ("math", "s", "Total", "pc", "zzz"):
        assert table.fuzzy_find_indices(query, 0) == [i for i, _ in table.fuzzy_find(query, 0)]


def test_fuzzy_find_with_case_sensitive_matcher(table):
    matcher = FuzzyMatcher().case_sensitive()
    indices = [i for i, _ in table.fuzzy_find_with_matcher(matcher, "math", 0)]
    assert indices == [3]


def test_fuzzy_find_is_repeatable(table):
    assert table.fuzzy_find("ic", 0) == table.fuzzy_find("ic", 0)


# ==================== Property tests ====================

xml_text = st.text(
    alphabet=st.characters(blacklist_categories=("Cs", "Cc", "Cn")),
    max_size=10,
)


@given(items=st.lists(st.lists(xml_text, min_size=1, max_size=4), max_size=8))
def test_items_are_ordered_concatenations_of_runs(items):
    body = "".join(
        "<si>" + "".join(f"<r><t>{escape(run)}</t></r>" for run in runs) + "</si>"
        for runs in items
    )
    xml = f'<sst xmlns="{MAIN_NS}">{body}</sst>'.encode("utf-8")

    table = SharedStringTable.parse(xml, chunk_size=7)
    assert table.strings == tuple("".join(runs) for runs in items)
