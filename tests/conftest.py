"""Shared fixtures: in-memory ZIP packages and shared-string XML."""

from __future__ import annotations

import io
import zipfile

import pytest

from xlsxfs.config import LoaderConfig, get_global_config, set_global_config

MAIN_NS = "http://schemas.openxmlformats.org/spreadsheetml/2006/main"

SHARED_STRINGS_XML = (
    '<?xml version="1.0" encoding="UTF-8" standalone="yes"?>\n'
    f'<sst xmlns="{MAIN_NS}" count="5" uniqueCount="4">'
    "<si><t>Mathematics</t></si>"
    "<si><r><t>Physics </t></r><r><rPr><b/></rPr><t>and Chemistry</t></r></si>"
    '<si><t xml:space="preserve"> Total </t></si>'
    "<si><t>math club</t></si>"
    "</sst>"
).encode("utf-8")


def make_zip(
    members: dict[str, bytes] | list[tuple[str, bytes]],
    *,
    compression: int = zipfile.ZIP_DEFLATED,
    directories: tuple[str, ...] = (),
) -> bytes:
    """Build a ZIP archive in memory, in the given member order."""
    items = members.items() if isinstance(members, dict) else members
    buf = io.BytesIO()
    with zipfile.ZipFile(buf, "w", compression=compression) as zf:
        for name in directories:
            zf.writestr(zipfile.ZipInfo(name), b"")
        for name, data in items:
            zf.writestr(zipfile.ZipInfo(name), data, compress_type=compression)
    return buf.getvalue()


@pytest.fixture
def xlsx_members() -> dict[str, bytes]:
    return {
        "[Content_Types].xml": b"<Types/>",
        "_rels/.rels": b"<Relationships/>",
        "docProps/app.xml": b"<Properties/>",
        "xl/workbook.xml": b"<workbook/>",
        "xl/styles.xml": b"<styleSheet/>",
        "xl/worksheets/sheet1.xml": b"<worksheet>1</worksheet>",
        "xl/worksheets/sheet2.xml": b"<worksheet>2</worksheet>",
        "xl/worksheets/_rels/sheet1.xml.rels": b"<Relationships/>",
        "xl/worksheets_old/sheet9.xml": b"<worksheet>9</worksheet>",
        "xl/sharedStrings.xml": SHARED_STRINGS_XML,
    }


@pytest.fixture
def xlsx_bytes(xlsx_members: dict[str, bytes]) -> bytes:
    return make_zip(xlsx_members, directories=("xl/", "xl/worksheets/"))


@pytest.fixture
def restore_global_config():
    """Put the global LoaderConfig back after a test changes it."""
    saved = get_global_config()
    yield
    set_global_config(saved)


@pytest.fixture
def small_chunks_config() -> LoaderConfig:
    return LoaderConfig(read_chunk_size=7, xml_chunk_size=5)
