"""Tests for sidebar-items.js parsing."""

from pathlib import Path

import pytest

from sidebar_index.errors import MalformedIndex
from sidebar_index.index import load
from sidebar_index.parser import SidebarParser

PENROSE_SIDEBAR = (
    'window.SIDEBAR_ITEMS = {"enum":[["Error",""]],'
    '"macro":[["custom_error","Quickly create a [penrose::Error::Custom]"],'
    '["simple_transformer","Quickly define a [LayoutTransformer] from a single element tuple struct and a '
    "transformation function: `fn(Rect, Vec<(Xid, Rect)>) -> Vec<(Xid, Rect)>`.\"]],"
    '"struct":[["Color","A simple RGBA based color"]],"type":[["Result",""]]};'
)


@pytest.fixture
def parser() -> SidebarParser:
    """Create a SidebarParser instance.

    Returns:
        SidebarParser instance.
    """
    return SidebarParser()


def test_parse_window_assignment(parser: SidebarParser) -> None:
    """Test parsing the format written by current rustdoc."""
    index = parser.parse_text(PENROSE_SIDEBAR)

    assert index.categories() == ["enum", "macro", "struct", "type"]
    assert index.entries_for("struct")[0].description == "A simple RGBA based color"
    assert index.entries_for("macro")[1].name == "simple_transformer"


def test_parse_init_sidebar_items(parser: SidebarParser) -> None:
    """Test parsing the format written by older rustdoc releases."""
    text = 'initSidebarItems({"fn":[["spawn","Run an external command"]],"struct":[["Config",""]]});\n'

    index = parser.parse_text(text)

    assert index.categories() == ["fn", "struct"]
    assert index.entries_for("fn")[0].description == "Run an external command"


def test_parse_bare_json(parser: SidebarParser) -> None:
    """Test parsing a plain JSON object."""
    index = parser.parse_text('{"struct":[["Color",""]]}')

    assert index.entries_for("struct")[0].name == "Color"


def test_parse_with_surrounding_whitespace(parser: SidebarParser) -> None:
    """Test that whitespace and a missing semicolon are tolerated."""
    index = parser.parse_text('\n  window.SIDEBAR_ITEMS={"struct":[["Color",""]]}\n')

    assert index.categories() == ["struct"]


def test_parse_unrecognised_format(parser: SidebarParser) -> None:
    """Test that unrelated JavaScript is rejected."""
    with pytest.raises(MalformedIndex, match="Unrecognised sidebar index format"):
        parser.parse_text("var searchIndex = new Map();")


def test_parse_invalid_json(parser: SidebarParser) -> None:
    """Test that a broken payload is rejected."""
    with pytest.raises(MalformedIndex, match="not valid JSON"):
        parser.parse_text('window.SIDEBAR_ITEMS = {"struct":[["Color",""]};')


def test_parse_empty_name(parser: SidebarParser) -> None:
    """Test that structural errors from the payload surface unchanged."""
    with pytest.raises(MalformedIndex, match="empty name"):
        parser.parse_text('window.SIDEBAR_ITEMS = {"struct":[["",""]]};')


def test_parse_file(parser: SidebarParser, tmp_path: Path) -> None:
    """Test parsing a sidebar file from disk."""
    file_path = tmp_path / "sidebar-items.js"
    file_path.write_text(PENROSE_SIDEBAR, encoding="utf-8")

    index = parser.parse_file(file_path)

    assert len(index) == 5


def test_parse_file_invalid_encoding(parser: SidebarParser, tmp_path: Path) -> None:
    """Test that undecodable files raise MalformedIndex."""
    file_path = tmp_path / "sidebar-items.js"
    file_path.write_bytes(b"\xff\xfe")

    with pytest.raises(MalformedIndex, match="UTF-8"):
        parser.parse_file(file_path)


def test_dumps_round_trip(parser: SidebarParser) -> None:
    """Test that serialised output parses back to the same index."""
    index = parser.parse_text(PENROSE_SIDEBAR)

    text = parser.dumps(index)

    assert text.startswith("window.SIDEBAR_ITEMS = {")
    assert text.endswith("};")
    assert parser.parse_text(text) == index


def test_dumps_keeps_non_ascii(parser: SidebarParser) -> None:
    """Test that descriptions are written without escaping."""
    text = parser.dumps(load({"struct": [["Couleur", "Une couleur très simple"]]}))

    assert "très" in text


def test_render_description_strips_references(parser: SidebarParser) -> None:
    """Test that intra-doc links are reduced to their label."""
    assert parser.render_description("Quickly create a [penrose::Error::Custom]") == (
        "Quickly create a penrose::Error::Custom"
    )
    assert parser.render_description("See [the book](https://example.org/book) for details") == (
        "See the book for details"
    )


def test_render_description_strips_code_spans(parser: SidebarParser) -> None:
    """Test that inline code markup is removed."""
    rendered = parser.render_description("Run `spawn` with the given command")

    assert rendered == "Run spawn with the given command"


def test_render_description_long_signature(parser: SidebarParser) -> None:
    """Test rendering a description containing a function signature."""
    index = parser.parse_text(PENROSE_SIDEBAR)
    description = index.entries_for("macro")[1].description

    rendered = parser.render_description(description)

    assert rendered.startswith("Quickly define a LayoutTransformer from a single element tuple struct")
    assert "fn(Rect" in rendered
    assert "`" not in rendered
    assert "[" not in rendered


def test_render_description_empty(parser: SidebarParser) -> None:
    """Test that empty descriptions render as empty text."""
    assert parser.render_description("") == ""
    assert parser.render_description("   ") == ""


def test_render_description_collapses_whitespace(parser: SidebarParser) -> None:
    """Test that line breaks and repeated spaces are collapsed."""
    assert parser.render_description("Core data   structures\nfor the window manager") == (
        "Core data structures for the window manager"
    )


def test_render_description_keeps_enumerators(parser: SidebarParser) -> None:
    """Test that text starting like a list item is not turned into a list."""
    assert parser.render_description("1. first item") == "1. first item"
    assert parser.render_description("- a bullet-like start") == "- a bullet-like start"
    assert parser.render_description("a) lettered start") == "a) lettered start"


def test_render_description_keeps_backslashes(parser: SidebarParser) -> None:
    """Test that backslashes are not consumed as escapes."""
    assert parser.render_description("Split on \\n chars") == "Split on \\n chars"
    assert parser.render_description("Windows path C:\\Users") == "Windows path C:\\Users"
