"""Parser for rustdoc ``sidebar-items.js`` files."""

import json
import re
from pathlib import Path

import docutils.frontend  # type: ignore[import-untyped]
import docutils.nodes  # type: ignore[import-untyped]
import docutils.parsers.rst  # type: ignore[import-untyped]
import docutils.utils  # type: ignore[import-untyped]

from sidebar_index.errors import MalformedIndex
from sidebar_index.index import DocIndex, load


class ParagraphTextVisitor(docutils.nodes.GenericNodeVisitor):  # type: ignore[misc]
    """Visitor collecting the plain text of each paragraph."""

    def __init__(self, document: docutils.nodes.document) -> None:
        """Initialise paragraph text visitor.

        Args:
            document: Docutils document tree.
        """
        super().__init__(document)
        self._text_parts: list[str] = []

    def visit_paragraph(self, node: docutils.nodes.paragraph) -> None:
        """Collect the paragraph text, inline markup removed.

        Args:
            node: Paragraph node.

        Raises:
            docutils.nodes.SkipNode: Always raised, children are already collected.
        """
        text = node.astext().strip()
        if text:
            self._text_parts.append(text)
        raise docutils.nodes.SkipNode

    def visit_system_message(self, node: docutils.nodes.system_message) -> None:
        """Skip parser diagnostics.

        Args:
            node: System message node.

        Raises:
            docutils.nodes.SkipNode: Always raised.
        """
        raise docutils.nodes.SkipNode

    def default_visit(self, node: docutils.nodes.Node) -> None:
        """Default visit handler (no-op).

        Args:
            node: Any node.
        """

    def default_departure(self, node: docutils.nodes.Node) -> None:
        """Default departure handler (no-op).

        Args:
            node: Any node.
        """

    def get_text(self) -> str:
        """Get collected text content.

        Returns:
            Paragraph texts joined by spaces.
        """
        return " ".join(self._text_parts)


class SidebarParser:
    """Reads and writes rustdoc sidebar index fragments."""

    SIDEBAR_VARIABLE = "window.SIDEBAR_ITEMS"

    # window.SIDEBAR_ITEMS = {...};  (current rustdoc)
    _ASSIGNMENT_RE = re.compile(r"^\s*window\.SIDEBAR_ITEMS\s*=\s*(?P<body>.*?)\s*;?\s*$", re.DOTALL)
    # initSidebarItems({...});  (rustdoc before 1.67)
    _CALL_RE = re.compile(r"^\s*initSidebarItems\(\s*(?P<body>.*?)\s*\)\s*;?\s*$", re.DOTALL)

    _LINK_RE = re.compile(r"\[([^\[\]]+)\]\([^)]*\)")
    _REFERENCE_RE = re.compile(r"\[([^\[\]]+)\]")
    # Line starts that RST reads as lists, comments, line blocks or field lists
    _BLOCK_MARKER_RE = re.compile(
        r"^(\s*)(?=(?:[-*+\u2022]|\d+[.)]|[A-Za-z#][.)]|\(\w+\))(?:\s|$)|\.\.(?:\s|$)|\||>>>|:)", re.MULTILINE
    )

    def parse_text(self, text: str) -> DocIndex:
        """Parse the contents of a sidebar file.

        Args:
            text: ``window.SIDEBAR_ITEMS = {...};``, ``initSidebarItems({...});`` or bare JSON.

        Returns:
            Parsed DocIndex.

        Raises:
            MalformedIndex: If the text is not a recognised sidebar fragment.
        """
        body = self._extract_body(text)
        try:
            raw = json.loads(body)
        except json.JSONDecodeError as exc:
            msg = f"Sidebar index is not valid JSON: {exc}"
            raise MalformedIndex(msg) from exc
        return load(raw)

    def parse_file(self, file_path: Path) -> DocIndex:
        """Parse a ``sidebar-items.js`` file.

        Args:
            file_path: Path to the sidebar file.

        Returns:
            Parsed DocIndex.

        Raises:
            MalformedIndex: If the file cannot be decoded or parsed.
        """
        try:
            source = file_path.read_text(encoding="utf-8")
        except UnicodeDecodeError as exc:
            msg = f"Sidebar file is not valid UTF-8: {file_path}"
            raise MalformedIndex(msg) from exc
        return self.parse_text(source)

    def dumps(self, index: DocIndex) -> str:
        """Serialise an index in the format written by current rustdoc.

        Args:
            index: Index to serialise.

        Returns:
            JavaScript assignment of the index to ``window.SIDEBAR_ITEMS``.
        """
        body = json.dumps(index.to_raw(), ensure_ascii=False, separators=(",", ":"))
        return f"{self.SIDEBAR_VARIABLE} = {body};"

    def render_description(self, description: str) -> str:
        """Convert a description with cross-reference markup into plain text.

        Args:
            description: Raw description, e.g. ``Create a [Stack] from `items```.

        Returns:
            Plain text suitable for indexing.
        """
        if not description.strip():
            return ""

        # [label](target) -> label, then [path] -> path
        text = self._LINK_RE.sub(r"\1", description)
        plain = self._REFERENCE_RE.sub(r"\1", text)
        # Keep literal backslashes and block markers as plain text
        text = plain.replace("\\", "\\\\")
        text = self._BLOCK_MARKER_RE.sub(r"\1\\", text)

        doctree = self._parse_rst(text)
        visitor = ParagraphTextVisitor(doctree)
        doctree.walk(visitor)
        rendered = visitor.get_text() or plain
        return re.sub(r"\s+", " ", rendered).strip()

    def _extract_body(self, text: str) -> str:
        """Strip the JavaScript wrapper around the JSON payload.

        Args:
            text: Raw file contents.

        Returns:
            JSON text.

        Raises:
            MalformedIndex: If no known wrapper or bare object is found.
        """
        for pattern in (self._ASSIGNMENT_RE, self._CALL_RE):
            match = pattern.match(text)
            if match:
                return match.group("body")

        stripped = text.strip()
        if stripped.startswith("{"):
            return stripped

        msg = "Unrecognised sidebar index format"
        raise MalformedIndex(msg)

    def _parse_rst(self, source: str) -> docutils.nodes.document:
        """Parse description text into a docutils document tree.

        Args:
            source: Description text.

        Returns:
            Docutils document tree.
        """
        parser = docutils.parsers.rst.Parser()
        settings = docutils.frontend.get_default_settings(docutils.parsers.rst.Parser)
        settings.report_level = 5  # Suppress warnings
        settings.halt_level = 5
        document = docutils.utils.new_document("<description>", settings)
        parser.parse(source, document)
        return document
