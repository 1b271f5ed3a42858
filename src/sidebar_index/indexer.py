"""Indexer for rustdoc output trees containing ``sidebar-items.js`` fragments."""

import logging
from pathlib import Path

from sidebar_index.database import EntryDatabase
from sidebar_index.errors import MalformedIndex
from sidebar_index.index import DocIndex, merge
from sidebar_index.models import IndexedEntry
from sidebar_index.parser import SidebarParser

logger = logging.getLogger(__name__)


class SidebarIndexer:
    """Indexes the per-module sidebar fragments of a rustdoc output directory."""

    SIDEBAR_FILENAME = "sidebar-items.js"
    MODULE_CATEGORY = "mod"

    def __init__(self, database: EntryDatabase, base_url: str = "") -> None:
        """Initialise indexer with database instance.

        Args:
            database: EntryDatabase instance for storing entries.
            base_url: Prefix for entry URLs, e.g. ``https://docs.rs/penrose/latest``.
        """
        self.database = database
        self.base_url = base_url.rstrip("/")
        self.parser = SidebarParser()

    def load_fragments(self, doc_root: Path, strict: bool = False) -> dict[str, DocIndex]:
        """Parse every sidebar fragment below a rustdoc output directory.

        Args:
            doc_root: Directory produced by rustdoc, e.g. ``target/doc``.
            strict: Raise on the first malformed fragment instead of skipping it.

        Returns:
            Mapping of module path (``penrose::core``) to its index, in path order.

        Raises:
            ValueError: If the documentation path does not exist.
            MalformedIndex: If ``strict`` is set and a fragment cannot be parsed.
        """
        if not doc_root.exists():
            msg = f"Documentation path does not exist: {doc_root}"
            raise ValueError(msg)

        sidebar_files = sorted(doc_root.rglob(self.SIDEBAR_FILENAME))
        logger.info("Found %d sidebar files to index", len(sidebar_files))

        fragments: dict[str, DocIndex] = {}
        for file_path in sidebar_files:
            module = self._module_path(file_path, doc_root)
            try:
                fragments[module] = self.parser.parse_file(file_path)
            except MalformedIndex as exc:
                if strict:
                    raise
                logger.warning("Skipping malformed sidebar %s: %s", file_path, exc)
                continue
            logger.debug("Loaded %d entries for module %s", len(fragments[module]), module or "<root>")

        return fragments

    def build_index(self, doc_root: Path, strict: bool = False) -> DocIndex:
        """Load all fragments and merge them into one index.

        Args:
            doc_root: Directory produced by rustdoc.
            strict: Raise on malformed fragments instead of skipping them.

        Returns:
            Merged DocIndex with each entry tagged with its module.
        """
        return merge(self.load_fragments(doc_root, strict=strict))

    def index_from_path(self, doc_root: Path, strict: bool = False) -> int:
        """Index documentation from a local rustdoc output directory.

        Args:
            doc_root: Directory produced by rustdoc.
            strict: Raise on malformed fragments instead of skipping them.

        Returns:
            Number of distinct entries stored. Repeated names within a module are
            written once, the last occurrence winning.
        """
        index = self.build_index(doc_root, strict=strict)

        violations = index.validate()
        for violation in violations:
            logger.warning("Sidebar index violation: %s", violation)

        stored_keys: set[tuple[str | None, str, str]] = set()
        for section in index.sections:
            for entry in section.entries:
                self.database.upsert_entry(
                    IndexedEntry(
                        category=section.name,
                        name=entry.name,
                        description=entry.description,
                        summary=self.parser.render_description(entry.description),
                        url=self._compute_url(entry.module, section.name, entry.name),
                        module=entry.module or None,
                    )
                )
                stored_keys.add((entry.module or None, section.name, entry.name))

        logger.info("Successfully indexed %d entries", len(stored_keys))
        return len(stored_keys)

    def rebuild_index(self, doc_root: Path, strict: bool = False) -> int:
        """Clear existing index and rebuild from scratch.

        Args:
            doc_root: Directory produced by rustdoc.
            strict: Raise on malformed fragments instead of skipping them.

        Returns:
            Number of entries indexed.
        """
        logger.info("Clearing existing index...")
        self.database.clear()
        return self.index_from_path(doc_root, strict=strict)

    def _module_path(self, file_path: Path, doc_root: Path) -> str:
        """Derive the Rust module path of a sidebar file.

        Args:
            file_path: Path to a ``sidebar-items.js`` file.
            doc_root: Directory produced by rustdoc.

        Returns:
            Module path such as ``penrose::x11rb``, empty for the root directory.
        """
        return "::".join(file_path.parent.relative_to(doc_root).parts)

    def _compute_url(self, module: str | None, category: str, name: str) -> str:
        """Compute the rustdoc page URL of an entry.

        Args:
            module: Module path owning the entry.
            category: Entry category.
            name: Entry name.

        Returns:
            URL relative to the documentation root, or absolute if a base URL is set.
        """
        parts = module.split("::") if module else []
        if category == self.MODULE_CATEGORY:
            parts.extend([name, "index.html"])
        else:
            parts.append(f"{category}.{name}.html")
        path = "/".join(parts)
        return f"{self.base_url}/{path}" if self.base_url else path
