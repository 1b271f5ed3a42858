"""In-memory sidebar index: loading, lookup, search and validation."""

import logging
from collections import Counter
from collections.abc import Mapping, Sequence
from dataclasses import dataclass, replace
from typing import Any

from sidebar_index.errors import MalformedIndex
from sidebar_index.models import (
    Category,
    DocEntry,
    DuplicateCategory,
    DuplicateName,
    EmptyName,
    SearchMatch,
    Violation,
)

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class DocIndex:
    """Immutable mapping of category name to ordered entries.

    Categories and entries keep the order in which the producer wrote them.
    """

    sections: tuple[Category, ...] = ()

    def categories(self) -> list[str]:
        """Return category names in source order.

        Returns:
            List of category names.
        """
        return [section.name for section in self.sections]

    def entries_for(self, category: str) -> tuple[DocEntry, ...]:
        """Return the entries of a category.

        Args:
            category: Category name, e.g. ``struct``.

        Returns:
            Entries in source order, or an empty tuple if the category is absent.
        """
        for section in self.sections:
            if section.name == category:
                return section.entries
        return ()

    def find(self, query: str, include_descriptions: bool = False) -> list[SearchMatch]:
        """Case-insensitive substring search over entry names.

        Args:
            query: Text to look for.
            include_descriptions: Also match against entry descriptions.

        Returns:
            Matches in category order, then entry order.
        """
        if not query:
            return []

        needle = query.casefold()

        matches = []
        for section in self.sections:
            for entry in section.entries:
                if needle in entry.name.casefold() or (
                    include_descriptions and needle in entry.description.casefold()
                ):
                    matches.append(SearchMatch(section.name, entry))
        return matches

    def validate(self) -> list[Violation]:
        """Check naming and uniqueness invariants.

        Returns:
            Violations found, empty when the index is valid.
        """
        violations: list[Violation] = []

        category_counts = Counter(section.name for section in self.sections)
        for name, count in category_counts.items():
            if count > 1:
                violations.append(DuplicateCategory(category=name, count=count))

        for section in self.sections:
            if not section.name:
                violations.append(EmptyName(category=section.name))

            name_counts: Counter[tuple[str | None, str]] = Counter()
            for position, entry in enumerate(section.entries):
                if not entry.name:
                    violations.append(EmptyName(category=section.name, position=position))
                    continue
                name_counts[(entry.module, entry.name)] += 1

            for (module, name), count in name_counts.items():
                if count > 1:
                    violations.append(DuplicateName(category=section.name, name=name, count=count, module=module))

        return violations

    def to_raw(self) -> dict[str, list[list[str]]]:
        """Convert back to the raw ``{category: [[name, description], ...]}`` shape.

        Returns:
            Plain mapping accepted by ``load``.
        """
        return {
            section.name: [[entry.name, entry.description] for entry in section.entries] for section in self.sections
        }

    def __len__(self) -> int:
        """Return the total number of entries across all categories."""
        return sum(len(section.entries) for section in self.sections)


def load(raw: Any) -> DocIndex:
    """Parse raw sidebar data into a DocIndex.

    Args:
        raw: Mapping of category name to a list of ``[name, description]`` pairs.

    Returns:
        DocIndex preserving category and entry order.

    Raises:
        MalformedIndex: If the data does not have the expected shape.
    """
    if not isinstance(raw, Mapping):
        msg = f"Sidebar index must be a mapping of categories, got {type(raw).__name__}"
        raise MalformedIndex(msg)

    sections = []
    for category, items in raw.items():
        if not isinstance(category, str) or not category:
            msg = f"Category names must be non-empty strings, got {category!r}"
            raise MalformedIndex(msg)
        if isinstance(items, (str, bytes)) or not isinstance(items, Sequence):
            msg = f"Entries of category {category!r} must be a list, got {type(items).__name__}"
            raise MalformedIndex(msg, category=category)

        entries = tuple(_load_entry(category, position, item) for position, item in enumerate(items))
        sections.append(Category(name=category, entries=entries))

    index = DocIndex(sections=tuple(sections))
    logger.debug("Loaded sidebar index with %d categories and %d entries", len(sections), len(index))
    return index


def _load_entry(category: str, position: int, item: Any) -> DocEntry:
    """Parse a single ``[name, description]`` pair.

    Args:
        category: Owning category, for error reporting.
        position: Position within the category, for error reporting.
        item: Raw entry.

    Returns:
        DocEntry instance.

    Raises:
        MalformedIndex: If the entry is not a pair of strings with a non-empty name.
    """
    if isinstance(item, (str, bytes)) or not isinstance(item, Sequence) or len(item) != 2:
        msg = f"Entry {position} of category {category!r} must be a [name, description] pair"
        raise MalformedIndex(msg, category=category, position=position)

    name, description = item
    if not isinstance(name, str) or not isinstance(description, str):
        msg = f"Entry {position} of category {category!r} must contain only strings"
        raise MalformedIndex(msg, category=category, position=position)
    if not name:
        msg = f"Entry {position} of category {category!r} has an empty name"
        raise MalformedIndex(msg, category=category, position=position)

    return DocEntry(name=name, description=description)


def merge(fragments: Mapping[str, DocIndex]) -> DocIndex:
    """Combine per-module indexes into a single index.

    Entries are tagged with the module path they came from. Entries of the root
    fragment, keyed by an empty path, keep a module of None. Entries with the same
    name in the same category are all kept and told apart by that module.

    Args:
        fragments: Mapping of module path (e.g. ``penrose::core``) to its index.

    Returns:
        Merged DocIndex. Categories appear in first-seen order.
    """
    grouped: dict[str, list[DocEntry]] = {}
    for module, fragment in fragments.items():
        for section in fragment.sections:
            bucket = grouped.setdefault(section.name, [])
            bucket.extend(
                entry if entry.module is not None else replace(entry, module=module or None)
                for entry in section.entries
            )

    return DocIndex(sections=tuple(Category(name=name, entries=tuple(entries)) for name, entries in grouped.items()))
