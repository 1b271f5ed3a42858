"""Data models for rustdoc sidebar indexes."""

from dataclasses import dataclass
from typing import NamedTuple


@dataclass(frozen=True)
class DocEntry:
    """A single documented item listed in a sidebar."""

    name: str
    description: str = ""
    module: str | None = None


@dataclass(frozen=True)
class Category:
    """A named group of entries such as ``struct`` or ``macro``."""

    name: str
    entries: tuple[DocEntry, ...] = ()


class SearchMatch(NamedTuple):
    """An entry matched by an in-memory search, paired with its category."""

    category: str
    entry: DocEntry


@dataclass(frozen=True)
class DuplicateCategory:
    """A category name that appears more than once."""

    category: str
    count: int


@dataclass(frozen=True)
class EmptyName:
    """A category or entry without a name.

    ``position`` is None when the category name itself is empty.
    """

    category: str
    position: int | None = None


@dataclass(frozen=True)
class DuplicateName:
    """Two or more entries of one category sharing a name."""

    category: str
    name: str
    count: int
    module: str | None = None


Violation = DuplicateCategory | EmptyName | DuplicateName


@dataclass
class IndexedEntry:
    """Represents an entry as stored in the search database."""

    category: str
    name: str
    description: str
    summary: str
    url: str
    module: str | None = None


@dataclass
class SearchResult:
    """Represents a full-text search result."""

    category: str
    name: str
    module: str | None
    url: str
    snippet: str
    score: float
