"""Loading, searching and validating rustdoc sidebar indexes."""

from sidebar_index.errors import MalformedIndex
from sidebar_index.index import DocIndex, load, merge
from sidebar_index.models import Category, DocEntry, DuplicateName, SearchMatch

__all__ = [
    "Category",
    "DocEntry",
    "DocIndex",
    "DuplicateName",
    "MalformedIndex",
    "SearchMatch",
    "load",
    "merge",
]
