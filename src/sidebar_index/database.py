"""SQLite FTS5 storage for sidebar index entries."""

import re
import sqlite3
from collections.abc import Generator
from contextlib import contextmanager
from pathlib import Path

from sidebar_index.index import DocIndex
from sidebar_index.models import Category, DocEntry, IndexedEntry, SearchResult


class EntryDatabase:
    """Manages the SQLite FTS5 database for entry search."""

    def __init__(self, db_path: Path) -> None:
        """Initialise database with the given path.

        Args:
            db_path: Path to the SQLite database file.
        """
        self.db_path = db_path
        self._initialise_schema()

    @staticmethod
    def _sanitise_query(query: str) -> str:
        """Sanitise user query for FTS5 MATCH clause.

        Rust paths and identifiers (``penrose::core``, ``simple_transformer``) contain
        characters with FTS5 query meaning, so such queries are matched as a literal phrase.

        Args:
            query: Raw user query string.

        Returns:
            Sanitised query string safe for FTS5 MATCH.
        """
        # Anything other than letters, digits and whitespace has query meaning or splits tokens
        fts5_special_chars = r"[^\w\s]|_"
        fts5_operators = re.compile(r"\b(AND|OR|NOT|NEAR)\b", re.IGNORECASE)

        if re.search(fts5_special_chars, query) or fts5_operators.search(query):
            query = query.replace('"', '""')
            return f'"{query}"'

        return query

    @staticmethod
    def _module_key(module: str | None) -> str:
        """Map a module path to its stored key.

        Args:
            module: Module path, None for the root module.

        Returns:
            The module path, or an empty string for the root module.
        """
        return module or ""

    @contextmanager
    def _get_connection(self) -> Generator[sqlite3.Connection, None, None]:
        """Context manager for database connections.

        Yields:
            SQLite connection with Row factory enabled.
        """
        conn = sqlite3.connect(self.db_path)
        conn.row_factory = sqlite3.Row
        try:
            yield conn
        finally:
            conn.close()

    def _initialise_schema(self) -> None:
        """Create database schema if it doesn't exist."""
        with self._get_connection() as conn:
            conn.executescript("""
                CREATE TABLE IF NOT EXISTS entries (
                    id INTEGER PRIMARY KEY AUTOINCREMENT,
                    module TEXT NOT NULL DEFAULT '',
                    category TEXT NOT NULL,
                    name TEXT NOT NULL,
                    description TEXT NOT NULL DEFAULT '',
                    summary TEXT NOT NULL DEFAULT '',
                    url TEXT,
                    created_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP,
                    updated_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP,
                    UNIQUE (module, category, name)
                );

                CREATE VIRTUAL TABLE IF NOT EXISTS entries_fts USING fts5(
                    name,
                    summary,
                    content='entries',
                    content_rowid='id',
                    tokenize='porter unicode61'
                );

                CREATE TRIGGER IF NOT EXISTS entries_ai AFTER INSERT ON entries BEGIN
                    INSERT INTO entries_fts(rowid, name, summary)
                    VALUES (new.id, new.name, new.summary);
                END;

                CREATE TRIGGER IF NOT EXISTS entries_ad AFTER DELETE ON entries BEGIN
                    INSERT INTO entries_fts(entries_fts, rowid, name, summary)
                    VALUES ('delete', old.id, old.name, old.summary);
                END;

                CREATE TRIGGER IF NOT EXISTS entries_au AFTER UPDATE ON entries BEGIN
                    INSERT INTO entries_fts(entries_fts, rowid, name, summary)
                    VALUES ('delete', old.id, old.name, old.summary);
                    INSERT INTO entries_fts(rowid, name, summary)
                    VALUES (new.id, new.name, new.summary);
                END;

                CREATE INDEX IF NOT EXISTS idx_entries_category ON entries(category);
            """)
            conn.commit()

    def upsert_entry(self, entry: IndexedEntry) -> None:
        """Insert or update an entry.

        Args:
            entry: Entry to insert or update.
        """
        with self._get_connection() as conn:
            conn.execute(
                """
                INSERT INTO entries (module, category, name, description, summary, url)
                VALUES (?, ?, ?, ?, ?, ?)
                ON CONFLICT(module, category, name) DO UPDATE SET
                    description = excluded.description,
                    summary = excluded.summary,
                    url = excluded.url,
                    updated_at = CURRENT_TIMESTAMP
                """,
                (
                    self._module_key(entry.module),
                    entry.category,
                    entry.name,
                    entry.description,
                    entry.summary,
                    entry.url,
                ),
            )
            conn.commit()

    def search(
        self, query: str, category: str | None = None, module: str | None = None, limit: int = 10
    ) -> list[SearchResult]:
        """Search entries using FTS5.

        Args:
            query: Search query string.
            category: Optional category filter, e.g. ``struct``.
            module: Optional module path filter, e.g. ``penrose::core``.
            limit: Maximum number of results.

        Returns:
            List of SearchResult instances ordered by relevance.
        """
        if not query.strip():
            return []

        sanitised_query = self._sanitise_query(query)

        with self._get_connection() as conn:
            sql = """
                SELECT
                    e.module,
                    e.category,
                    e.name,
                    e.url,
                    snippet(entries_fts, 1, '<mark>', '</mark>', '...', 32) as snippet,
                    bm25(entries_fts, 5.0, 1.0) as score
                FROM entries_fts
                JOIN entries e ON entries_fts.rowid = e.id
                WHERE entries_fts MATCH ?
            """
            params: list[str | int] = [sanitised_query]

            if category:
                sql += " AND e.category = ?"
                params.append(category)

            if module is not None:
                sql += " AND e.module = ?"
                params.append(self._module_key(module))

            sql += " ORDER BY score, e.id LIMIT ?"
            params.append(limit)

            cursor = conn.execute(sql, params)
            results = []
            for row in cursor.fetchall():
                results.append(
                    SearchResult(
                        category=row["category"],
                        name=row["name"],
                        module=row["module"] or None,
                        url=row["url"],
                        snippet=row["snippet"],
                        score=abs(row["score"]),  # BM25 returns negative scores
                    )
                )
            return results

    def get_entry(self, category: str, name: str, module: str | None = None) -> IndexedEntry | None:
        """Retrieve an entry by category, name and module.

        Args:
            category: Entry category.
            name: Entry name.
            module: Module path, None for the root module.

        Returns:
            IndexedEntry instance or None if not found.
        """
        with self._get_connection() as conn:
            cursor = conn.execute(
                "SELECT * FROM entries WHERE module = ? AND category = ? AND name = ?",
                (self._module_key(module), category, name),
            )
            row = cursor.fetchone()
            if row:
                return IndexedEntry(
                    category=row["category"],
                    name=row["name"],
                    description=row["description"],
                    summary=row["summary"],
                    url=row["url"],
                    module=row["module"] or None,
                )
            return None

    def load_index(self) -> DocIndex:
        """Rebuild an in-memory index from stored entries.

        Returns:
            DocIndex with categories and entries in insertion order.
        """
        grouped: dict[str, list[DocEntry]] = {}
        with self._get_connection() as conn:
            cursor = conn.execute("SELECT module, category, name, description FROM entries ORDER BY id")
            for row in cursor.fetchall():
                grouped.setdefault(row["category"], []).append(
                    DocEntry(name=row["name"], description=row["description"], module=row["module"] or None)
                )
        return DocIndex(sections=tuple(Category(name=name, entries=tuple(entries)) for name, entries in grouped.items()))

    def clear(self) -> None:
        """Clear all entries from the database."""
        with self._get_connection() as conn:
            conn.execute("DELETE FROM entries")
            conn.commit()

    def get_entry_count(self) -> int:
        """Return the total number of stored entries.

        Returns:
            Count of entries in the database.
        """
        with self._get_connection() as conn:
            cursor = conn.execute("SELECT COUNT(*) FROM entries")
            result = cursor.fetchone()
            return int(result[0]) if result else 0
