"""Name search over the catalog."""

from __future__ import annotations

from typing import List

from fileindex.index.catalog import CatalogStore
from fileindex.models import EntryRecord


def tokenize(query: str) -> List[str]:
    """Split a query on whitespace, dropping empty tokens."""
    return [token.casefold() for token in query.split() if token]


def matches(record: EntryRecord, tokens: List[str]) -> bool:
    """True if every token is a case-insensitive substring of the file name."""
    name = record.name.casefold()
    return all(token in name for token in tokens)


class Searcher:
    """AND-ed substring search on file names."""

    def __init__(self, catalog: CatalogStore) -> None:
        self.catalog = catalog

    def search(self, query: str) -> List[EntryRecord]:
        entries = self.catalog.snapshot()
        tokens = tokenize(query or "")
        if not tokens:
            return entries
        return [entry for entry in entries if matches(entry, tokens)]
