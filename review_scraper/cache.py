"""
Run-scoped, append-only record cache keyed by heuristic record identity.
"""

from typing import Any, List, Sequence, Set

from .models import CacheEntry, ItemRecord
from .tree import QueryableTree, safe_query


ID_ATTRIBUTES = ("data-review-id", "data-service-review-card-paper-id", "id")
KEY_TITLE_SELECTOR = 'h2, h5, [data-hook="review-title"]'
KEY_CONTENT_SELECTOR = 'p, [data-hook="review-body"]'


def key_of(tree: QueryableTree, container: Any) -> str:
    """Identity of a review container: ``id:<attr>`` or ``tc:<title||content>``.

    Two different reviews with the same visible title and content share a
    ``tc:`` key; the later one is dropped by the cache.
    """
    for name in ID_ATTRIBUTES:
        value = tree.attribute_of(container, name)
        if value:
            return f"id:{value}"

    title = tree.text_of(safe_query(tree, container, KEY_TITLE_SELECTOR))
    content = tree.text_of(safe_query(tree, container, KEY_CONTENT_SELECTOR))
    return f"tc:{title}||{content}".lower()


class DedupCache:
    """Append-only store of records; a key is only ever added once."""

    def __init__(self):
        self._entries: List[CacheEntry] = []
        self._seen: Set[str] = set()

    def append(self, records: Sequence[ItemRecord], keys: Sequence[str]) -> int:
        """Add each (record, key) whose key is new. Returns how many were added."""
        if len(records) != len(keys):
            raise ValueError(f"Got {len(records)} records but {len(keys)} keys")
        added = 0
        for record, key in zip(records, keys):
            if key in self._seen:
                continue
            self._seen.add(key)
            self._entries.append(CacheEntry(record=record, key=key))
            added += 1
        return added

    def clear(self) -> None:
        self._entries.clear()
        self._seen.clear()

    @property
    def entries(self) -> List[CacheEntry]:
        return list(self._entries)

    def records(self) -> List[ItemRecord]:
        """Cached records in insertion order, without their keys."""
        return [entry.record for entry in self._entries]

    def __len__(self) -> int:
        return len(self._entries)

    def __contains__(self, key: str) -> bool:
        return key in self._seen
