"""
Optimistic list updates with explicit rollback.

A change is applied to the visible list straight away and tagged
PENDING. Once the backend confirms it becomes COMMITTED; if the backend
refuses, the change is undone and tagged ROLLED_BACK, so the list never
keeps an item the backend does not have.
"""
import logging
from dataclasses import dataclass
from typing import Any, Awaitable, Callable, Generic, Optional, TypeVar

from prepdeck.models import EntryStatus

logger = logging.getLogger(__name__)

T = TypeVar("T")


@dataclass
class OptimisticEntry(Generic[T]):
    item: T
    status: EntryStatus = EntryStatus.COMMITTED


class OptimisticList(Generic[T]):
    """
    Ordered list of items keyed by `key`.

    Example:
        rounds = OptimisticList(key=lambda r: r.id)
        await rounds.insert(placeholder, lambda: create_on_backend())
    """

    def __init__(self, key: Callable[[T], Any]):
        self._key = key
        self._entries: list[OptimisticEntry[T]] = []

    @property
    def items(self) -> list[T]:
        return [e.item for e in self._entries]

    @property
    def entries(self) -> list[OptimisticEntry[T]]:
        return list(self._entries)

    def __len__(self) -> int:
        return len(self._entries)

    def replace(self, items: list[T]) -> None:
        """Replace everything with confirmed items (e.g. after a fetch)."""
        self._entries = [OptimisticEntry(item) for item in items]

    def find(self, key: Any) -> Optional[OptimisticEntry[T]]:
        return next((e for e in self._entries if self._key(e.item) == key), None)

    async def insert(self, placeholder: T, confirm: Callable[[], Awaitable[T]]) -> OptimisticEntry[T]:
        """
        Append `placeholder` now, swap in the confirmed item when `confirm`
        returns. If `confirm` raises, the placeholder is removed and the
        exception propagates.
        """
        entry = OptimisticEntry(placeholder, EntryStatus.PENDING)
        self._entries.append(entry)
        try:
            confirmed = await confirm()
        except BaseException:
            entry.status = EntryStatus.ROLLED_BACK
            self._entries = [e for e in self._entries if e is not entry]
            logger.debug(f"Rolled back insert of {self._key(placeholder)}")
            raise

        entry.item = confirmed
        entry.status = EntryStatus.COMMITTED
        return entry

    async def remove(self, key: Any, confirm: Callable[[], Awaitable[Any]]) -> OptimisticEntry[T]:
        """
        Drop the item with `key` now. If `confirm` raises, the item is put
        back at its old position and the exception propagates.

        Raises:
            KeyError: no item with that key
        """
        index = next((i for i, e in enumerate(self._entries) if self._key(e.item) == key), None)
        if index is None:
            raise KeyError(key)

        before = [self._key(e.item) for e in self._entries[:index]]
        after = [self._key(e.item) for e in self._entries[index + 1:]]
        entry = self._entries.pop(index)
        entry.status = EntryStatus.PENDING
        try:
            await confirm()
        except BaseException:
            entry.status = EntryStatus.ROLLED_BACK
            self._entries.insert(self._restore_index(before, after, index), entry)
            logger.debug(f"Rolled back removal of {key}")
            raise

        entry.status = EntryStatus.COMMITTED
        return entry

    def _restore_index(self, before: list, after: list, fallback: int) -> int:
        """
        Where a restored item goes: right before its nearest former
        successor still present, else right after its nearest former
        predecessor. Other removals may have run in the meantime, so the
        old index alone is not enough.
        """
        keys = [self._key(e.item) for e in self._entries]
        for k in after:
            if k in keys:
                return keys.index(k)
        for k in reversed(before):
            if k in keys:
                return keys.index(k) + 1
        return min(fallback, len(keys))
