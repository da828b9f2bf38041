"""
Cursor over key-contiguous (key, value) pairs.

A ``PairCursor`` walks one partition forward with a single pair of
look-ahead. Key groups are exposed as ``KeyGroupValues`` iterators that stop
at the first pair of the next key; whatever a consumer leaves unread is
skipped when the cursor moves on, without being buffered.
"""

from typing import Any, Generic, Iterable, Iterator, Optional, Tuple, TypeVar

from groupsorted.ordering import Ordering

K = TypeVar('K')
V = TypeVar('V')

_MISSING = object()


class PairCursor(Generic[K, V]):
    """Forward-only cursor with one pair of look-ahead."""

    def __init__(self, pairs: Iterable[Tuple[K, V]], key_ordering: Ordering[K]):
        self._iterator = iter(pairs)
        self.key_ordering = key_ordering
        self._head: Any = _MISSING
        self._group: Optional["KeyGroupValues[K, V]"] = None
        self._advance()

    def _advance(self) -> None:
        self._head = next(self._iterator, _MISSING)

    def has_next(self) -> bool:
        return self._head is not _MISSING

    def head(self) -> Tuple[K, V]:
        if self._head is _MISSING:
            raise IndexError("cursor is exhausted")
        return self._head

    def head_key(self) -> K:
        return self.head()[0]

    def next_pair(self) -> Tuple[K, V]:
        pair = self.head()
        self._advance()
        return pair

    def next_group(self) -> Tuple[K, 'KeyGroupValues[K, V]']:
        """
        Start the group of the current head key.

        The previous group, if still open, is skipped to its end first.
        """
        self.skip_group()
        key = self.head_key()
        self._group = KeyGroupValues(self, key)
        return key, self._group

    def skip_group(self) -> None:
        """Move past the rest of the currently open group."""
        if self._group is not None:
            self._group.close()
            self._group = None

    def groups(self) -> Iterator[Tuple[K, 'KeyGroupValues[K, V]']]:
        """Yield each (key, values) in turn, skipping unread values between groups."""
        while True:
            self.skip_group()
            if not self.has_next():
                return
            yield self.next_group()


class KeyGroupValues(Iterator[V], Generic[K, V]):
    """Single-pass iterator over the values of one key group."""

    def __init__(self, cursor: PairCursor[K, V], key: K):
        self._cursor = cursor
        self.key = key
        self._done = False

    def _at_group(self) -> bool:
        cursor = self._cursor
        if self._done:
            return False
        if not cursor.has_next() or not cursor.key_ordering.equiv(cursor.head_key(), self.key):
            self._done = True
            return False
        return True

    def __iter__(self) -> 'KeyGroupValues[K, V]':
        return self

    def __next__(self) -> V:
        if not self._at_group():
            raise StopIteration
        return self._cursor.next_pair()[1]

    def peek(self, default: Any = _MISSING) -> V:
        """Return the next value without consuming it."""
        if not self._at_group():
            if default is _MISSING:
                raise StopIteration
            return default
        return self._cursor.head()[1]

    def close(self) -> None:
        """Skip the remaining values; the iterator is exhausted afterwards."""
        while self._at_group():
            self._cursor.next_pair()
        self._done = True
