"""
Orderings over keys and values.

An ``Ordering`` is a total order expressed through a sort-key function, the
same way ``sorted(key=...)`` works. Orderings are comparable with ``==`` so
that two structures can be checked for sharing the same effective order.
"""

import functools
from typing import Any, Callable, Generic, Optional, Tuple, TypeVar

T = TypeVar('T')


@functools.total_ordering
class _Reverse:
    """Wrapper that inverts comparison of the wrapped sort key."""

    __slots__ = ('obj',)

    def __init__(self, obj: Any):
        self.obj = obj

    def __lt__(self, other: '_Reverse') -> bool:
        return other.obj < self.obj

    def __eq__(self, other: object) -> bool:
        return isinstance(other, _Reverse) and self.obj == other.obj

    def __hash__(self) -> int:
        return hash(self.obj)

    def __repr__(self) -> str:
        return f"_Reverse({self.obj!r})"


class Ordering(Generic[T]):
    """
    Total order defined by a sort-key function.

    ``Ordering()`` is the natural ordering of the values themselves.
    """

    def __init__(self, key: Optional[Callable[[T], Any]] = None):
        self._key = key

    @classmethod
    def natural(cls) -> 'Ordering[Any]':
        return cls()

    @classmethod
    def by(cls, key: Callable[[T], Any]) -> 'Ordering[T]':
        """Order by the result of ``key``."""
        return cls(key)

    def sort_key(self, item: T) -> Any:
        return item if self._key is None else self._key(item)

    def compare(self, a: T, b: T) -> int:
        """Return -1, 0 or 1 like a classic comparator."""
        ka, kb = self.sort_key(a), self.sort_key(b)
        if ka < kb:
            return -1
        if kb < ka:
            return 1
        return 0

    def equiv(self, a: T, b: T) -> bool:
        return self.compare(a, b) == 0

    def lteq(self, a: T, b: T) -> bool:
        return self.compare(a, b) <= 0

    def reverse(self) -> 'Ordering[T]':
        return ReversedOrdering(self)

    def __eq__(self, other: object) -> bool:
        return type(other) is type(self) and other._key == self._key

    def __hash__(self) -> int:
        return hash((type(self), self._key))

    def __repr__(self) -> str:
        if self._key is None:
            return "Ordering.natural()"
        name = getattr(self._key, '__qualname__', repr(self._key))
        return f"Ordering.by({name})"


class ReversedOrdering(Ordering[T]):
    """The inverse of another ordering."""

    def __init__(self, inner: Ordering[T]):
        super().__init__()
        self.inner = inner

    def sort_key(self, item: T) -> Any:
        return _Reverse(self.inner.sort_key(item))

    def reverse(self) -> Ordering[T]:
        return self.inner

    def __eq__(self, other: object) -> bool:
        return isinstance(other, ReversedOrdering) and other.inner == self.inner

    def __hash__(self) -> int:
        return hash((ReversedOrdering, self.inner))

    def __repr__(self) -> str:
        return f"{self.inner!r}.reverse()"


class OptionalOrdering(Ordering[Optional[T]]):
    """Orders ``None`` (the absent marker) before every present value."""

    def __init__(self, inner: Ordering[T]):
        super().__init__()
        self.inner = inner

    def sort_key(self, item: Optional[T]) -> Any:
        if item is None:
            return (0,)
        return (1, self.inner.sort_key(item))

    def __eq__(self, other: object) -> bool:
        return isinstance(other, OptionalOrdering) and other.inner == self.inner

    def __hash__(self) -> int:
        return hash((OptionalOrdering, self.inner))

    def __repr__(self) -> str:
        return f"OptionalOrdering({self.inner!r})"


class TupleOrdering(Ordering[Tuple[Any, Any]]):
    """Lexicographic ordering over pairs."""

    def __init__(self, first: Ordering[Any], second: Ordering[Any]):
        super().__init__()
        self.first = first
        self.second = second

    def sort_key(self, item: Tuple[Any, Any]) -> Any:
        return (self.first.sort_key(item[0]), self.second.sort_key(item[1]))

    def __eq__(self, other: object) -> bool:
        return (isinstance(other, TupleOrdering)
                and other.first == self.first and other.second == self.second)

    def __hash__(self) -> int:
        return hash((TupleOrdering, self.first, self.second))

    def __repr__(self) -> str:
        return f"TupleOrdering({self.first!r}, {self.second!r})"


def tuple_ordering(first: Ordering[Any], second: Ordering[Any]) -> Ordering[Tuple[Any, Any]]:
    return TupleOrdering(first, second)


def key_value_ordering(
    key_ordering: Ordering[Any],
    value_ordering: Optional[Ordering[Any]] = None
) -> Ordering[Tuple[Any, Any]]:
    """
    Combined ordering of (key, value) pairs inside a partition.

    With a value ordering pairs are ordered by key then value; without one
    only the key participates and values of one key are unordered.
    """
    if value_ordering is not None:
        return TupleOrdering(key_ordering, value_ordering)
    return Ordering.by(lambda kv: key_ordering.sort_key(kv[0]))
