"""
Streaming per-key operators.

Each operator runs over one partition of key-contiguous pairs and visits
every key group exactly once, in a single forward pass.
"""

import copy
from abc import abstractmethod
from typing import Any, Callable, Iterable, Iterator, Optional, Tuple, TypeVar

from groupsorted.ordering import Ordering
from groupsorted.streams.operators import StreamOperator
from groupsorted.core.keygroups import PairCursor

K = TypeVar('K')
V = TypeVar('V')
W = TypeVar('W')
B = TypeVar('B')
C = TypeVar('C')


class KeyGroupOperator(StreamOperator):
    """Base class for operators that consume one key group at a time."""

    def __init__(self, key_ordering: Ordering[Any]):
        self.key_ordering = key_ordering

    def apply(self, iterator: Iterator[Tuple[K, V]]) -> Iterator[Tuple[K, Any]]:
        cursor = PairCursor(iterator, self.key_ordering)
        return self.apply_groups(cursor)

    @abstractmethod
    def apply_groups(self, cursor: PairCursor[K, V]) -> Iterator[Tuple[K, Any]]:
        """Process every key group the cursor yields."""
        pass


class MapStreamByKeyOperator(KeyGroupOperator):
    """
    Feed each key's values to ``func`` and emit whatever it yields under that key.

    With ``context_factory`` one context is built per partition execution and
    passed as ``func(context, values)`` for every key of the partition.
    """

    def __init__(self,
                 key_ordering: Ordering[Any],
                 func: Callable[..., Iterable[W]],
                 context_factory: Optional[Callable[[], C]] = None):
        super().__init__(key_ordering)
        self.func = func
        self.context_factory = context_factory

    def apply_groups(self, cursor: PairCursor[K, V]) -> Iterator[Tuple[K, W]]:
        if self.context_factory is not None:
            context = self.context_factory()
            call = lambda values: self.func(context, values)
        else:
            call = self.func

        for key, values in cursor.groups():
            for output in call(values):
                yield key, output


class FoldLeftByKeyOperator(KeyGroupOperator):
    """Left fold of each key group starting from a fresh copy of ``zero``."""

    def __init__(self, key_ordering: Ordering[Any], zero: B, func: Callable[[B, V], B]):
        super().__init__(key_ordering)
        self.zero = zero
        self.func = func

    def apply_groups(self, cursor: PairCursor[K, V]) -> Iterator[Tuple[K, B]]:
        for key, values in cursor.groups():
            acc = copy.deepcopy(self.zero)
            for value in values:
                acc = self.func(acc, value)
            yield key, acc


class ReduceLeftByKeyOperator(KeyGroupOperator):
    """Left fold of each key group seeded with its first value."""

    def __init__(self, key_ordering: Ordering[Any], func: Callable[[V, V], V]):
        super().__init__(key_ordering)
        self.func = func

    def apply_groups(self, cursor: PairCursor[K, V]) -> Iterator[Tuple[K, V]]:
        for key, values in cursor.groups():
            # groups are never empty
            acc = next(values)
            for value in values:
                acc = self.func(acc, value)
            yield key, acc


class ScanLeftByKeyOperator(KeyGroupOperator):
    """Emit ``zero`` and every running fold state for each key group."""

    def __init__(self, key_ordering: Ordering[Any], zero: B, func: Callable[[B, V], B]):
        super().__init__(key_ordering)
        self.zero = zero
        self.func = func

    def apply_groups(self, cursor: PairCursor[K, V]) -> Iterator[Tuple[K, B]]:
        for key, values in cursor.groups():
            acc = copy.deepcopy(self.zero)
            yield key, acc
            for value in values:
                acc = self.func(acc, value)
                yield key, acc
