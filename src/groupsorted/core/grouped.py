"""
Group-sorted datasets.

A ``GroupSorted`` is a partitioned collection of (key, value) pairs where
every pair lives in the partition its key is assigned to and each partition
is sorted by key, then by value when a value ordering is declared. All pairs
of a key are therefore contiguous in exactly one partition, which lets the
per-key operators and merge join/union below work in a single streaming pass
without moving data between partitions.
"""

import logging
from typing import Any, Callable, Iterable, Iterator, List, Optional, Tuple, TypeVar, Union

from groupsorted.errors import ConfigurationError
from groupsorted.engine import PartitionedStreamEngine, default_engine
from groupsorted.ordering import Ordering, key_value_ordering
from groupsorted.partitioner import HashPartitioner, Partitioner
from groupsorted.streams import MapValuesOperator, PartitionedStream
from groupsorted.core.operators import (
    MapStreamByKeyOperator, FoldLeftByKeyOperator,
    ReduceLeftByKeyOperator, ScanLeftByKeyOperator
)
from groupsorted.core.join import JoinType, MergeJoin, join_value_ordering
from groupsorted.core.union import MergeUnion
from groupsorted.core.validity import ValidityReport, check_group_sorted

K = TypeVar('K')
V = TypeVar('V')
W = TypeVar('W')
B = TypeVar('B')

OrderingLike = Union[Ordering[Any], Callable[[Any], Any], None]

logger = logging.getLogger(__name__)


def _as_ordering(ordering: OrderingLike) -> Optional[Ordering[Any]]:
    """Accept an ``Ordering``, a sort-key function or ``None``."""
    if ordering is None or isinstance(ordering, Ordering):
        return ordering
    if callable(ordering):
        return Ordering.by(ordering)
    raise ConfigurationError(f"Expected an Ordering or a sort-key function, got {ordering!r}")


class GroupSorted:
    """
    Immutable partitioned (key, value) pairs, grouped and sorted by key.

    Build one with ``group_sort``. Wrapping an arbitrary dataset directly is
    unchecked; use ``validate()`` when in doubt.
    """

    def __init__(self,
                 dataset: PartitionedStream,
                 key_ordering: Optional[Ordering[Any]] = None,
                 value_ordering: Optional[Ordering[Any]] = None):
        self.dataset = dataset
        self._key_ordering = key_ordering or Ordering.natural()
        self._value_ordering = value_ordering

    @classmethod
    def from_sorted(cls,
                    dataset: PartitionedStream,
                    key_ordering: OrderingLike = None,
                    value_ordering: OrderingLike = None) -> 'GroupSorted':
        """Wrap a dataset that already satisfies the invariants, without shuffling."""
        return cls(dataset, _as_ordering(key_ordering), _as_ordering(value_ordering))

    # Introspection

    @property
    def partitioner(self) -> Optional[Partitioner]:
        return self.dataset.partitioner

    @property
    def num_partitions(self) -> int:
        return self.dataset.num_partitions

    @property
    def key_ordering(self) -> Ordering[Any]:
        return self._key_ordering

    @property
    def value_ordering(self) -> Optional[Ordering[Any]]:
        return self._value_ordering

    @property
    def engine(self) -> PartitionedStreamEngine:
        return self.dataset.engine

    def _derive(self, dataset: PartitionedStream, value_ordering: Optional[Ordering[Any]]) -> 'GroupSorted':
        return GroupSorted(dataset, self._key_ordering, value_ordering)

    # Streaming per-key operators

    def map_values(self, func: Callable[[V], W]) -> 'GroupSorted':
        """Map every value; partitioning and key order survive, value order does not."""
        return self._derive(self.dataset.pipe(MapValuesOperator(func)), None)

    def map_stream_by_key(self,
                          func: Callable[..., Iterable[W]],
                          context_factory: Optional[Callable[[], Any]] = None) -> 'GroupSorted':
        """
        Transform each key's values as a stream.

        ``func(values)`` receives a single-pass iterator over one key's values
        (in value order, if declared) and returns an iterable of outputs that
        are emitted paired with the key. It may stop reading early and may
        produce nothing. With ``context_factory``, ``func(context, values)`` is
        called instead, with one context per partition shared across keys;
        resetting it between keys is up to ``func``.
        """
        operator = MapStreamByKeyOperator(self._key_ordering, func, context_factory)
        return self._derive(self.dataset.pipe(operator), None)

    def fold_left_by_key(self, zero: B, func: Callable[[B, V], B]) -> 'GroupSorted':
        """One ``(key, fold)`` per key; ``zero`` is deep-copied for every key."""
        operator = FoldLeftByKeyOperator(self._key_ordering, zero, func)
        return self._derive(self.dataset.pipe(operator), None)

    def reduce_left_by_key(self, func: Callable[[V, V], V]) -> 'GroupSorted':
        operator = ReduceLeftByKeyOperator(self._key_ordering, func)
        return self._derive(self.dataset.pipe(operator), None)

    def scan_left_by_key(self, zero: B, func: Callable[[B, V], B]) -> 'GroupSorted':
        """``n + 1`` pairs per key of ``n`` values: ``zero`` then each running fold."""
        operator = ScanLeftByKeyOperator(self._key_ordering, zero, func)
        return self._derive(self.dataset.pipe(operator), None)

    # Merge join / union

    def _check_co_partitioned(self, other: 'GroupSorted', operation: str) -> None:
        if self.num_partitions != other.num_partitions:
            raise ConfigurationError(
                f"{operation} needs equal partition counts, got "
                f"{self.num_partitions} and {other.num_partitions}"
            )
        if self.partitioner != other.partitioner:
            raise ConfigurationError(
                f"{operation} needs identical partitioners, got "
                f"{self.partitioner!r} and {other.partitioner!r}"
            )

    def merge_join(self, other: 'GroupSorted', how: Union[JoinType, str] = JoinType.FULL_OUTER) -> 'GroupSorted':
        """
        Sort-merge join with ``other`` without moving data.

        Output values are ``(left_value, right_value)`` tuples with ``None``
        standing in for the missing side of outer matches. The right side of
        each matching key is buffered in memory.
        """
        join_type = JoinType.parse(how)
        self._check_co_partitioned(other, "merge_join")
        if self._key_ordering != other.key_ordering:
            raise ConfigurationError(
                f"merge_join needs identical key orderings, got "
                f"{self._key_ordering!r} and {other.key_ordering!r}"
            )

        value_ordering = join_value_ordering(join_type, self._value_ordering, other.value_ordering)
        left_value_ordering = self._value_ordering if value_ordering is not None else None
        joiner = MergeJoin(self._key_ordering, join_type, left_value_ordering=left_value_ordering)
        dataset = self.dataset.zip_partitions(other.dataset, joiner)
        return self._derive(dataset, value_ordering)

    def merge_join_inner(self, other: 'GroupSorted') -> 'GroupSorted':
        return self.merge_join(other, JoinType.INNER)

    def merge_join_left_outer(self, other: 'GroupSorted') -> 'GroupSorted':
        return self.merge_join(other, JoinType.LEFT_OUTER)

    def merge_join_right_outer(self, other: 'GroupSorted') -> 'GroupSorted':
        return self.merge_join(other, JoinType.RIGHT_OUTER)

    def merge_union(self, other: 'GroupSorted') -> 'GroupSorted':
        """
        All pairs of both sides, duplicates included.

        With identical key and value orderings the partitions are merged
        linearly; otherwise the pairs are regrouped from scratch with no value
        ordering.
        """
        self._check_co_partitioned(other, "merge_union")

        if self._key_ordering == other.key_ordering and self._value_ordering == other.value_ordering:
            sort_key = key_value_ordering(self._key_ordering, self._value_ordering).sort_key
            dataset = self.dataset.zip_partitions(other.dataset, MergeUnion(sort_key))
            return self._derive(dataset, self._value_ordering)

        logger.debug(
            f"merge_union orderings differ ({self._value_ordering!r} vs "
            f"{other.value_ordering!r}), regrouping"
        )
        return group_sort(
            self.dataset.union(other.dataset),
            num_partitions=self.num_partitions,
            partitioner=self.partitioner,
            key_ordering=self._key_ordering,
        )

    # Materialization

    def __iter__(self) -> Iterator[Tuple[Any, Any]]:
        return iter(self.dataset)

    def glom(self) -> List[List[Tuple[Any, Any]]]:
        return self.dataset.glom()

    def collect(self) -> List[Tuple[Any, Any]]:
        return self.dataset.collect()

    def count(self) -> int:
        return self.dataset.count()

    def validate(self) -> ValidityReport:
        return check_group_sorted(self)

    def __repr__(self) -> str:
        return (f"GroupSorted(num_partitions={self.num_partitions}, "
                f"partitioner={self.partitioner!r}, "
                f"key_ordering={self._key_ordering!r}, "
                f"value_ordering={self._value_ordering!r})")


def group_sort(
    data: Union[PartitionedStream, GroupSorted, Iterable[Tuple[K, V]]],
    num_partitions: Optional[int] = None,
    value_ordering: OrderingLike = None,
    aggregator: Optional[Callable[[V, V], V]] = None,
    key_ordering: OrderingLike = None,
    partitioner: Optional[Partitioner] = None,
    engine: Optional[PartitionedStreamEngine] = None
) -> GroupSorted:
    """
    Redistribute and sort (key, value) pairs into a ``GroupSorted``.

    Args:
        data: Source dataset, or any iterable of pairs to parallelize
        num_partitions: Output partition count (defaults to the source's)
        value_ordering: Optional ordering of values within a key
        aggregator: Optional associative function combining two values of a
            key; values are combined before and after the shuffle so the
            output has one pair per key. Non-commutative aggregators give
            results that depend on how pairs were split into partitions.
        key_ordering: Key ordering (defaults to natural ordering)
        partitioner: Explicit partitioner (defaults to ``HashPartitioner``)
        engine: Engine for local data (defaults to the process-wide engine)

    Returns:
        GroupSorted dataset
    """
    if isinstance(data, GroupSorted):
        data = data.dataset
    if isinstance(data, PartitionedStream):
        source = data
        engine = engine or data.engine
    else:
        engine = engine or default_engine()
        source = engine.parallelize(data)

    if partitioner is None:
        n = source.num_partitions if num_partitions is None else num_partitions
        partitioner = HashPartitioner(n)
    elif num_partitions is not None and num_partitions != partitioner.num_partitions:
        raise ConfigurationError(
            f"num_partitions={num_partitions} conflicts with partitioner "
            f"of {partitioner.num_partitions} partitions"
        )

    key_ord = _as_ordering(key_ordering) or Ordering.natural()
    value_ord = _as_ordering(value_ordering)

    dataset = engine.distribute(source, partitioner, key_ord, value_ord, combiner=aggregator)
    return GroupSorted(dataset, key_ord, value_ord)
