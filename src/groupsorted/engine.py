"""
Partitioned stream engines.

The engine owns everything that moves data between partitions or decides
where partition work runs. ``LocalEngine`` is an in-process implementation:
partitions are lazy streams, the shuffle is computed once and kept in
(possibly spilled) sorted buffers, and materialization can fan out over a
thread pool.
"""

import logging
import functools
import threading
from abc import ABC, abstractmethod
from concurrent.futures import ThreadPoolExecutor
from typing import Any, Callable, Iterable, Iterator, List, Optional, Tuple

from groupsorted.config import config
from groupsorted.errors import ConfigurationError
from groupsorted.ordering import Ordering, key_value_ordering
from groupsorted.partitioner import Partitioner
from groupsorted.streams import Stream, PartitionedStream
from groupsorted.algorithms import ExternalSorter, combine_by_key, combine_sorted_by_key

logger = logging.getLogger(__name__)


class PartitionedStreamEngine(ABC):
    """Primitives the group-sorted core needs from an execution engine."""

    @abstractmethod
    def parallelize(self, data: Iterable[Any], num_partitions: Optional[int] = None) -> PartitionedStream:
        """Split local data into source partitions."""
        pass

    @abstractmethod
    def distribute(self,
                   dataset: PartitionedStream,
                   partitioner: Partitioner,
                   key_ordering: Optional[Ordering[Any]] = None,
                   value_ordering: Optional[Ordering[Any]] = None,
                   combiner: Optional[Callable[[Any, Any], Any]] = None) -> PartitionedStream:
        """
        Shuffle (key, value) pairs so each lands in ``partitioner(key)``.

        With ``key_ordering`` every output partition is sorted by key, then by
        ``value_ordering`` if given. With ``combiner`` values of one key are
        combined before and after the shuffle.
        """
        pass

    @abstractmethod
    def map_partitions(self,
                       dataset: PartitionedStream,
                       func: Callable[[Iterator[Any]], Iterable[Any]],
                       preserves_partitioning: bool = True) -> PartitionedStream:
        """Lazily apply ``func`` to each partition iterator."""
        pass

    @abstractmethod
    def zip_partitions(self,
                       left: PartitionedStream,
                       right: PartitionedStream,
                       func: Callable[[Iterator[Any], Iterator[Any]], Iterable[Any]],
                       preserves_partitioning: bool = True) -> PartitionedStream:
        """Lazily combine partition ``i`` of both datasets with ``func``."""
        pass

    @abstractmethod
    def collect_partitions(self, dataset: PartitionedStream) -> List[List[Any]]:
        """Materialize every partition."""
        pass

    def collect(self, dataset: PartitionedStream) -> List[Any]:
        return [item for partition in self.collect_partitions(dataset) for item in partition]

    def count(self, dataset: PartitionedStream) -> int:
        return sum(len(partition) for partition in self.collect_partitions(dataset))


def _apply_partition(func: Callable[[Iterator[Any]], Iterable[Any]], partition: Stream) -> Iterator[Any]:
    return iter(func(iter(partition)))


def _zip_partition(func: Callable[[Iterator[Any], Iterator[Any]], Iterable[Any]],
                   left: Stream,
                   right: Stream) -> Iterator[Any]:
    return iter(func(iter(left), iter(right)))


class _Shuffle:
    """A shuffle stage: routes pairs once, then serves sorted buckets."""

    def __init__(self,
                 source: PartitionedStream,
                 partitioner: Partitioner,
                 key_ordering: Optional[Ordering[Any]],
                 value_ordering: Optional[Ordering[Any]],
                 combiner: Optional[Callable[[Any, Any], Any]],
                 storage_path: Optional[str]):
        self.source = source
        self.partitioner = partitioner
        self.key_ordering = key_ordering
        self.combiner = combiner
        self.storage_path = storage_path
        if key_ordering is not None:
            self.sort_key = key_value_ordering(key_ordering, value_ordering).sort_key
        else:
            self.sort_key = None
        self._buckets: Optional[List[Any]] = None
        self._lock = threading.Lock()

    def _new_bucket(self) -> Any:
        if self.sort_key is None:
            return []
        return ExternalSorter(self.sort_key, storage_path=self.storage_path)

    def _run(self) -> List[Any]:
        num_partitions = self.partitioner.num_partitions
        buckets = [self._new_bucket() for _ in range(num_partitions)]
        routed = 0

        for partition in self.source.partitions:
            pairs: Iterable[Tuple[Any, Any]] = partition
            if self.combiner is not None:
                pairs = combine_by_key(pairs, self.combiner)
            for pair in pairs:
                key, _ = pair
                index = self.partitioner.get_partition(key)
                if not 0 <= index < num_partitions:
                    raise ConfigurationError(
                        f"Partitioner returned {index} for key {key!r}, "
                        f"expected a value in [0, {num_partitions})"
                    )
                if isinstance(buckets[index], list):
                    buckets[index].append(pair)
                else:
                    buckets[index].add(pair)
                routed += 1

        for bucket in buckets:
            if isinstance(bucket, ExternalSorter):
                bucket.finish()

        logger.debug(
            f"Shuffled {routed} pairs from {self.source.num_partitions} "
            f"into {num_partitions} partitions"
        )
        return buckets

    def read(self, index: int) -> Iterator[Tuple[Any, Any]]:
        with self._lock:
            if self._buckets is None:
                self._buckets = self._run()
        pairs = iter(self._buckets[index])
        if self.combiner is not None:
            if self.key_ordering is not None:
                return combine_sorted_by_key(pairs, self.combiner, self.key_ordering)
            return combine_by_key(pairs, self.combiner)
        return pairs


class LocalEngine(PartitionedStreamEngine):
    """
    In-process engine.

    Args:
        parallel_workers: Threads used to materialize partitions
            (defaults to ``config.parallel_workers``)
        storage_path: Directory for spilled sort runs
    """

    def __init__(self,
                 parallel_workers: Optional[int] = None,
                 storage_path: Optional[str] = None):
        self.parallel_workers = config.parallel_workers if parallel_workers is None else parallel_workers
        if self.parallel_workers < 1:
            raise ConfigurationError(f"parallel_workers must be at least 1, got {self.parallel_workers}")
        self.storage_path = storage_path

    def parallelize(self, data: Iterable[Any], num_partitions: Optional[int] = None) -> PartitionedStream:
        items = list(data)
        n = config.default_partitions if num_partitions is None else num_partitions
        if n < 1:
            raise ConfigurationError(f"Number of partitions must be at least 1, got {n}")

        slices = [items[i * len(items) // n:(i + 1) * len(items) // n] for i in range(n)]
        return PartitionedStream([Stream(s) for s in slices], self)

    def distribute(self,
                   dataset: PartitionedStream,
                   partitioner: Partitioner,
                   key_ordering: Optional[Ordering[Any]] = None,
                   value_ordering: Optional[Ordering[Any]] = None,
                   combiner: Optional[Callable[[Any, Any], Any]] = None) -> PartitionedStream:
        shuffle = _Shuffle(dataset, partitioner, key_ordering, value_ordering, combiner, self.storage_path)
        partitions = [
            Stream(functools.partial(shuffle.read, i))
            for i in range(partitioner.num_partitions)
        ]
        return PartitionedStream(partitions, self, partitioner)

    def map_partitions(self,
                       dataset: PartitionedStream,
                       func: Callable[[Iterator[Any]], Iterable[Any]],
                       preserves_partitioning: bool = True) -> PartitionedStream:
        partitions = [
            Stream(functools.partial(_apply_partition, func, partition))
            for partition in dataset.partitions
        ]
        partitioner = dataset.partitioner if preserves_partitioning else None
        return PartitionedStream(partitions, self, partitioner)

    def zip_partitions(self,
                       left: PartitionedStream,
                       right: PartitionedStream,
                       func: Callable[[Iterator[Any], Iterator[Any]], Iterable[Any]],
                       preserves_partitioning: bool = True) -> PartitionedStream:
        if left.num_partitions != right.num_partitions:
            raise ConfigurationError(
                f"Cannot zip datasets with {left.num_partitions} and "
                f"{right.num_partitions} partitions"
            )
        partitions = [
            Stream(functools.partial(_zip_partition, func, lp, rp))
            for lp, rp in zip(left.partitions, right.partitions)
        ]
        partitioner = left.partitioner if preserves_partitioning else None
        return PartitionedStream(partitions, self, partitioner)

    def collect_partitions(self, dataset: PartitionedStream) -> List[List[Any]]:
        if self.parallel_workers == 1 or dataset.num_partitions <= 1:
            return [list(partition) for partition in dataset.partitions]

        with ThreadPoolExecutor(max_workers=self.parallel_workers) as executor:
            return list(executor.map(list, dataset.partitions))


_default_engine: Optional[LocalEngine] = None


def default_engine() -> LocalEngine:
    """Process-wide engine used when none is passed explicitly."""
    global _default_engine
    if _default_engine is None:
        _default_engine = LocalEngine()
    return _default_engine
