"""
Partitioned datasets: a fixed list of lazy partition streams.
"""

from typing import (
    TYPE_CHECKING, Any, Callable, Iterator, List, Optional, Sequence, TypeVar
)

from groupsorted.streams.stream import Stream
from groupsorted.streams.operators import StreamOperator

if TYPE_CHECKING:
    from groupsorted.engine import PartitionedStreamEngine
    from groupsorted.partitioner import Partitioner

T = TypeVar('T')
U = TypeVar('U')


class PartitionedStream:
    """
    An immutable dataset split into independent partitions.

    Each partition is a ``Stream`` and therefore lazily evaluated and
    recomputed on every iteration. ``partitioner`` is set when the
    partitions are known to be laid out by key.
    """

    def __init__(self,
                 partitions: Sequence[Stream],
                 engine: 'PartitionedStreamEngine',
                 partitioner: Optional['Partitioner'] = None):
        self.partitions: List[Stream] = list(partitions)
        self.engine = engine
        self.partitioner = partitioner

    @property
    def num_partitions(self) -> int:
        return len(self.partitions)

    def partition(self, index: int) -> Stream:
        return self.partitions[index]

    def __iter__(self) -> Iterator[Any]:
        """Iterate all elements partition by partition, pulling lazily."""
        for partition in self.partitions:
            yield from partition

    def map_partitions(self,
                       func: Callable[[Iterator[T]], Iterator[U]],
                       preserves_partitioning: bool = True) -> 'PartitionedStream':
        return self.engine.map_partitions(self, func, preserves_partitioning)

    def pipe(self, operator: StreamOperator, preserves_partitioning: bool = True) -> 'PartitionedStream':
        """Apply a stream operator to every partition."""
        return self.map_partitions(operator.apply, preserves_partitioning)

    def zip_partitions(self,
                       other: 'PartitionedStream',
                       func: Callable[[Iterator[Any], Iterator[Any]], Iterator[U]],
                       preserves_partitioning: bool = True) -> 'PartitionedStream':
        return self.engine.zip_partitions(self, other, func, preserves_partitioning)

    def union(self, other: 'PartitionedStream') -> 'PartitionedStream':
        """Concatenate the partitions of both datasets; the result has no partitioner."""
        return PartitionedStream(self.partitions + other.partitions, self.engine)

    def glom(self) -> List[List[Any]]:
        """Materialize each partition as a list."""
        return self.engine.collect_partitions(self)

    def collect(self) -> List[Any]:
        return self.engine.collect(self)

    def count(self) -> int:
        return self.engine.count(self)

    def __repr__(self) -> str:
        return (f"PartitionedStream(num_partitions={self.num_partitions}, "
                f"partitioner={self.partitioner!r})")
