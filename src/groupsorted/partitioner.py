"""Key to partition assignment."""

from abc import ABC, abstractmethod
from typing import Any, Callable, Hashable

from groupsorted.errors import ConfigurationError


class Partitioner(ABC):
    """Deterministic mapping of keys onto ``range(num_partitions)``."""

    def __init__(self, num_partitions: int):
        if not isinstance(num_partitions, int) or num_partitions < 1:
            raise ConfigurationError(
                f"Number of partitions must be a positive integer, got {num_partitions!r}"
            )
        self.num_partitions = num_partitions

    @abstractmethod
    def get_partition(self, key: Any) -> int:
        """Get partition index for a key."""
        pass

    def __call__(self, key: Any) -> int:
        return self.get_partition(key)


class HashPartitioner(Partitioner):
    """
    Hash-based partitioning: ``hash_func(key) % num_partitions``.

    The builtin ``hash`` is salted per interpreter for ``str`` and ``bytes``;
    pass a stable ``hash_func`` when partitions must line up across processes.
    """

    def __init__(self, num_partitions: int, hash_func: Callable[[Hashable], int] = hash):
        super().__init__(num_partitions)
        self.hash_func = hash_func

    def get_partition(self, key: Any) -> int:
        return self.hash_func(key) % self.num_partitions

    def __eq__(self, other: object) -> bool:
        return (type(other) is type(self)
                and other.num_partitions == self.num_partitions
                and other.hash_func == self.hash_func)

    def __hash__(self) -> int:
        return hash((type(self), self.num_partitions, self.hash_func))

    def __repr__(self) -> str:
        return f"HashPartitioner({self.num_partitions})"
