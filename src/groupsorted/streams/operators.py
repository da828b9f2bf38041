"""
Stream operators for transformation.
"""

from abc import ABC, abstractmethod
from typing import Any, Callable, Iterator, Tuple, TypeVar

T = TypeVar('T')
K = TypeVar('K')
V = TypeVar('V')
W = TypeVar('W')


class StreamOperator(ABC):
    """Base class for stream operators."""

    @abstractmethod
    def apply(self, iterator: Iterator[T]) -> Iterator[Any]:
        """Apply operator to iterator."""
        pass


class MapValuesOperator(StreamOperator):
    """Map the value of each (key, value) pair, keeping the key."""

    def __init__(self, func: Callable[[V], W]):
        self.func = func

    def apply(self, iterator: Iterator[Tuple[K, V]]) -> Iterator[Tuple[K, W]]:
        for key, value in iterator:
            yield key, self.func(value)


class TakeOperator(StreamOperator):
    """Take first n elements without pulling the one after."""

    def __init__(self, n: int):
        self.n = n

    def apply(self, iterator: Iterator[T]) -> Iterator[T]:
        if self.n <= 0:
            return
        for i, item in enumerate(iterator, 1):
            yield item
            if i >= self.n:
                break
