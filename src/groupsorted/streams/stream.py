"""
Lazy, re-iterable streams.

A ``Stream`` never caches its elements: every iteration calls the source
again and replays all operators, so a partition can be recomputed from
scratch at any time.
"""

from typing import Any, Callable, Iterable, Iterator, List, TypeVar, Union

from groupsorted.streams.operators import StreamOperator, TakeOperator

T = TypeVar('T')


class Stream(Iterable[T]):
    """
    A lazy stream over a re-creatable source.
    """

    def __init__(self, source: Union[Iterable[T], Callable[[], Iterator[T]]]):
        """
        Initialize stream.

        Args:
            source: Data source (re-iterable collection or callable returning
                a fresh iterator). One-shot iterators are rejected because
                they cannot be replayed.
        """
        if callable(source):
            self._source = source
        elif hasattr(source, '__iter__'):
            if iter(source) is source:
                raise TypeError("Stream source must be re-iterable, not a one-shot iterator")
            self._source = lambda: iter(source)
        else:
            raise TypeError("Source must be iterable or callable")

        self._operators: List[StreamOperator] = []

    def __iter__(self) -> Iterator[T]:
        """Create iterator with all operators applied."""
        iterator = iter(self._source())

        for op in self._operators:
            iterator = op.apply(iterator)

        return iterator

    def pipe(self, operator: StreamOperator) -> 'Stream[Any]':
        """Return a new stream with ``operator`` appended."""
        new_stream = Stream(self._source)
        new_stream._operators = self._operators.copy()
        new_stream._operators.append(operator)
        return new_stream

    def take(self, n: int) -> 'Stream[T]':
        """Take first n elements."""
        return self.pipe(TakeOperator(n))

    def collect(self) -> List[T]:
        """Collect all elements into a list."""
        return list(self)

    def count(self) -> int:
        """Count elements."""
        return sum(1 for _ in self)
