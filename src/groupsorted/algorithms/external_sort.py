"""
External sorting with spilled runs.

Items are buffered in memory; once the buffer is full it is sorted and
written to disk as a run. Reading merges all runs and the in-memory tail
lazily with a k-way heap merge, so the sorted output can be iterated any
number of times without holding it in memory.
"""

import os
import heapq
import pickle
import logging
import tempfile
import weakref
from dataclasses import dataclass
from typing import Any, Callable, Iterable, Iterator, List, Optional, TypeVar

from groupsorted.config import config

T = TypeVar('T')

logger = logging.getLogger(__name__)


@dataclass
class SortRun:
    """A sorted run on disk."""
    filename: str
    count: int


def _read_run(filename: str) -> Iterator[Any]:
    with open(filename, 'rb') as f:
        while True:
            try:
                yield pickle.load(f)
            except EOFError:
                return


def _remove_runs(filenames: List[str]) -> None:
    for filename in filenames:
        if os.path.exists(filename):
            os.unlink(filename)


class ExternalSorter:
    """
    Accumulate items and iterate them in sorted order.

    Args:
        key: Sort-key function
        buffer_size: Items held in memory before a run is spilled
        storage_path: Directory for run files
    """

    def __init__(self,
                 key: Callable[[T], Any],
                 buffer_size: Optional[int] = None,
                 storage_path: Optional[str] = None):
        self.key = key
        self.buffer_size = max(1, buffer_size or config.calculate_sort_buffer_size())
        self.storage_path = storage_path or config.external_storage_path
        self.runs: List[SortRun] = []
        self._buffer: List[T] = []
        self._filenames: List[str] = []
        self._sealed = False
        # Run files go away with the sorter even if close() is never called
        self._finalizer = weakref.finalize(self, _remove_runs, self._filenames)

    def __len__(self) -> int:
        return len(self._buffer) + sum(run.count for run in self.runs)

    def add(self, item: T) -> None:
        if self._sealed:
            raise RuntimeError("Cannot add to a sorter after iteration started")
        self._buffer.append(item)
        if len(self._buffer) >= self.buffer_size:
            self._spill()

    def extend(self, items: Iterable[T]) -> None:
        for item in items:
            self.add(item)

    def _spill(self) -> None:
        # sort is stable, equal keys keep arrival order within a run
        self._buffer.sort(key=self.key)

        os.makedirs(self.storage_path, exist_ok=True)
        fd, filename = tempfile.mkstemp(suffix='.run', dir=self.storage_path)
        self._filenames.append(filename)
        with os.fdopen(fd, 'wb') as f:
            for item in self._buffer:
                pickle.dump(item, f, protocol=pickle.HIGHEST_PROTOCOL)

        self.runs.append(SortRun(filename=filename, count=len(self._buffer)))
        logger.debug(f"Spilled sorted run of {len(self._buffer)} items to {filename}")
        self._buffer = []

    def finish(self) -> None:
        """Stop accepting items and sort the in-memory tail."""
        if not self._sealed:
            self._buffer.sort(key=self.key)
            self._sealed = True

    def __iter__(self) -> Iterator[T]:
        """Merge runs and the in-memory buffer in sorted order."""
        self.finish()

        if not self.runs:
            return iter(self._buffer)

        sources = [_read_run(run.filename) for run in self.runs]
        sources.append(iter(self._buffer))
        # Runs are merged in spill order so equal keys stay in arrival order
        return heapq.merge(*sources, key=self.key)

    def close(self) -> None:
        """Delete spilled runs."""
        self._finalizer()
        self.runs = []
