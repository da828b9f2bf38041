"""
Merge union of two co-partitioned partitions sharing one ordering.
"""

import heapq
from typing import Any, Callable, Iterable, Iterator, Tuple


class MergeUnion:
    """
    Linear merge of two sorted partitions.

    Duplicates are kept; on ties pairs from the left side come first.
    """

    def __init__(self, sort_key: Callable[[Tuple[Any, Any]], Any]):
        self.sort_key = sort_key

    def __call__(self,
                 left_pairs: Iterable[Tuple[Any, Any]],
                 right_pairs: Iterable[Tuple[Any, Any]]) -> Iterator[Tuple[Any, Any]]:
        return heapq.merge(left_pairs, right_pairs, key=self.sort_key)
