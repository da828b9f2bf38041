"""Sorting and combining algorithms backing the shuffle."""

from groupsorted.algorithms.external_sort import ExternalSorter
from groupsorted.algorithms.combine import combine_by_key, combine_sorted_by_key

__all__ = [
    "ExternalSorter",
    "combine_by_key",
    "combine_sorted_by_key",
]
