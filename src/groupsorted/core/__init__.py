"""Group-sorted datasets and their streaming, join and union operators."""

from groupsorted.core.grouped import GroupSorted, group_sort
from groupsorted.core.keygroups import KeyGroupValues, PairCursor
from groupsorted.core.join import JoinType, MergeJoin
from groupsorted.core.union import MergeUnion
from groupsorted.core.validity import (
    ValidityReport,
    check_group_sorted,
    is_group_sorted,
    assert_group_sorted,
)

__all__ = [
    "GroupSorted",
    "group_sort",
    "KeyGroupValues",
    "PairCursor",
    "JoinType",
    "MergeJoin",
    "MergeUnion",
    "ValidityReport",
    "check_group_sorted",
    "is_group_sorted",
    "assert_group_sorted",
]
