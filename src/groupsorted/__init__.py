"""
groupsorted: partitioned key-value datasets grouped and sorted by key.

Pairs sharing a key are contiguous inside a single partition and optionally
ordered by value, which allows streaming per-key operators and sort-merge
joins and unions that never redistribute data.
"""

from groupsorted.config import GroupSortedConfig, config
from groupsorted.errors import GroupSortedError, ConfigurationError, ContractViolation
from groupsorted.ordering import Ordering
from groupsorted.partitioner import Partitioner, HashPartitioner
from groupsorted.streams import Stream, PartitionedStream
from groupsorted.engine import PartitionedStreamEngine, LocalEngine, default_engine
from groupsorted.core import (
    GroupSorted,
    group_sort,
    JoinType,
    ValidityReport,
    check_group_sorted,
    is_group_sorted,
    assert_group_sorted,
)

__version__ = "0.1.0"
__license__ = "Apache-2.0"

__all__ = [
    "GroupSortedConfig",
    "config",
    "GroupSortedError",
    "ConfigurationError",
    "ContractViolation",
    "Ordering",
    "Partitioner",
    "HashPartitioner",
    "Stream",
    "PartitionedStream",
    "PartitionedStreamEngine",
    "LocalEngine",
    "default_engine",
    "GroupSorted",
    "group_sort",
    "JoinType",
    "ValidityReport",
    "check_group_sorted",
    "is_group_sorted",
    "assert_group_sorted",
]
