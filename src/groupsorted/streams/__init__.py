"""Lazy streams and partitioned datasets."""

from groupsorted.streams.stream import Stream
from groupsorted.streams.operators import (
    StreamOperator,
    MapValuesOperator,
    TakeOperator,
)
from groupsorted.streams.partitioned import PartitionedStream

__all__ = [
    "Stream",
    "PartitionedStream",
    "StreamOperator",
    "MapValuesOperator",
    "TakeOperator",
]
