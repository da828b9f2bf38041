"""
Sort-merge join of two co-partitioned, co-ordered partitions.

Both sides are walked in lockstep by key. For a key present on both sides
the right group is buffered and the left group is streamed against it, so
memory is bounded by the largest right-side key group.
"""

import logging
from enum import Enum
from typing import Any, Iterable, Iterator, List, Optional, Tuple, Union

from groupsorted.config import config
from groupsorted.errors import ConfigurationError
from groupsorted.memory import monitor
from groupsorted.ordering import Ordering, OptionalOrdering, tuple_ordering
from groupsorted.core.keygroups import KeyGroupValues, PairCursor

logger = logging.getLogger(__name__)

_END = object()


class JoinType(Enum):
    """Join variants."""
    INNER = "inner"
    LEFT_OUTER = "left"
    RIGHT_OUTER = "right"
    FULL_OUTER = "outer"

    @property
    def keeps_left(self) -> bool:
        return self in (JoinType.LEFT_OUTER, JoinType.FULL_OUTER)

    @property
    def keeps_right(self) -> bool:
        return self in (JoinType.RIGHT_OUTER, JoinType.FULL_OUTER)

    @classmethod
    def parse(cls, how: Union['JoinType', str]) -> 'JoinType':
        if isinstance(how, JoinType):
            return how
        aliases = {
            "inner": cls.INNER,
            "left": cls.LEFT_OUTER,
            "left_outer": cls.LEFT_OUTER,
            "right": cls.RIGHT_OUTER,
            "right_outer": cls.RIGHT_OUTER,
            "outer": cls.FULL_OUTER,
            "full": cls.FULL_OUTER,
            "full_outer": cls.FULL_OUTER,
        }
        try:
            return aliases[str(how).lower()]
        except KeyError:
            raise ConfigurationError(f"Unknown join type: {how!r}") from None


def join_value_ordering(
    join_type: JoinType,
    left: Optional[Ordering[Any]],
    right: Optional[Ordering[Any]]
) -> Optional[Ordering[Any]]:
    """Ordering of (left value, right value) outputs, left major."""
    if left is None or right is None:
        return None
    if join_type.keeps_right:
        left = OptionalOrdering(left)
    if join_type.keeps_left:
        right = OptionalOrdering(right)
    return tuple_ordering(left, right)


class MergeJoin:
    """
    Partition-local merge join.

    Args:
        key_ordering: Ordering shared by both sides
        join_type: Which unmatched keys to keep
        buffer_warn_size: Right-side group size that triggers a warning
        left_value_ordering: When set, matched values are emitted ordered by
            (left, right) value: each run of equal left values is crossed
            with the right group right-major
    """

    def __init__(self,
                 key_ordering: Ordering[Any],
                 join_type: JoinType = JoinType.FULL_OUTER,
                 buffer_warn_size: Optional[int] = None,
                 left_value_ordering: Optional[Ordering[Any]] = None):
        self.key_ordering = key_ordering
        self.join_type = join_type
        self.buffer_warn_size = buffer_warn_size
        self.left_value_ordering = left_value_ordering

    def __call__(self,
                 left_pairs: Iterable[Tuple[Any, Any]],
                 right_pairs: Iterable[Tuple[Any, Any]]) -> Iterator[Tuple[Any, Tuple[Any, Any]]]:
        left = PairCursor(left_pairs, self.key_ordering)
        right = PairCursor(right_pairs, self.key_ordering)
        keeps_left = self.join_type.keeps_left
        keeps_right = self.join_type.keeps_right
        warn_size = self.buffer_warn_size or config.join_buffer_warn_size
        warned = False

        while left.has_next() and right.has_next():
            comparison = self.key_ordering.compare(left.head_key(), right.head_key())

            if comparison == 0:
                key, left_values = left.next_group()
                _, right_values = right.next_group()
                buffered = list(right_values)
                if len(buffered) > warn_size and not warned:
                    warned = True
                    info = monitor.check_memory_pressure()
                    logger.warning(
                        f"Merge join buffered {len(buffered)} right-side values "
                        f"for key {key!r}; {info}"
                    )
                yield from self._matched(key, left_values, buffered)

            elif comparison < 0:
                yield from self._unmatched_left(left, keeps_left)
            else:
                yield from self._unmatched_right(right, keeps_right)

        while left.has_next():
            yield from self._unmatched_left(left, keeps_left)
        while right.has_next():
            yield from self._unmatched_right(right, keeps_right)

    def _matched(self,
                 key: Any,
                 left_values: KeyGroupValues[Any, Any],
                 buffered: List[Any]) -> Iterator[Tuple[Any, Tuple[Any, Any]]]:
        ordering = self.left_value_ordering
        if ordering is None:
            for left_value in left_values:
                for right_value in buffered:
                    yield key, (left_value, right_value)
            return

        for left_value in left_values:
            # only the run of equal left values is held, never the whole group
            run = [left_value]
            while True:
                upcoming = left_values.peek(_END)
                if upcoming is _END or not ordering.equiv(upcoming, left_value):
                    break
                run.append(next(left_values))
            for right_value in buffered:
                for run_value in run:
                    yield key, (run_value, right_value)

    @staticmethod
    def _unmatched_left(cursor: PairCursor[Any, Any], keep: bool) -> Iterator[Tuple[Any, Tuple[Any, Any]]]:
        key, values = cursor.next_group()
        if keep:
            for value in values:
                yield key, (value, None)
        else:
            values.close()

    @staticmethod
    def _unmatched_right(cursor: PairCursor[Any, Any], keep: bool) -> Iterator[Tuple[Any, Tuple[Any, Any]]]:
        key, values = cursor.next_group()
        if keep:
            for value in values:
                yield key, (None, value)
        else:
            values.close()
