#!/usr/bin/env python3
"""
Tests for merge joins of group-sorted datasets.
"""

import unittest
from collections import Counter, defaultdict

from hypothesis import given, settings, strategies as st

from groupsorted import (
    ConfigurationError, GroupSortedConfig, HashPartitioner, JoinType, Ordering,
    group_sort, is_group_sorted,
)

int_pairs = st.lists(st.tuples(st.integers(0, 15), st.integers(0, 5)), max_size=30)


def expected_join(left, right, join_type):
    """Nested-loop reference join."""
    left_by_key = defaultdict(list)
    right_by_key = defaultdict(list)
    for key, value in left:
        left_by_key[key].append(value)
    for key, value in right:
        right_by_key[key].append(value)

    result = Counter()
    for key in set(left_by_key) | set(right_by_key):
        lvalues = left_by_key.get(key, [])
        rvalues = right_by_key.get(key, [])
        if lvalues and rvalues:
            for lv in lvalues:
                for rv in rvalues:
                    result[(key, (lv, rv))] += 1
        elif lvalues and join_type.keeps_left:
            for lv in lvalues:
                result[(key, (lv, None))] += 1
        elif rvalues and join_type.keeps_right:
            for rv in rvalues:
                result[(key, (None, rv))] += 1
    return result


class TestMergeJoin(unittest.TestCase):
    """Test the four join variants."""

    def test_inner_single_partition(self):
        a = group_sort([(str(x), str(x)) for x in range(1, 12)], 1)
        b = group_sort([(str(x), str(x)) for x in range(10, 12)], 1)
        joined = a.merge_join_inner(b)
        self.assertTrue(is_group_sorted(joined))
        self.assertEqual(set(joined.collect()), {("10", ("10", "10")), ("11", ("11", "11"))})

    def test_tuple_keys(self):
        a = group_sort([((i, "k"), i) for i in range(5)], 2)
        b = group_sort([((i, "k"), -i) for i in range(3, 8)], 2)
        joined = a.merge_join_left_outer(b)
        self.assertEqual(sorted(joined.collect()), [
            ((0, "k"), (0, None)),
            ((1, "k"), (1, None)),
            ((2, "k"), (2, None)),
            ((3, "k"), (3, -3)),
            ((4, "k"), (4, -4)),
        ])

    @settings(max_examples=100, deadline=None)
    @given(left=int_pairs, right=int_pairs, num_partitions=st.integers(1, 3),
           sort_left=st.booleans(), sort_right=st.booleans())
    def test_matches_reference_join(self, left, right, num_partitions, sort_left, sort_right):
        """Every join variant is valid and equals a nested-loop join, whichever sides sort values."""
        a = group_sort(left, num_partitions, value_ordering=Ordering.natural() if sort_left else None)
        b = group_sort(right, num_partitions, value_ordering=Ordering.natural() if sort_right else None)
        for join_type in JoinType:
            joined = a.merge_join(b, join_type)
            self.assertEqual(joined.value_ordering is not None, sort_left and sort_right)
            self.assertTrue(is_group_sorted(joined), join_type)
            self.assertEqual(Counter(joined.collect()), expected_join(left, right, join_type))

    def test_equal_left_values_keep_declared_order(self):
        """Duplicate left values are interleaved per right value so (left, right) never decreases."""
        natural = Ordering.natural()
        a = group_sort([("k", 1), ("k", 1), ("k", 2)], 1, value_ordering=natural)
        b = group_sort([("k", 2), ("k", 1)], 1, value_ordering=natural)
        joined = a.merge_join_inner(b)
        self.assertEqual(joined.collect(), [
            ("k", (1, 1)), ("k", (1, 1)), ("k", (1, 2)), ("k", (1, 2)),
            ("k", (2, 1)), ("k", (2, 2)),
        ])
        self.assertTrue(joined.validate().is_valid)

    def test_equivalent_left_values_grouped_by_ordering(self):
        """Left values equal under the value ordering form one run even when distinct."""
        by_length = Ordering.by(len)
        a = group_sort([("k", "ab"), ("k", "cd")], 1, value_ordering=by_length)
        b = group_sort([("k", "x"), ("k", "yy")], 1, value_ordering=by_length)
        joined = a.merge_join(b)
        self.assertEqual(joined.collect(), [
            ("k", ("ab", "x")), ("k", ("cd", "x")), ("k", ("ab", "yy")), ("k", ("cd", "yy")),
        ])
        self.assertTrue(is_group_sorted(joined))

    def test_named_variants(self):
        a = group_sort([(1, "a"), (2, "b")], 2)
        b = group_sort([(2, "x"), (3, "y")], 2)
        self.assertEqual(sorted(a.merge_join_inner(b).collect()), [(2, ("b", "x"))])
        self.assertEqual(sorted(a.merge_join_left_outer(b).collect()), [(1, ("a", None)), (2, ("b", "x"))])
        self.assertEqual(sorted(a.merge_join_right_outer(b).collect()), [(2, ("b", "x")), (3, (None, "y"))])
        self.assertEqual(Counter(a.merge_join(b).collect()),
                         Counter([(1, ("a", None)), (2, ("b", "x")), (3, (None, "y"))]))
        self.assertEqual(Counter(a.merge_join(b, "left").collect()),
                         Counter(a.merge_join_left_outer(b).collect()))

    def test_disjoint_full_outer(self):
        """Every key appears exactly once per value when nothing matches."""
        a = group_sort([(i, i) for i in range(0, 20, 2)], 3)
        b = group_sort([(i, i) for i in range(1, 20, 2)], 3)
        result = a.merge_join(b).collect()
        self.assertEqual(sorted(k for k, _ in result), list(range(20)))
        for key, (lv, rv) in result:
            self.assertEqual(lv if key % 2 == 0 else rv, key)
            self.assertIsNone(rv if key % 2 == 0 else lv)

    def test_many_to_many(self):
        """Matching groups produce their cross product."""
        a = group_sort([("k", 1), ("k", 2), ("k", 3)], 2)
        b = group_sort([("k", "x"), ("k", "y")], 2)
        self.assertEqual(len(a.merge_join_inner(b).collect()), 6)

    def test_preserves_partitioner(self):
        a = group_sort([(1, 1)], 3)
        b = group_sort([(1, 2)], 3)
        joined = a.merge_join(b)
        self.assertEqual(joined.partitioner, a.partitioner)
        self.assertEqual(joined.key_ordering, a.key_ordering)

    def test_value_ordering_with_both_sides_ordered(self):
        """Joined values are ordered left major when both sides declare orderings."""
        natural = Ordering.natural()
        a = group_sort([(k, v) for k in range(4) for v in (3, 1, 2)], 2, value_ordering=natural)
        b = group_sort([(k, v) for k in range(2, 6) for v in (9, 7)], 2, value_ordering=natural)
        joined = a.merge_join(b)
        self.assertIsNotNone(joined.value_ordering)
        self.assertTrue(is_group_sorted(joined))
        self.assertEqual([v for k, v in joined.collect() if k == 2],
                         [(1, 7), (1, 9), (2, 7), (2, 9), (3, 7), (3, 9)])

    def test_value_ordering_dropped_when_one_side_unordered(self):
        a = group_sort([(1, 1)], 2, value_ordering=Ordering.natural())
        b = group_sort([(1, 2)], 2)
        self.assertIsNone(a.merge_join(b).value_ordering)


class TestMergeJoinPreconditions(unittest.TestCase):
    """Mismatched layouts are refused before any data moves."""

    def test_partition_count_mismatch(self):
        with self.assertRaises(ConfigurationError):
            group_sort([(1, 1)], 2).merge_join(group_sort([(1, 1)], 3))

    def test_partitioner_mismatch(self):
        a = group_sort([(1, 1)], partitioner=HashPartitioner(2))
        b = group_sort([(1, 1)], partitioner=HashPartitioner(2, hash_func=lambda key: 0))
        with self.assertRaises(ConfigurationError):
            a.merge_join_inner(b)

    def test_key_ordering_mismatch(self):
        a = group_sort([(1, 1)], 2)
        b = group_sort([(1, 1)], 2, key_ordering=Ordering.natural().reverse())
        with self.assertRaises(ConfigurationError):
            a.merge_join(b)

    def test_unknown_join_type(self):
        a = group_sort([(1, 1)], 2)
        with self.assertRaises(ConfigurationError):
            a.merge_join(a, "sideways")


class TestJoinBuffering(unittest.TestCase):
    """Test the warning for large buffered right-side groups."""

    def tearDown(self):
        GroupSortedConfig.set_defaults(join_buffer_warn_size=100_000)

    def test_warns_on_large_right_group(self):
        GroupSortedConfig.set_defaults(join_buffer_warn_size=2)
        a = group_sort([("k", 0)], 1)
        b = group_sort([("k", i) for i in range(5)], 1)
        with self.assertLogs("groupsorted.core.join", level="WARNING") as logs:
            self.assertEqual(len(a.merge_join_inner(b).collect()), 5)
        self.assertTrue(any("buffered 5" in line for line in logs.output))


if __name__ == "__main__":
    unittest.main()
