#!/usr/bin/env python3
"""
Tests for streams, the local engine and the spilling external sort.
"""

import os
import random
import shutil
import tempfile
import unittest
from collections import Counter

from groupsorted import (
    ConfigurationError, GroupSortedConfig, HashPartitioner, LocalEngine,
    Ordering, Stream, config,
)
from groupsorted.algorithms import ExternalSorter
from groupsorted.algorithms import combine_by_key, combine_sorted_by_key
from groupsorted.streams import MapValuesOperator, PartitionedStream


class TestStream(unittest.TestCase):
    """Test lazy stream behaviour."""

    def test_replays_from_source(self):
        """Every iteration re-runs the source and operators."""
        calls = []

        def source():
            calls.append(1)
            return iter([("a", 1), ("b", 2)])

        stream = Stream(source).pipe(MapValuesOperator(lambda v: v * 2))
        self.assertEqual(stream.collect(), [("a", 2), ("b", 4)])
        self.assertEqual(stream.collect(), [("a", 2), ("b", 4)])
        self.assertEqual(len(calls), 2)

    def test_rejects_one_shot_iterators(self):
        """Generators cannot be replayed and are refused."""
        with self.assertRaises(TypeError):
            Stream(x for x in range(3))

    def test_take_does_not_overpull(self):
        """take(n) stops pulling once n elements were produced."""
        pulled = []

        def source():
            for i in range(100):
                pulled.append(i)
                yield i

        self.assertEqual(Stream(source).take(3).collect(), [0, 1, 2])
        self.assertEqual(pulled, [0, 1, 2])

    def test_take_and_count(self):
        stream = Stream(range(10))
        self.assertEqual(stream.count(), 10)
        self.assertEqual(stream.take(0).collect(), [])
        self.assertEqual(stream.take(20).count(), 10)


class TestLocalEngine(unittest.TestCase):
    """Test the in-process partitioned stream engine."""

    def setUp(self):
        self.engine = LocalEngine()

    def test_parallelize_splits_evenly(self):
        """Source partitions keep element order and cover all data."""
        dataset = self.engine.parallelize(range(10), num_partitions=3)
        self.assertEqual(dataset.num_partitions, 3)
        self.assertIsNone(dataset.partitioner)
        self.assertEqual(dataset.glom(), [[0, 1, 2], [3, 4, 5], [6, 7, 8, 9]])
        self.assertEqual(dataset.count(), 10)

    def test_parallelize_rejects_zero_partitions(self):
        with self.assertRaises(ConfigurationError):
            self.engine.parallelize([1, 2], num_partitions=0)

    def test_distribute_routes_and_sorts(self):
        """Each pair lands in its partition, sorted by key then value."""
        pairs = [(k, v) for k in range(20) for v in (3, 1, 2)]
        random.shuffle(pairs)
        partitioner = HashPartitioner(3)
        dataset = self.engine.distribute(
            self.engine.parallelize(pairs, 4), partitioner,
            Ordering.natural(), Ordering.natural()
        )

        self.assertIs(dataset.partitioner, partitioner)
        for index, partition in enumerate(dataset.glom()):
            self.assertEqual(partition, sorted(partition))
            for key, _ in partition:
                self.assertEqual(partitioner.get_partition(key), index)
        self.assertEqual(Counter(dataset.collect()), Counter(pairs))

    def test_distribute_combines(self):
        """A combiner leaves one pair per key."""
        pairs = [("a", 1), ("b", 2), ("a", 3), ("b", 4), ("c", 5)] * 3
        dataset = self.engine.distribute(
            self.engine.parallelize(pairs, 3), HashPartitioner(2),
            Ordering.natural(), combiner=lambda a, b: a + b
        )
        self.assertEqual(dict(dataset.collect()), {"a": 12, "b": 18, "c": 15})

    def test_shuffle_runs_once(self):
        """Replaying an output partition reuses the shuffle output."""
        pulls = []

        def source():
            for pair in [("a", 1), ("b", 2)]:
                pulls.append(pair)
                yield pair

        dataset = self.engine.distribute(
            PartitionedStream([Stream(source)], self.engine), HashPartitioner(2), Ordering.natural()
        )
        first = dataset.glom()
        second = dataset.glom()
        self.assertEqual(first, second)
        self.assertEqual(len(pulls), 2)

    def test_zip_partitions_requires_equal_counts(self):
        left = self.engine.parallelize([1, 2], 2)
        right = self.engine.parallelize([1, 2], 1)
        with self.assertRaises(ConfigurationError):
            left.zip_partitions(right, lambda a, b: iter(()))

    def test_rejects_zero_workers(self):
        """An explicit worker count below one is an error, not the default."""
        with self.assertRaises(ConfigurationError):
            LocalEngine(parallel_workers=0)
        self.assertEqual(LocalEngine().parallel_workers, config.parallel_workers)

    def test_parallel_collect(self):
        """Thread-pool materialization gives the same partitions."""
        pairs = [(i % 7, i) for i in range(200)]
        serial = LocalEngine(parallel_workers=1)
        parallel = LocalEngine(parallel_workers=4)
        for engine in (serial, parallel):
            dataset = engine.distribute(engine.parallelize(pairs, 4), HashPartitioner(3),
                                        Ordering.natural(), Ordering.natural())
            self.assertEqual(
                dataset.glom(),
                [sorted(p for p in pairs if p[0] % 3 == i) for i in range(3)]
            )


class TestExternalSort(unittest.TestCase):
    """Test spilling sort."""

    def setUp(self):
        self.temp_dir = tempfile.mkdtemp()

    def tearDown(self):
        GroupSortedConfig.set_defaults(sort_buffer_size=None)
        shutil.rmtree(self.temp_dir, ignore_errors=True)

    def test_spills_runs_and_merges(self):
        """Items beyond the buffer go to run files and come back merged."""
        data = [random.randint(1, 100) for _ in range(50)]
        sorter = ExternalSorter(lambda x: x, buffer_size=8, storage_path=self.temp_dir)
        sorter.extend(data)

        self.assertEqual(len(sorter.runs), 6)
        self.assertEqual(len(sorter), 50)
        self.assertEqual(list(sorter), sorted(data))
        # iteration can be repeated
        self.assertEqual(list(sorter), sorted(data))

        filenames = [run.filename for run in sorter.runs]
        self.assertTrue(all(os.path.exists(f) for f in filenames))
        sorter.close()
        self.assertFalse(any(os.path.exists(f) for f in filenames))

    def test_stable_across_runs(self):
        """Equal keys keep insertion order even across spilled runs."""
        data = [(i % 3, i) for i in range(30)]
        sorter = ExternalSorter(lambda x: x[0], buffer_size=4, storage_path=self.temp_dir)
        sorter.extend(data)
        self.assertEqual(list(sorter), sorted(data, key=lambda x: x[0]))
        sorter.close()
        self.assertEqual(os.listdir(self.temp_dir), [])

    def test_add_after_iteration_fails(self):
        sorter = ExternalSorter(lambda x: x, buffer_size=4, storage_path=self.temp_dir)
        sorter.add(1)
        list(sorter)
        with self.assertRaises(RuntimeError):
            sorter.add(2)

    def test_shuffle_spills_with_small_buffer(self):
        """A tiny sort buffer forces spilling during the shuffle."""
        GroupSortedConfig.set_defaults(sort_buffer_size=5)
        engine = LocalEngine(storage_path=self.temp_dir)
        pairs = [(random.choice("abcdef"), random.randint(0, 50)) for _ in range(200)]
        dataset = engine.distribute(engine.parallelize(pairs, 3), HashPartitioner(2),
                                    Ordering.natural(), Ordering.natural())
        for partition in dataset.glom():
            self.assertEqual(partition, sorted(partition))
        self.assertEqual(Counter(dataset.collect()), Counter(pairs))
        self.assertTrue(os.listdir(self.temp_dir))


class TestCombine(unittest.TestCase):
    """Test per-key combining helpers."""

    def test_combine_by_key(self):
        pairs = [("a", 1), ("b", 1), ("a", 2)]
        self.assertEqual(list(combine_by_key(pairs, max)), [("a", 2), ("b", 1)])

    def test_combine_sorted_by_key(self):
        pairs = [("a", 1), ("a", 2), ("b", 5), ("c", 1), ("c", 1)]
        result = list(combine_sorted_by_key(pairs, lambda a, b: a + b, Ordering.natural()))
        self.assertEqual(result, [("a", 3), ("b", 5), ("c", 2)])
        self.assertEqual(list(combine_sorted_by_key([], max, Ordering.natural())), [])


class TestConfig(unittest.TestCase):
    """Test configuration defaults."""

    def tearDown(self):
        GroupSortedConfig.set_defaults(sort_buffer_size=None)

    def test_sort_buffer_size(self):
        GroupSortedConfig.set_defaults(sort_buffer_size=42)
        self.assertEqual(config.calculate_sort_buffer_size(), 42)
        GroupSortedConfig.set_defaults(sort_buffer_size=None)
        size = config.calculate_sort_buffer_size()
        self.assertGreaterEqual(size, config.min_sort_buffer_size)
        self.assertLessEqual(size, config.max_sort_buffer_size)

    def test_rejects_bad_values(self):
        with self.assertRaises(ConfigurationError):
            GroupSortedConfig.set_defaults(default_partitions=0)
        with self.assertRaises(ConfigurationError):
            GroupSortedConfig.set_defaults(no_such_option=1)


if __name__ == "__main__":
    unittest.main()
