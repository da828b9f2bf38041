#!/usr/bin/env python3
"""
Basic usage examples for groupsorted.
"""

import random
from groupsorted import (
    GroupSortedConfig,
    LocalEngine,
    Ordering,
    group_sort,
)


def example_group_sort():
    """Example: group and sort pairs, then inspect partitions."""
    print("\n=== group_sort Example ===")

    pairs = [("b", 10), ("a", 3), ("c", 5), ("a", 1), ("b", 1)]
    grouped = group_sort(pairs, num_partitions=2, value_ordering=Ordering.natural())

    for index, partition in enumerate(grouped.glom()):
        print(f"Partition {index}: {partition}")
    print(f"Valid: {grouped.validate()}")


def example_time_series():
    """Example: exponential moving average per sensor, in time order."""
    print("\n=== Time Series Example ===")

    readings = [
        (sensor, (t, random.random()))
        for sensor in ("s1", "s2", "s3")
        for t in random.sample(range(100), 20)
    ]

    by_time = Ordering.by(lambda reading: reading[0])
    emas = group_sort(readings, num_partitions=2, value_ordering=by_time).fold_left_by_key(
        0.0, lambda acc, reading: 0.8 * acc + 0.2 * reading[1]
    )
    for sensor, ema in sorted(emas.collect()):
        print(f"{sensor}: {ema:.4f}")


def example_top_n():
    """Example: take the three largest values per key without reading the rest."""
    print("\n=== Top-N Example ===")

    pairs = [(f"user_{i % 5}", random.randint(1, 1000)) for i in range(1000)]
    top3 = group_sort(pairs, value_ordering=Ordering.natural().reverse()).map_stream_by_key(
        lambda values: (value for _, value in zip(range(3), values))
    )
    for key, value in sorted(top3.collect()):
        print(f"{key}: {value}")


def example_merge_join():
    """Example: join two co-partitioned datasets without reshuffling."""
    print("\n=== Merge Join Example ===")

    engine = LocalEngine()
    users = group_sort([(1, "alice"), (2, "bob"), (3, "carol")], num_partitions=2, engine=engine)
    orders = group_sort([(1, "book"), (1, "pen"), (3, "lamp"), (4, "desk")], num_partitions=2, engine=engine)

    print("Inner:", sorted(users.merge_join_inner(orders).collect()))
    print("Full outer:", sorted(users.merge_join(orders).collect(), key=repr))
    print("Union count:", users.merge_union(orders).count())


def main():
    GroupSortedConfig.set_defaults(default_partitions=2)

    example_group_sort()
    example_time_series()
    example_top_n()
    example_merge_join()


if __name__ == "__main__":
    main()
