"""
Per-key combining of (key, value) pairs with an associative aggregator.
"""

from typing import Callable, Iterable, Iterator, Tuple, TypeVar

from groupsorted.ordering import Ordering

K = TypeVar('K')
V = TypeVar('V')


def combine_by_key(
    pairs: Iterable[Tuple[K, V]],
    aggregator: Callable[[V, V], V]
) -> Iterator[Tuple[K, V]]:
    """
    Hash-based combine: one pair per distinct key, in first-seen key order.

    Used map-side, before pairs leave their source partition. Keys must be
    hashable.
    """
    combined = {}
    for key, value in pairs:
        if key in combined:
            combined[key] = aggregator(combined[key], value)
        else:
            combined[key] = value
    return iter(combined.items())


def combine_sorted_by_key(
    pairs: Iterable[Tuple[K, V]],
    aggregator: Callable[[V, V], V],
    key_ordering: Ordering[K]
) -> Iterator[Tuple[K, V]]:
    """
    Sort-based combine over pairs that are already key-contiguous.

    Streams: only the running aggregate of the current key is held.
    """
    iterator = iter(pairs)
    try:
        current_key, current_value = next(iterator)
    except StopIteration:
        return

    for key, value in iterator:
        if key_ordering.equiv(key, current_key):
            current_value = aggregator(current_value, value)
        else:
            yield current_key, current_value
            current_key, current_value = key, value

    yield current_key, current_value
