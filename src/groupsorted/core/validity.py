"""
Structural checks for group-sorted datasets.

These materialize every partition and are meant for tests and offline
verification, not for the data path.
"""

from dataclasses import dataclass, field
from typing import TYPE_CHECKING, List

from groupsorted.errors import ContractViolation
from groupsorted.ordering import key_value_ordering

if TYPE_CHECKING:
    from groupsorted.core.grouped import GroupSorted


@dataclass
class ValidityReport:
    """Outcome of a validity check."""
    violations: List[str] = field(default_factory=list)
    pairs_checked: int = 0

    @property
    def is_valid(self) -> bool:
        return not self.violations

    def __bool__(self) -> bool:
        return self.is_valid

    def __str__(self) -> str:
        if self.is_valid:
            return f"valid ({self.pairs_checked} pairs checked)"
        return f"{len(self.violations)} violation(s): " + "; ".join(self.violations)


def check_group_sorted(grouped: 'GroupSorted', max_violations: int = 20) -> ValidityReport:
    """
    Verify partitioning and in-partition ordering.

    Checks that a partitioner exists, that its partition count matches the
    physical partitions, that every pair sits in its assigned partition and
    that adjacent pairs never decrease under the (key, value) ordering.
    """
    report = ValidityReport()
    partitioner = grouped.partitioner
    if partitioner is None:
        report.violations.append("dataset has no partitioner")
        return report

    partitions = grouped.glom()
    if partitioner.num_partitions != len(partitions):
        report.violations.append(
            f"partitioner expects {partitioner.num_partitions} partitions, "
            f"found {len(partitions)}"
        )
        return report

    ordering = key_value_ordering(grouped.key_ordering, grouped.value_ordering)

    for index, pairs in enumerate(partitions):
        previous = None
        for position, pair in enumerate(pairs):
            report.pairs_checked += 1
            key = pair[0]
            expected = partitioner.get_partition(key)
            if expected != index:
                report.violations.append(
                    f"key {key!r} found in partition {index}, belongs in {expected}"
                )
            if previous is not None and ordering.compare(previous, pair) > 0:
                report.violations.append(
                    f"partition {index} out of order at position {position}: "
                    f"{previous!r} before {pair!r}"
                )
            previous = pair
            if len(report.violations) >= max_violations:
                return report

    return report


def is_group_sorted(grouped: 'GroupSorted') -> bool:
    return check_group_sorted(grouped, max_violations=1).is_valid


def assert_group_sorted(grouped: 'GroupSorted') -> None:
    """Raise ``ContractViolation`` when the invariants do not hold."""
    report = check_group_sorted(grouped)
    if not report.is_valid:
        raise ContractViolation(str(report))
