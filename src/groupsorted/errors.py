"""Exceptions raised by groupsorted."""


class GroupSortedError(Exception):
    """Base class for all groupsorted errors."""


class ConfigurationError(GroupSortedError, ValueError):
    """Invalid partition count, config value or incompatible inputs."""


class ContractViolation(GroupSortedError):
    """A structure does not satisfy the group-sorted invariants."""
