"""
Configuration management for group-sorted operations.
"""

import os
import tempfile
from typing import Any, Optional
from dataclasses import dataclass, field
import psutil

from groupsorted.errors import ConfigurationError


@dataclass
class GroupSortedConfig:
    """Global configuration for group-sorted operations."""

    # Partitioning
    default_partitions: int = field(default_factory=lambda: min(4, os.cpu_count() or 1))
    parallel_workers: int = 1

    # Memory limits
    memory_limit: int = field(default_factory=lambda: int(psutil.virtual_memory().total * 0.8))
    memory_fraction: float = 0.1  # share of available memory one sort buffer may use
    bytes_per_pair: int = 128  # rough size estimate used for memory based sizing
    join_buffer_warn_size: int = 100_000  # values buffered for a single right-side key

    # Spilling
    external_storage_path: str = field(default_factory=lambda: os.path.join(tempfile.gettempdir(), "groupsorted"))
    sort_buffer_size: Optional[int] = None  # pairs kept in memory per partition before spilling; None sizes from memory
    min_sort_buffer_size: int = 1000
    max_sort_buffer_size: int = 10_000_000

    _instance: Optional['GroupSortedConfig'] = None

    @classmethod
    def get_instance(cls) -> 'GroupSortedConfig':
        """Get singleton instance."""
        if cls._instance is None:
            cls._instance = cls()
        return cls._instance

    @classmethod
    def set_defaults(cls, **kwargs: Any) -> None:
        """Set default configuration values."""
        instance = cls.get_instance()
        for key, value in kwargs.items():
            if not hasattr(instance, key) or key.startswith('_'):
                raise ConfigurationError(f"Unknown configuration option: {key}")
            if key in ('default_partitions', 'parallel_workers') and value < 1:
                raise ConfigurationError(f"{key} must be at least 1, got {value}")
            if key == 'sort_buffer_size' and value is not None and value < 1:
                raise ConfigurationError(f"sort_buffer_size must be at least 1, got {value}")
            setattr(instance, key, value)

    def calculate_sort_buffer_size(self) -> int:
        """Number of pairs one partition may buffer before spilling a sorted run."""
        if self.sort_buffer_size is not None:
            return self.sort_buffer_size

        available = min(psutil.virtual_memory().available, self.memory_limit)
        buffer_size = int(available * self.memory_fraction / self.bytes_per_pair)
        return max(self.min_sort_buffer_size, min(buffer_size, self.max_sort_buffer_size))

    def format_bytes(self, bytes: int) -> str:
        """Format bytes as human-readable string."""
        for unit in ['B', 'KB', 'MB', 'GB', 'TB']:
            if bytes < 1024.0:
                return f"{bytes:.2f} {unit}"
            bytes /= 1024.0
        return f"{bytes:.2f} PB"


# Global configuration instance
config = GroupSortedConfig.get_instance()
