"""Memory monitoring and pressure detection."""

import time
import logging
import psutil
from enum import Enum
from typing import Optional
from dataclasses import dataclass

from groupsorted.config import config

logger = logging.getLogger(__name__)


class MemoryPressureLevel(Enum):
    """Memory pressure levels."""
    NONE = 0
    LOW = 1
    MEDIUM = 2
    HIGH = 3
    CRITICAL = 4

    def __ge__(self, other):
        if not isinstance(other, MemoryPressureLevel):
            return NotImplemented
        return self.value >= other.value


@dataclass
class MemoryInfo:
    """Memory usage information."""
    total: int
    available: int
    used: int
    percent: float
    pressure_level: MemoryPressureLevel
    timestamp: float

    def __str__(self) -> str:
        return (f"Memory: {self.percent:.1f}% used "
                f"({config.format_bytes(self.used)}/{config.format_bytes(self.total)}), "
                f"Pressure: {self.pressure_level.name}")


class MemoryMonitor:
    """Sample system memory and classify pressure."""

    def __init__(self, memory_limit: Optional[int] = None):
        """
        Initialize memory monitor.

        Args:
            memory_limit: Custom memory limit in bytes (None for config limit)
        """
        self.memory_limit = memory_limit

    def get_memory_info(self) -> MemoryInfo:
        """Get current memory information."""
        mem = psutil.virtual_memory()

        # Use configured limit if lower than system memory
        total = min(mem.total, self.memory_limit or config.memory_limit)
        used = mem.used
        available = max(0, total - used)
        percent = min(100.0, (used / total) * 100)

        if percent >= 95:
            level = MemoryPressureLevel.CRITICAL
        elif percent >= 85:
            level = MemoryPressureLevel.HIGH
        elif percent >= 70:
            level = MemoryPressureLevel.MEDIUM
        elif percent >= 50:
            level = MemoryPressureLevel.LOW
        else:
            level = MemoryPressureLevel.NONE

        return MemoryInfo(
            total=total,
            available=available,
            used=used,
            percent=percent,
            pressure_level=level,
            timestamp=time.time()
        )

    def check_memory_pressure(self) -> MemoryInfo:
        """Sample memory and log when pressure is high."""
        info = self.get_memory_info()

        if info.pressure_level >= MemoryPressureLevel.HIGH:
            logger.warning(f"{info.pressure_level.name} memory pressure: {info}")

        return info


# Global monitor instance
monitor = MemoryMonitor()
