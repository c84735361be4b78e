"""Runtime and engine configuration.

A single frozen configuration object shared by the partitioned runtime,
the transpose engine and the construction adapters.
"""

from __future__ import annotations

import math
from dataclasses import dataclass, replace


@dataclass(frozen=True)
class GridConfig:
    """Configuration for partitioned execution.

    Args:
        chunk_size: Maximum number of series grouped into one chunk
            during the map side of the transpose
        default_partitions: Partition count used by construction adapters
            when the caller does not pass one
        max_workers: Thread pool size for partition tasks (None = auto,
            1 = run inline)
        max_task_attempts: How many times a failing partition task is
            executed before the failure propagates
        fill_value: Sentinel written for instants missing from a source
    """

    chunk_size: int = 20
    default_partitions: int = 4
    max_workers: int | None = None
    max_task_attempts: int = 2
    fill_value: float = math.nan

    def __post_init__(self) -> None:
        if self.chunk_size < 1:
            raise ValueError(f"chunk_size must be positive, got {self.chunk_size}")
        if self.default_partitions < 1:
            raise ValueError(
                f"default_partitions must be positive, got {self.default_partitions}"
            )
        if self.max_workers is not None and self.max_workers < 1:
            raise ValueError(f"max_workers must be positive, got {self.max_workers}")
        if self.max_task_attempts < 1:
            raise ValueError("max_task_attempts must be at least 1")

    @classmethod
    def sequential(cls, default_partitions: int = 1) -> GridConfig:
        """Single-threaded preset, no retries. Handy for debugging."""
        return cls(
            default_partitions=default_partitions,
            max_workers=1,
            max_task_attempts=1,
        )

    @classmethod
    def parallel(cls, default_partitions: int = 8, max_workers: int | None = None) -> GridConfig:
        """Thread-pool preset for larger collections."""
        return cls(
            default_partitions=default_partitions,
            max_workers=max_workers,
            max_task_attempts=3,
        )

    def with_chunk_size(self, chunk_size: int) -> GridConfig:
        """Return a copy with a different transpose chunk size."""
        return replace(self, chunk_size=chunk_size)


DEFAULT_CONFIG = GridConfig()

__all__ = ["GridConfig", "DEFAULT_CONFIG"]
