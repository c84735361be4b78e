"""Partitioned execution runtime."""

from tsgridkit.runtime.partitioned import PartitionedCollection

__all__ = ["PartitionedCollection"]
