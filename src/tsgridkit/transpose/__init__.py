"""Series-major to time-major transpose."""

from tsgridkit.transpose.engine import (
    ChunkKey,
    InstantRecord,
    ReassemblyState,
    chunk_partition,
    chunk_sort_key,
    instant_partitioner,
    reassemble,
    to_instants,
)

__all__ = [
    "ChunkKey",
    "InstantRecord",
    "ReassemblyState",
    "chunk_partition",
    "instant_partitioner",
    "chunk_sort_key",
    "reassemble",
    "to_instants",
]
