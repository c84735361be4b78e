"""Time-major transpose of a series-major collection.

The transpose runs in three phases so no single record or partition has to
hold the whole cross-section at once:

1. Chunking (per source partition): local series are grouped into chunks
   of at most ``chunk_size`` series in arrival order. For every offset of
   the index each chunk emits one fragment keyed by
   ``ChunkKey(offset, partition_id, chunk_seq)`` holding the chunk's values
   at that offset.
2. Shuffle: fragments are sent to a destination partition chosen from the
   offset alone (contiguous runs of offsets share a partition) and sorted
   by offset, then by the global chunk id ``(partition_id, chunk_seq)``.
3. Reassembly (per destination partition): the fragment count and total
   width of the first instant fix the shape of every later instant; each
   instant's fragments are concatenated into one dense vector.
"""

from __future__ import annotations

import logging
from collections.abc import Callable, Iterable, Iterator
from enum import Enum, auto
from itertools import chain, islice
from typing import NamedTuple

import numpy as np
import pandas as pd

from tsgridkit.core.errors import EReassemblyFailed
from tsgridkit.runtime.partitioned import PartitionedCollection
from tsgridkit.time.index import TimeIndex

logger = logging.getLogger(__name__)

SeriesRecord = tuple[str, np.ndarray]


class ChunkKey(NamedTuple):
    """Shuffle key of a chunk fragment."""

    offset: int
    partition_id: int
    chunk_seq: int

    @property
    def chunk_id(self) -> tuple[int, int]:
        """Cluster-wide chunk identity, stable across task re-execution."""
        return (self.partition_id, self.chunk_seq)


Fragment = tuple[ChunkKey, np.ndarray]


class InstantRecord(NamedTuple):
    """One instant and the values of every series at that instant."""

    instant: pd.Timestamp
    values: np.ndarray


class ReassemblyState(Enum):
    AWAITING_FIRST_INSTANT = auto()
    REASSEMBLING = auto()


# ---------------------------
# Phase 1: chunking
# ---------------------------


def chunk_partition(
    partition_id: int,
    series: Iterable[SeriesRecord],
    index_size: int,
    chunk_size: int,
) -> Iterator[Fragment]:
    """Emit one fragment per (chunk, offset) for a source partition."""
    records = iter(series)
    chunk_seq = 0
    while True:
        chunk = list(islice(records, chunk_size))
        if not chunk:
            break
        block = np.vstack([vec for _, vec in chunk]) if index_size else None
        for offset in range(index_size):
            yield ChunkKey(offset, partition_id, chunk_seq), block[:, offset].copy()
        chunk_seq += 1
    logger.debug("Partition %d split into %d chunk(s)", partition_id, chunk_seq)


# ---------------------------
# Phase 2: shuffle policy
# ---------------------------


def instant_partitioner(num_partitions: int, index_size: int) -> Callable[[ChunkKey], int]:
    """Assign contiguous runs of offsets to destination partitions."""

    def partition(key: ChunkKey) -> int:
        return key.offset * num_partitions // index_size

    return partition


def chunk_sort_key(key: ChunkKey) -> tuple[int, int, int]:
    """Order by offset, ties broken by ascending global chunk id."""
    return (key.offset, key.partition_id, key.chunk_seq)


# ---------------------------
# Phase 3: reassembly
# ---------------------------


def _assemble(
    group: list[Fragment],
    snippets_per_sample: int,
    elements_per_sample: int,
    index: TimeIndex,
) -> InstantRecord:
    offset = group[0][0].offset
    if len(group) != snippets_per_sample or any(k.offset != offset for k, _ in group):
        raise EReassemblyFailed(
            "Chunk fragments do not form a complete instant",
            context={
                "offset": offset,
                "fragments": len(group),
                "expected_fragments": snippets_per_sample,
            },
        )
    values = np.empty(elements_per_sample, dtype=np.float64)
    pos = 0
    for _, snippet in group:
        end = pos + len(snippet)
        if end > elements_per_sample:
            raise EReassemblyFailed(
                "Chunk fragments are wider than the first instant",
                context={"offset": offset, "expected_width": elements_per_sample},
            )
        values[pos:end] = snippet
        pos = end
    if pos != elements_per_sample:
        raise EReassemblyFailed(
            "Chunk fragments are narrower than the first instant",
            context={"offset": offset, "width": pos, "expected_width": elements_per_sample},
        )
    return InstantRecord(index.at_offset(offset), values)


def reassemble(fragments: Iterable[Fragment], index: TimeIndex) -> Iterator[InstantRecord]:
    """Turn a sorted stream of fragments into instant records.

    The first instant of the stream is read with one fragment of lookahead
    to learn how many fragments (and elements) make up an instant; after
    that every instant is read as exactly that many consecutive fragments.
    """
    state = ReassemblyState.AWAITING_FIRST_INSTANT
    snippets_per_sample = 0
    elements_per_sample = 0
    pending: Iterator[Fragment] = iter(fragments)

    while True:
        if state is ReassemblyState.AWAITING_FIRST_INSTANT:
            head = next(pending, None)
            if head is None:
                return
            group = [head]
            lookahead = next(pending, None)
            while lookahead is not None and lookahead[0].offset == head[0].offset:
                group.append(lookahead)
                lookahead = next(pending, None)
            if lookahead is not None:
                pending = chain([lookahead], pending)
            snippets_per_sample = len(group)
            elements_per_sample = sum(len(snippet) for _, snippet in group)
            state = ReassemblyState.REASSEMBLING
        else:
            group = list(islice(pending, snippets_per_sample))
            if not group:
                return
        yield _assemble(group, snippets_per_sample, elements_per_sample, index)


# ---------------------------
# Driver
# ---------------------------


def to_instants(
    series: PartitionedCollection[SeriesRecord],
    index: TimeIndex,
    num_partitions: int | None = None,
    chunk_size: int | None = None,
) -> PartitionedCollection[InstantRecord]:
    """Transpose series-major records into instant records.

    Args:
        series: ``(key, vector)`` records, vectors of length ``index.size``
        index: Time index shared by all vectors
        num_partitions: Destination partition count (default: same as source)
        chunk_size: Series per chunk (default: ``GridConfig.chunk_size``)

    Returns:
        Collection of ``InstantRecord`` ordered by instant within each
        partition; partition ``i`` covers offsets earlier than partition
        ``i + 1``. Values follow the key order of ``series``.
    """
    config = series.config
    size = chunk_size or config.chunk_size
    n_out = num_partitions or series.num_partitions or 1
    index_size = index.size

    if index_size == 0:
        return PartitionedCollection.from_partitions([[] for _ in range(n_out)], config)

    fragments = series.map_partitions_with_index(
        lambda split, it: chunk_partition(split, it, index_size, size)
    )
    shuffled = fragments.repartition_and_sort_within_partitions(
        n_out,
        instant_partitioner(n_out, index_size),
        chunk_sort_key,
    )
    return shuffled.map_partitions(lambda it: reassemble(it, index))


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
