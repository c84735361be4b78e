"""Row-matrix exports built on the transpose.

Each row is the cross-section of all series at one instant; columns follow
the collection's key order.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING, NamedTuple

import numpy as np

from tsgridkit.core.errors import EIndexNotUniform
from tsgridkit.runtime.partitioned import PartitionedCollection
from tsgridkit.time.index import UniformTimeIndex

if TYPE_CHECKING:
    from tsgridkit.series.collection import SeriesCollection


class IndexedRow(NamedTuple):
    index: int
    vector: np.ndarray


@dataclass(frozen=True)
class RowMatrix:
    """Partitioned matrix whose row positions carry no meaning."""

    rows: PartitionedCollection[np.ndarray]
    num_cols: int

    @property
    def num_rows(self) -> int:
        return self.rows.count()

    def to_numpy(self) -> np.ndarray:
        rows = self.rows.collect()
        if not rows:
            return np.empty((0, self.num_cols), dtype=np.float64)
        return np.vstack(rows)


@dataclass(frozen=True)
class IndexedRowMatrix:
    """Partitioned matrix whose rows carry their offset from the index start."""

    rows: PartitionedCollection[IndexedRow]
    num_cols: int

    @property
    def num_rows(self) -> int:
        rows = self.rows.collect()
        return max(row.index for row in rows) + 1 if rows else 0

    def to_numpy(self) -> np.ndarray:
        """Dense matrix with row ``i`` at position ``i``; rows never emitted stay NaN."""
        rows = self.rows.collect()
        if not rows:
            return np.empty((0, self.num_cols), dtype=np.float64)
        out = np.full((max(row.index for row in rows) + 1, self.num_cols), np.nan)
        for row in rows:
            out[row.index] = row.vector
        return out


def to_row_matrix(collection: SeriesCollection, num_partitions: int | None = None) -> RowMatrix:
    """Export the collection as a ``RowMatrix``. Works for any index."""
    rows = collection.to_instants(num_partitions).map(lambda rec: rec.values)
    return RowMatrix(rows=rows, num_cols=len(collection.keys))


def to_indexed_row_matrix(
    collection: SeriesCollection,
    num_partitions: int | None = None,
) -> IndexedRowMatrix:
    """Export the collection as an ``IndexedRowMatrix``.

    Row indices are the number of frequency steps between the index start
    and each instant.

    Raises:
        EIndexNotUniform: If the collection's index is not uniform
    """
    index = collection.index
    if not isinstance(index, UniformTimeIndex):
        raise EIndexNotUniform(
            "Indexed row matrices are only supported for uniform indices",
            context={"index": repr(index)},
        )
    start = index.start
    rows = collection.to_instants(num_partitions).map(
        lambda rec: IndexedRow(index.difference(start, rec.instant), rec.values)
    )
    return IndexedRowMatrix(rows=rows, num_cols=len(collection.keys))


__all__ = [
    "IndexedRow",
    "RowMatrix",
    "IndexedRowMatrix",
    "to_row_matrix",
    "to_indexed_row_matrix",
]
