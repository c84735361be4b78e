"""Time-major exports: DataFrames and row matrices."""

from tsgridkit.export.frames import to_instants_frame, to_observations_frame
from tsgridkit.export.matrix import (
    IndexedRow,
    IndexedRowMatrix,
    RowMatrix,
    to_indexed_row_matrix,
    to_row_matrix,
)

__all__ = [
    "to_instants_frame",
    "to_observations_frame",
    "IndexedRow",
    "RowMatrix",
    "IndexedRowMatrix",
    "to_row_matrix",
    "to_indexed_row_matrix",
]
