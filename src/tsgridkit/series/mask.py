"""Cross-series missing-value mask.

The mask is a commutative, associative OR-fold over every series, so
partition order never changes the result.
"""

from __future__ import annotations

import numpy as np

from tsgridkit.runtime.partitioned import PartitionedCollection


def _fold_missing(mask: np.ndarray, record: tuple[str, np.ndarray]) -> np.ndarray:
    mask |= np.isnan(record[1])
    return mask


def _merge_masks(left: np.ndarray, right: np.ndarray) -> np.ndarray:
    return np.logical_or(left, right)


def nan_mask(series: PartitionedCollection[tuple[str, np.ndarray]], index_size: int) -> np.ndarray:
    """Boolean vector, True where any series is missing a value."""
    return series.aggregate(np.zeros(index_size, dtype=bool), _fold_missing, _merge_masks)


def surviving_offsets(mask: np.ndarray) -> np.ndarray:
    """Offsets at which every series is observed."""
    return np.flatnonzero(~np.asarray(mask, dtype=bool))


__all__ = ["nan_mask", "surviving_offsets"]
