"""Rebasing of observation vectors between time indices.

A vector recorded against one index is re-expressed against another:
every target instant that exists in the source index takes the source
value, every other target instant takes the fill sentinel.
"""

from __future__ import annotations

import math
from collections.abc import Callable

import numpy as np

from tsgridkit.core.errors import EContractViolation
from tsgridkit.time.index import NOT_FOUND, TimeIndex


def _source_positions(source: TimeIndex, target: TimeIndex) -> np.ndarray:
    """Offset in ``source`` of every instant of ``target`` (-1 when absent)."""
    if source == target:
        return np.arange(target.size, dtype=np.int64)
    return source.locs(target.instants)


def align(
    source_index: TimeIndex,
    target_index: TimeIndex,
    values: np.ndarray,
    fill_value: float = math.nan,
) -> np.ndarray:
    """Re-express ``values`` (indexed by ``source_index``) on ``target_index``.

    Args:
        source_index: Index the values are currently recorded against
        target_index: Index to rebase onto
        values: Vector of length ``source_index.size``
        fill_value: Sentinel for target instants missing from the source

    Returns:
        New float64 vector of length ``target_index.size``

    Raises:
        EContractViolation: If ``values`` does not match the source index size
    """
    vec = np.asarray(values, dtype=np.float64)
    if vec.shape != (source_index.size,):
        raise EContractViolation(
            "Vector length does not match source index size",
            context={"vector_length": int(vec.size), "index_size": source_index.size},
        )
    return rebaser(source_index, target_index, fill_value)(vec)


def rebaser(
    source_index: TimeIndex,
    target_index: TimeIndex,
    fill_value: float = math.nan,
) -> Callable[[np.ndarray], np.ndarray]:
    """Precompute the source-to-target mapping once and return a reusable rebase function.

    The returned callable is pure; it is what collection-wide rebasing maps
    over every series so the lookups against the source index happen once.
    """
    positions = _source_positions(source_index, target_index)
    present = positions != NOT_FOUND
    taken = positions[present]

    def rebase(values: np.ndarray) -> np.ndarray:
        vec = np.asarray(values, dtype=np.float64)
        out = np.full(target_index.size, fill_value, dtype=np.float64)
        out[present] = vec[taken]
        return out

    return rebase


__all__ = ["align", "rebaser"]
