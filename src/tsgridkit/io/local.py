"""Construction from locally held series that carry their own time index."""

from __future__ import annotations

from collections.abc import Iterable

import numpy as np
import pandas as pd

from tsgridkit.core.config import DEFAULT_CONFIG, GridConfig
from tsgridkit.core.errors import EContractViolation
from tsgridkit.runtime.partitioned import PartitionedCollection
from tsgridkit.series.align import align
from tsgridkit.series.collection import SeriesCollection
from tsgridkit.time.index import TimeIndex, from_pandas

IndexedSeries = tuple[str, TimeIndex, np.ndarray]


def from_series(
    target_index: TimeIndex,
    items: Iterable[IndexedSeries],
    num_partitions: int | None = None,
    config: GridConfig = DEFAULT_CONFIG,
) -> SeriesCollection:
    """Conform ``(key, source_index, vector)`` triples onto ``target_index``.

    Instants of the target index missing from a series' own index are filled
    with ``config.fill_value``.
    """
    fill_value = config.fill_value
    base = PartitionedCollection.from_records(items, num_partitions, config)
    rebased = base.map(
        lambda item: (item[0], align(item[1], target_index, item[2], fill_value))
    )
    return SeriesCollection(target_index, rebased)


def _frame_series(frame: pd.DataFrame) -> list[IndexedSeries]:
    if not isinstance(frame.index, pd.DatetimeIndex):
        raise EContractViolation(
            "Frame must be indexed by a DatetimeIndex",
            context={"index_type": type(frame.index).__name__},
            fix_hint="Use df.set_index('ds') with a datetime column",
        )
    ordered = frame.sort_index()
    source = from_pandas(ordered.index)
    return [
        (str(col), source, ordered[col].to_numpy(dtype=np.float64))
        for col in ordered.columns
    ]


def from_frames(
    target_index: TimeIndex,
    frames: Iterable[pd.DataFrame],
    num_partitions: int | None = None,
    config: GridConfig = DEFAULT_CONFIG,
) -> SeriesCollection:
    """Build a collection from local time-major DataFrames.

    Each frame has one row per instant (DatetimeIndex) and one column per
    series key. Every column becomes a series rebased onto ``target_index``.
    """
    fill_value = config.fill_value
    base = PartitionedCollection.from_records(frames, num_partitions, config)
    rebased = base.flat_map(_frame_series).map(
        lambda item: (item[0], align(item[1], target_index, item[2], fill_value))
    )
    return SeriesCollection(target_index, rebased)


__all__ = ["from_series", "from_frames"]
