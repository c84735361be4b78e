"""Tabular (pandas) exports of a series collection."""

from __future__ import annotations

from typing import TYPE_CHECKING

import numpy as np
import pandas as pd

if TYPE_CHECKING:
    from tsgridkit.series.collection import SeriesCollection


def to_instants_frame(
    collection: SeriesCollection,
    num_partitions: int | None = None,
    instant_col: str = "instant",
) -> pd.DataFrame:
    """Time-major DataFrame built from the transpose.

    One row per instant, ordered by instant; an ``instant`` column followed
    by one float column per key, in key order.

    Args:
        collection: Collection to export
        num_partitions: Partition count for the transpose shuffle
        instant_col: Name of the timestamp column

    Returns:
        DataFrame with columns ``[instant_col, *collection.keys]``
    """
    keys = collection.keys
    records = collection.to_instants(num_partitions).collect()
    if not records:
        return pd.DataFrame(
            {instant_col: pd.DatetimeIndex([], dtype=collection.index.instants.dtype)}
            | {key: pd.Series([], dtype=np.float64) for key in keys}
        )

    data = np.vstack([values for _, values in records])
    result = pd.DataFrame(data, columns=keys)
    result.insert(0, instant_col, pd.DatetimeIndex([instant for instant, _ in records]))
    return result.sort_values(instant_col, kind="stable").reset_index(drop=True)


def to_observations_frame(
    collection: SeriesCollection,
    ts_col: str = "timestamp",
    key_col: str = "key",
    value_col: str = "value",
) -> pd.DataFrame:
    """Long-format DataFrame with one row per observed (non-NaN) value.

    Args:
        collection: Collection to export
        ts_col: Name of the timestamp column (default: "timestamp")
        key_col: Name of the key column (default: "key")
        value_col: Name of the value column (default: "value")

    Returns:
        DataFrame with columns ``[ts_col, key_col, value_col]``
    """
    instants = collection.index.instants

    def observations(record: tuple[str, np.ndarray]) -> list[pd.DataFrame]:
        key, vec = record
        observed = ~np.isnan(vec)
        return [
            pd.DataFrame({
                ts_col: instants[observed],
                key_col: key,
                value_col: vec[observed],
            })
        ]

    frames = collection.records.flat_map(observations).collect()
    if not frames:
        return pd.DataFrame({
            ts_col: pd.DatetimeIndex([], dtype=instants.dtype),
            key_col: pd.Series([], dtype=object),
            value_col: pd.Series([], dtype=np.float64),
        })
    return pd.concat(frames, ignore_index=True)


__all__ = ["to_instants_frame", "to_observations_frame"]
