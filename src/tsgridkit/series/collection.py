"""SeriesCollection implementation.

Immutable, partitioned mapping from key to observation vector where every
vector is aligned to one shared time index. Every transform returns a new
collection; nothing is mutated in place.
"""

from __future__ import annotations

import logging
from collections.abc import Callable
from functools import cached_property
from pathlib import Path
from typing import TYPE_CHECKING, Any

import numpy as np
import pandas as pd

from tsgridkit.core.config import GridConfig
from tsgridkit.core.errors import EInstantNotFound, ESeriesNotFound
from tsgridkit.runtime.partitioned import PartitionedCollection
from tsgridkit.series.align import rebaser
from tsgridkit.series.mask import nan_mask, surviving_offsets
from tsgridkit.series.univariate import (
    FillMethod,
    differences,
    fill_series,
    first_not_nan,
    last_not_nan,
    price_to_returns,
    quotients,
)
from tsgridkit.time.index import TimeIndex, irregular

if TYPE_CHECKING:
    from tsgridkit.export.matrix import IndexedRowMatrix, RowMatrix
    from tsgridkit.transpose.engine import InstantRecord

logger = logging.getLogger(__name__)

SeriesRecord = tuple[str, np.ndarray]


class SeriesCollection:
    """Partitioned collection of series sharing one time index.

    Wraps a ``PartitionedCollection`` of ``(key, vector)`` records. Position
    ``i`` of each vector is the observation at ``index.at_offset(i)``; NaN
    marks a missing observation.

    Attributes:
        index: Time index shared by every series
        records: Underlying partitioned ``(key, vector)`` records

    Examples:
        >>> from tsgridkit import uniform, from_observations
        >>> idx = uniform("2024-01-01", periods=3, freq="D")
        >>> coll = from_observations(df, idx)
        >>> coll.remove_instants_with_nans().to_instants_frame()
    """

    def __init__(self, index: TimeIndex, records: PartitionedCollection[SeriesRecord]) -> None:
        self._index = index
        self._records = records

    @property
    def index(self) -> TimeIndex:
        return self._index

    @property
    def records(self) -> PartitionedCollection[SeriesRecord]:
        return self._records

    @property
    def num_partitions(self) -> int:
        return self._records.num_partitions

    @property
    def config(self) -> GridConfig:
        return self._records.config

    @cached_property
    def keys(self) -> list[str]:
        """Series keys in partition order, as used by the time-major exports."""
        return self._records.map(lambda kv: kv[0]).collect()

    def count(self) -> int:
        return self._records.count()

    def __len__(self) -> int:
        return self.count()

    def __repr__(self) -> str:
        return f"SeriesCollection(index={self._index!r}, num_partitions={self.num_partitions})"

    # ---------------------------
    # Local access
    # ---------------------------

    def collect(self) -> list[SeriesRecord]:
        """All ``(key, vector)`` records in partition order."""
        return self._records.collect()

    def collect_as_frame(self) -> pd.DataFrame:
        """Local time-major DataFrame: one row per instant, one column per key."""
        records = self.collect()
        if not records:
            return pd.DataFrame(index=self._index.instants)
        data = np.column_stack([vec for _, vec in records])
        return pd.DataFrame(data, index=self._index.instants, columns=[key for key, _ in records])

    def find_series(self, key: str) -> np.ndarray:
        """Vector of the first series with ``key``.

        Raises:
            ESeriesNotFound: If no series has that key
        """
        match = self._records.filter(lambda kv: kv[0] == key).first()
        if match is None:
            raise ESeriesNotFound(f"No series with key {key!r}", context={"key": key})
        return match[1]

    # ---------------------------
    # Transforms
    # ---------------------------

    def map_series(
        self,
        f: Callable[[np.ndarray], np.ndarray],
        index: TimeIndex | None = None,
    ) -> SeriesCollection:
        """Apply ``f`` to every vector.

        Args:
            f: Vector transform; must preserve length unless ``index`` is given
            index: Replacement index the transformed vectors line up with

        Returns:
            New SeriesCollection
        """
        mapped = self._records.map(lambda kv: (kv[0], np.asarray(f(kv[1]), dtype=np.float64)))
        return SeriesCollection(self._index if index is None else index, mapped)

    def filter(self, predicate: Callable[[str, np.ndarray], bool]) -> SeriesCollection:
        """Keep series for which ``predicate(key, vector)`` holds. The index is unchanged."""
        kept = self._records.filter(lambda kv: predicate(kv[0], kv[1]))
        return SeriesCollection(self._index, kept)

    def _offset_of(self, instant: Any) -> int:
        loc = self._index.lookup(instant)
        if loc is None:
            raise EInstantNotFound(
                f"Instant {instant} is not part of the index",
                context={"instant": str(instant), "index": repr(self._index)},
            )
        return loc

    def filter_starting_before(self, instant: Any) -> SeriesCollection:
        """Keep series whose first observation is at or before ``instant``."""
        start_loc = self._offset_of(instant)
        return self.filter(lambda _, vec: first_not_nan(vec) <= start_loc)

    def filter_ending_after(self, instant: Any) -> SeriesCollection:
        """Keep series whose last observation is at or after ``instant``."""
        end_loc = self._offset_of(instant)
        return self.filter(lambda _, vec: last_not_nan(vec) >= end_loc)

    def with_index(self, new_index: TimeIndex) -> SeriesCollection:
        """Rebase every series onto ``new_index``.

        Instants of ``new_index`` absent from the current index become NaN.
        """
        return self.map_series(rebaser(self._index, new_index, self.config.fill_value), new_index)

    def slice(self, start: Any, end: Any) -> SeriesCollection:
        """Sub-collection over ``[start, end]``, both ends inclusive."""
        return self.with_index(self._index.slice(start, end))

    def nan_mask(self) -> np.ndarray:
        """True at every offset where at least one series is missing."""
        return nan_mask(self._records, self._index.size)

    def remove_instants_with_nans(self) -> SeriesCollection:
        """Drop every instant at which any series is missing a value.

        The result is indexed by an irregular index over the surviving instants.
        """
        active = surviving_offsets(self.nan_mask())
        logger.debug(
            "Keeping %d of %d instants after NaN removal", len(active), self._index.size
        )
        new_index = irregular(self._index.instants[active])
        return self.map_series(lambda vec: vec[active], new_index)

    def _drop_leading(self, n: int) -> TimeIndex:
        return self._index.islice(n, self._index.size)

    def differences(self, n: int = 1) -> SeriesCollection:
        """n-th order differences. The first ``n`` instants are dropped."""
        return self.map_series(lambda vec: differences(vec, n), self._drop_leading(n))

    def quotients(self, n: int = 1) -> SeriesCollection:
        """Quotients with lag ``n``. The first ``n`` instants are dropped."""
        return self.map_series(lambda vec: quotients(vec, n), self._drop_leading(n))

    def return_rates(self) -> SeriesCollection:
        """Periodic return rates. The first instant is dropped."""
        return self.map_series(lambda vec: price_to_returns(vec, 1), self._drop_leading(1))

    def fill(self, method: FillMethod) -> SeriesCollection:
        """Impute missing observations in each series (linear, nearest, next, previous)."""
        return self.map_series(lambda vec: fill_series(vec, method))

    def series_stats(self) -> pd.DataFrame:
        """Count, mean, population stdev, min and max of each series, NaN ignored."""

        def stats(kv: SeriesRecord) -> dict[str, Any]:
            s = pd.Series(kv[1])
            return {
                "key": kv[0],
                "count": int(s.count()),
                "mean": s.mean(),
                "stdev": s.std(ddof=0),
                "min": s.min(),
                "max": s.max(),
            }

        rows = self._records.map(stats).collect()
        columns = ["key", "count", "mean", "stdev", "min", "max"]
        return pd.DataFrame(rows, columns=columns).set_index("key")

    # ---------------------------
    # Time-major exports
    # ---------------------------

    def to_instants(
        self, num_partitions: int | None = None
    ) -> PartitionedCollection[InstantRecord]:
        """Transpose into ``InstantRecord``s, ordered by instant within each partition."""
        from tsgridkit.transpose.engine import to_instants

        return to_instants(self._records, self._index, num_partitions)

    def to_instants_frame(self, num_partitions: int | None = None) -> pd.DataFrame:
        from tsgridkit.export.frames import to_instants_frame

        return to_instants_frame(self, num_partitions)

    def to_observations_frame(
        self,
        ts_col: str = "timestamp",
        key_col: str = "key",
        value_col: str = "value",
    ) -> pd.DataFrame:
        from tsgridkit.export.frames import to_observations_frame

        return to_observations_frame(self, ts_col, key_col, value_col)

    def to_row_matrix(self, num_partitions: int | None = None) -> RowMatrix:
        from tsgridkit.export.matrix import to_row_matrix

        return to_row_matrix(self, num_partitions)

    def to_indexed_row_matrix(self, num_partitions: int | None = None) -> IndexedRowMatrix:
        from tsgridkit.export.matrix import to_indexed_row_matrix

        return to_indexed_row_matrix(self, num_partitions)

    def save_csv(self, path: str | Path) -> None:
        from tsgridkit.io.csv import save_csv

        save_csv(self, path)


__all__ = ["SeriesCollection"]
