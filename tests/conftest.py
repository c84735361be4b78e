"""Shared fixtures for tsgridkit tests."""

from __future__ import annotations

from collections.abc import Callable

import numpy as np
import pytest

from tsgridkit import GridConfig, SeriesCollection, TimeIndex, from_vectors, uniform


@pytest.fixture
def daily_index() -> TimeIndex:
    """Five daily instants, 2024-01-01 .. 2024-01-05."""
    return uniform("2024-01-01", periods=5, freq="D")


@pytest.fixture
def sequential_config() -> GridConfig:
    return GridConfig.sequential()


@pytest.fixture
def make_collection() -> Callable[..., SeriesCollection]:
    """Factory building a collection from a {key: values} mapping."""

    def _make(
        index: TimeIndex,
        series: dict[str, list[float]],
        num_partitions: int = 2,
        config: GridConfig | None = None,
    ) -> SeriesCollection:
        records = [(key, np.asarray(values, dtype=np.float64)) for key, values in series.items()]
        return from_vectors(index, records, num_partitions, config or GridConfig())

    return _make
