"""Univariate vector transforms applied per series.

All functions take and return 1-d float64 numpy arrays; NaN marks a
missing observation.
"""

from __future__ import annotations

from typing import Literal

import numpy as np
import pandas as pd

FillMethod = Literal["linear", "nearest", "next", "previous"]


def first_not_nan(values: np.ndarray) -> int:
    """Offset of the first observed value, ``len(values)`` when there is none."""
    observed = np.flatnonzero(~np.isnan(values))
    return int(observed[0]) if observed.size else len(values)


def last_not_nan(values: np.ndarray) -> int:
    """Offset of the last observed value, -1 when there is none."""
    observed = np.flatnonzero(~np.isnan(values))
    return int(observed[-1]) if observed.size else -1


def differences(values: np.ndarray, n: int = 1) -> np.ndarray:
    """n-th order differences. The result is ``n`` elements shorter."""
    if n < 0:
        raise ValueError(f"n must be non-negative, got {n}")
    return np.diff(np.asarray(values, dtype=np.float64), n=n)


def quotients(values: np.ndarray, lag: int = 1) -> np.ndarray:
    """``values[i + lag] / values[i]``. The result is ``lag`` elements shorter."""
    if lag < 1:
        raise ValueError(f"lag must be positive, got {lag}")
    vec = np.asarray(values, dtype=np.float64)
    with np.errstate(divide="ignore", invalid="ignore"):
        return vec[lag:] / vec[:-lag]


def price_to_returns(values: np.ndarray, lag: int = 1) -> np.ndarray:
    """Periodic (not continuously compounded) return rates."""
    return quotients(values, lag) - 1.0


def _fill_nearest(vec: np.ndarray) -> np.ndarray:
    observed = np.flatnonzero(~np.isnan(vec))
    if observed.size == 0:
        return vec.copy()
    positions = np.arange(vec.size)
    right = np.searchsorted(observed, positions, side="left").clip(0, observed.size - 1)
    left = (right - 1).clip(0, observed.size - 1)
    # Ties go to the earlier observation.
    use_left = np.abs(positions - observed[left]) <= np.abs(observed[right] - positions)
    nearest = np.where(use_left, observed[left], observed[right])
    return vec[nearest]


def fill_series(values: np.ndarray, method: FillMethod) -> np.ndarray:
    """Impute missing observations.

    ``linear`` interpolates between observations and leaves leading and
    trailing gaps alone; ``previous``/``next`` carry the neighbouring
    observation forward/backward; ``nearest`` takes the closest one.
    """
    vec = np.asarray(values, dtype=np.float64)
    if method == "linear":
        return pd.Series(vec).interpolate(method="linear", limit_area="inside").to_numpy()
    if method == "previous":
        return pd.Series(vec).ffill().to_numpy()
    if method == "next":
        return pd.Series(vec).bfill().to_numpy()
    if method == "nearest":
        return _fill_nearest(vec)
    raise ValueError(f"Unknown fill method: {method}")


__all__ = [
    "FillMethod",
    "first_not_nan",
    "last_not_nan",
    "differences",
    "quotients",
    "price_to_returns",
    "fill_series",
]
