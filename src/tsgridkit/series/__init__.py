"""Series module for tsgridkit.

Provides the partitioned series collection and the per-vector operations
it is built from.
"""

from .align import align, rebaser
from .collection import SeriesCollection
from .mask import nan_mask, surviving_offsets
from .univariate import (
    differences,
    fill_series,
    first_not_nan,
    last_not_nan,
    price_to_returns,
    quotients,
)

__all__ = [
    # Collection
    "SeriesCollection",
    # Alignment
    "align",
    "rebaser",
    # Mask reduction
    "nan_mask",
    "surviving_offsets",
    # Univariate helpers
    "differences",
    "quotients",
    "price_to_returns",
    "fill_series",
    "first_not_nan",
    "last_not_nan",
]
