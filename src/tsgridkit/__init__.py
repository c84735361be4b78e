"""tsgridkit - partitioned collections of time series on one shared time axis.

Moves data between a series-major layout (whole series per partition, for
per-series transforms) and a time-major layout (one record per instant
across all series, for cross-sectional work and matrix export).

Basic usage:
    >>> from tsgridkit import uniform, from_observations
    >>> index = uniform("2024-01-01", periods=30, freq="D")
    >>> coll = from_observations(df, index)   # columns: timestamp, key, value
    >>> clean = coll.remove_instants_with_nans()
    >>> frame = clean.to_instants_frame()

Execution:
    >>> from tsgridkit import GridConfig
    >>> config = GridConfig.parallel(default_partitions=8)
    >>> coll = from_observations(df, index, config=config)
"""

__version__ = "0.3.0"

from tsgridkit.contracts import ObservationContract
from tsgridkit.core.config import DEFAULT_CONFIG, GridConfig
from tsgridkit.core.errors import (
    EBufferDecode,
    EContractViolation,
    EDuplicateObservation,
    EIndexNotUniform,
    EInstantNotFound,
    EPartitionTaskFailed,
    EReassemblyFailed,
    ESeriesNotFound,
    TSGridKitError,
)
from tsgridkit.export import IndexedRowMatrix, RowMatrix
from tsgridkit.io import (
    decode_series,
    encode_series,
    from_buffers,
    from_frames,
    from_observations,
    from_series,
    from_vectors,
    load_csv,
    save_csv,
)
from tsgridkit.runtime import PartitionedCollection
from tsgridkit.series import SeriesCollection, align, rebaser
from tsgridkit.time import (
    IrregularTimeIndex,
    TimeIndex,
    UniformTimeIndex,
    from_string,
    irregular,
    uniform,
)
from tsgridkit.transpose import InstantRecord

__all__ = [
    "__version__",
    # Configuration
    "GridConfig",
    "DEFAULT_CONFIG",
    "ObservationContract",
    # Errors
    "TSGridKitError",
    "EContractViolation",
    "EInstantNotFound",
    "ESeriesNotFound",
    "EIndexNotUniform",
    "EDuplicateObservation",
    "EBufferDecode",
    "EPartitionTaskFailed",
    "EReassemblyFailed",
    # Time index
    "TimeIndex",
    "UniformTimeIndex",
    "IrregularTimeIndex",
    "uniform",
    "irregular",
    "from_string",
    # Collections
    "PartitionedCollection",
    "SeriesCollection",
    "InstantRecord",
    "align",
    "rebaser",
    # Construction / egress
    "from_observations",
    "from_vectors",
    "from_series",
    "from_frames",
    "from_buffers",
    "encode_series",
    "decode_series",
    "save_csv",
    "load_csv",
    # Matrices
    "RowMatrix",
    "IndexedRowMatrix",
]
