"""Time index types and constructors."""

from tsgridkit.time.index import (
    NOT_FOUND,
    IrregularTimeIndex,
    TimeIndex,
    UniformTimeIndex,
    from_pandas,
    from_string,
    irregular,
    uniform,
)

__all__ = [
    "NOT_FOUND",
    "TimeIndex",
    "UniformTimeIndex",
    "IrregularTimeIndex",
    "uniform",
    "irregular",
    "from_pandas",
    "from_string",
]
