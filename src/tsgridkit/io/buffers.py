"""Length-prefixed binary codec for single series.

Layout (all integers and floats big-endian)::

    int32   number of UTF-16 code units in the key
    bytes   key, UTF-16-BE (2 bytes per code unit, lone surrogates allowed)
    int32   number of observations
    float64 observations

This is the bridge format used to hand series over from other runtimes
without going through a row-oriented intermediate.
"""

from __future__ import annotations

import struct
from collections.abc import Iterable

import numpy as np

from tsgridkit.core.config import DEFAULT_CONFIG, GridConfig
from tsgridkit.core.errors import EBufferDecode
from tsgridkit.io.observations import checked_collection
from tsgridkit.runtime.partitioned import PartitionedCollection
from tsgridkit.series.collection import SeriesCollection
from tsgridkit.time.index import TimeIndex

_INT = struct.Struct(">i")
_DOUBLE = np.dtype(">f8")
_KEY_CODEC = "utf-16-be"
_KEY_ERRORS = "surrogatepass"


def encode_series(key: str, values: Iterable[float]) -> bytes:
    """Encode one series into the length-prefixed layout."""
    key_bytes = key.encode(_KEY_CODEC, _KEY_ERRORS)
    vec = np.asarray(values, dtype=_DOUBLE)
    return b"".join([
        _INT.pack(len(key_bytes) // 2),
        key_bytes,
        _INT.pack(vec.size),
        vec.tobytes(),
    ])


def _read_length(view: memoryview, pos: int, what: str) -> tuple[int, int]:
    if pos + _INT.size > len(view):
        raise EBufferDecode(
            f"Buffer ends before the {what} length",
            context={"offset": pos, "buffer_size": len(view)},
        )
    (length,) = _INT.unpack_from(view, pos)
    if length < 0:
        raise EBufferDecode(f"Negative {what} length", context={"offset": pos, "length": length})
    return length, pos + _INT.size


def _require(view: memoryview, pos: int, n_bytes: int, what: str) -> None:
    remaining = len(view) - pos
    if n_bytes > remaining:
        raise EBufferDecode(
            f"Declared {what} length exceeds remaining bytes",
            context={"declared_bytes": n_bytes, "remaining_bytes": remaining},
        )


def decode_series(buffer: bytes) -> tuple[str, np.ndarray]:
    """Decode one series.

    Raises:
        EBufferDecode: If a declared length exceeds the remaining bytes or
            bytes are left over
    """
    view = memoryview(buffer).cast("B")

    n_units, pos = _read_length(view, 0, "key")
    _require(view, pos, 2 * n_units, "key")
    key = bytes(view[pos:pos + 2 * n_units]).decode(_KEY_CODEC, _KEY_ERRORS)
    pos += 2 * n_units

    n_values, pos = _read_length(view, pos, "vector")
    _require(view, pos, _DOUBLE.itemsize * n_values, "vector")
    values = np.frombuffer(view, dtype=_DOUBLE, count=n_values, offset=pos).astype(np.float64)
    pos += _DOUBLE.itemsize * n_values

    if pos != len(view):
        raise EBufferDecode(
            "Trailing bytes after series payload",
            context={"trailing_bytes": len(view) - pos},
        )
    return key, values


def from_buffers(
    index: TimeIndex,
    buffers: Iterable[bytes],
    num_partitions: int | None = None,
    config: GridConfig = DEFAULT_CONFIG,
) -> SeriesCollection:
    """Build a collection from encoded series, each already aligned to ``index``.

    Decoding happens lazily inside the partition tasks; a malformed buffer
    fails the task with ``EBufferDecode``.
    """
    base = PartitionedCollection.from_records(buffers, num_partitions, config)
    return checked_collection(index, base.map(decode_series))


__all__ = ["encode_series", "decode_series", "from_buffers"]
