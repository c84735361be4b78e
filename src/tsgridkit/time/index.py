"""Time indices shared by every series of a collection.

A time index is an ordered, duplicate-free domain of instants. It maps an
instant to its zero-based offset and back. Two flavours exist:

- ``UniformTimeIndex``: a start instant, a period count and a pandas
  frequency. Offsets are computed arithmetically for fixed-width
  frequencies.
- ``IrregularTimeIndex``: an explicit strictly increasing list of
  instants, looked up by binary search.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from collections.abc import Iterable, Iterator
from typing import Any

import numpy as np
import pandas as pd
from pandas.tseries.frequencies import to_offset

from tsgridkit.core.errors import EContractViolation

NOT_FOUND = -1


def _as_timestamp(value: Any) -> pd.Timestamp:
    ts = pd.Timestamp(value)
    if ts is pd.NaT:
        raise EContractViolation("Instant must not be NaT", context={"value": repr(value)})
    return ts


def _as_datetime_index(values: Any) -> pd.DatetimeIndex:
    if not isinstance(values, pd.DatetimeIndex):
        values = pd.DatetimeIndex(list(values))
    # Offsets are computed on nanosecond integers.
    return values.as_unit("ns")


class TimeIndex(ABC):
    """Ordered domain of instants shared by a series collection."""

    @property
    @abstractmethod
    def instants(self) -> pd.DatetimeIndex:
        """All instants as a pandas DatetimeIndex."""

    @property
    @abstractmethod
    def is_uniform(self) -> bool: ...

    @abstractmethod
    def locs(self, instants: Iterable[Any]) -> np.ndarray:
        """Vectorized lookup. Returns int64 offsets with -1 for missing instants."""

    @abstractmethod
    def islice(self, start: int, end: int) -> TimeIndex:
        """Sub-index over offsets ``[start, end)``."""

    @abstractmethod
    def to_string(self) -> str: ...

    @property
    def size(self) -> int:
        return len(self.instants)

    def __len__(self) -> int:
        return self.size

    def __iter__(self) -> Iterator[pd.Timestamp]:
        return iter(self.instants)

    @property
    def first(self) -> pd.Timestamp:
        return self.at_offset(0)

    @property
    def last(self) -> pd.Timestamp:
        return self.at_offset(self.size - 1)

    def lookup(self, instant: Any) -> int | None:
        """Offset of ``instant``, or None when it is not part of the index."""
        loc = int(self.locs([_as_timestamp(instant)])[0])
        return None if loc == NOT_FOUND else loc

    def __contains__(self, instant: Any) -> bool:
        return self.lookup(instant) is not None

    def at_offset(self, offset: int) -> pd.Timestamp:
        if offset < 0 or offset >= self.size:
            raise IndexError(f"Offset {offset} out of range for index of size {self.size}")
        return self.instants[offset]

    def slice(self, start: Any, end: Any) -> TimeIndex:
        """Sub-index over all instants between ``start`` and ``end``, both inclusive.

        The bounds do not have to be members of the index.
        """
        instants = self.instants
        lo = int(instants.searchsorted(_as_timestamp(start), side="left"))
        hi = int(instants.searchsorted(_as_timestamp(end), side="right"))
        return self.islice(lo, max(lo, hi))

    def __str__(self) -> str:
        return self.to_string()


class UniformTimeIndex(TimeIndex):
    """Regular index: ``periods`` instants spaced by ``freq`` from ``start``."""

    def __init__(self, start: Any, periods: int, freq: Any = "D") -> None:
        if periods < 0:
            raise EContractViolation("periods must be non-negative", context={"periods": periods})
        self._start = _as_timestamp(start)
        self._periods = int(periods)
        self._freq = to_offset(freq)
        self._instants = pd.date_range(
            start=self._start, periods=self._periods, freq=self._freq, unit="ns"
        )
        if self._periods and self._instants[0] != self._start:
            raise EContractViolation(
                "start is not on the frequency grid",
                context={"start": str(self._start), "freq": self._freq.freqstr},
                fix_hint="Use a start instant that is an anchor of the frequency",
            )
        # Fixed-width frequencies allow O(1) arithmetic lookup.
        self._stride = self._freq.nanos if isinstance(self._freq, pd.offsets.Tick) else None

    @property
    def instants(self) -> pd.DatetimeIndex:
        return self._instants

    @property
    def is_uniform(self) -> bool:
        return True

    @property
    def start(self) -> pd.Timestamp:
        return self._start

    @property
    def periods(self) -> int:
        return self._periods

    @property
    def freq(self) -> pd.DateOffset:
        return self._freq

    @property
    def size(self) -> int:
        return self._periods

    def locs(self, instants: Iterable[Any]) -> np.ndarray:
        targets = _as_datetime_index(instants)
        if self._stride is None:
            return self._instants.get_indexer(targets).astype(np.int64)
        if len(targets) and (targets.tz is None) != (self._start.tz is None):
            raise EContractViolation("Cannot compare timezone-aware and naive instants")
        delta = targets.asi8 - self._start.value
        steps, remainder = np.divmod(delta, self._stride)
        found = (remainder == 0) & (steps >= 0) & (steps < self._periods)
        return np.where(found, steps, NOT_FOUND).astype(np.int64)

    def difference(self, start: Any, instant: Any) -> int:
        """Number of whole frequency steps from ``start`` to ``instant``."""
        a, b = _as_timestamp(start), _as_timestamp(instant)
        if self._stride is not None:
            return int((b.value - a.value) // self._stride)
        if b >= a:
            return len(pd.date_range(a, b, freq=self._freq)) - 1
        return -(len(pd.date_range(b, a, freq=self._freq)) - 1)

    def islice(self, start: int, end: int) -> UniformTimeIndex:
        start = max(0, start)
        end = min(self._periods, end)
        if end <= start:
            return UniformTimeIndex(self._start, 0, self._freq)
        return UniformTimeIndex(self._instants[start], end - start, self._freq)

    def to_string(self) -> str:
        return f"uniform,{self._start.isoformat()},{self._periods},{self._freq.freqstr}"

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, UniformTimeIndex):
            return NotImplemented
        return (
            self._start == other._start
            and self._periods == other._periods
            and self._freq == other._freq
        )

    def __hash__(self) -> int:
        return hash((self._start, self._periods, self._freq.freqstr))

    def __repr__(self) -> str:
        return (
            f"UniformTimeIndex(start={self._start.isoformat()!r}, "
            f"periods={self._periods}, freq={self._freq.freqstr!r})"
        )


class IrregularTimeIndex(TimeIndex):
    """Explicit index over a strictly increasing list of instants."""

    def __init__(self, instants: Iterable[Any]) -> None:
        index = _as_datetime_index(instants)
        if index.hasnans:
            raise EContractViolation("Irregular index must not contain NaT")
        if not (index.is_monotonic_increasing and index.is_unique):
            raise EContractViolation(
                "Instants must be strictly increasing",
                fix_hint="Sort and de-duplicate the instants before building the index",
            )
        self._instants = index
        self._nanos = index.asi8

    @property
    def instants(self) -> pd.DatetimeIndex:
        return self._instants

    @property
    def is_uniform(self) -> bool:
        return False

    def locs(self, instants: Iterable[Any]) -> np.ndarray:
        targets = _as_datetime_index(instants)
        tz_mismatch = (targets.tz is None) != (self._instants.tz is None)
        if len(targets) and len(self._nanos) and tz_mismatch:
            raise EContractViolation("Cannot compare timezone-aware and naive instants")
        wanted = targets.asi8
        pos = np.searchsorted(self._nanos, wanted, side="left")
        clipped = np.minimum(pos, max(len(self._nanos) - 1, 0))
        if len(self._nanos) == 0:
            return np.full(len(wanted), NOT_FOUND, dtype=np.int64)
        found = (pos < len(self._nanos)) & (self._nanos[clipped] == wanted)
        return np.where(found, pos, NOT_FOUND).astype(np.int64)

    def islice(self, start: int, end: int) -> IrregularTimeIndex:
        return IrregularTimeIndex(self._instants[max(0, start):max(0, end)])

    def to_string(self) -> str:
        return ",".join(["irregular", *(ts.isoformat() for ts in self._instants)])

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, IrregularTimeIndex):
            return NotImplemented
        return np.array_equal(self._nanos, other._nanos)

    def __hash__(self) -> int:
        return hash(self._nanos.tobytes())

    def __repr__(self) -> str:
        return f"IrregularTimeIndex(size={self.size})"


def uniform(start: Any, periods: int, freq: Any = "D") -> UniformTimeIndex:
    """Build a uniform index of ``periods`` instants."""
    return UniformTimeIndex(start, periods, freq)


def irregular(instants: Iterable[Any]) -> IrregularTimeIndex:
    """Build an irregular index from strictly increasing instants."""
    return IrregularTimeIndex(instants)


def from_pandas(index: pd.DatetimeIndex) -> TimeIndex:
    """Wrap a pandas DatetimeIndex, preferring a uniform index when a frequency is known."""
    freq = index.freq
    if freq is None and len(index) >= 3:
        inferred = pd.infer_freq(index)
        freq = to_offset(inferred) if inferred else None
    if freq is not None and len(index) > 0:
        candidate = UniformTimeIndex(index[0], len(index), freq)
        if candidate.instants.equals(index):
            return candidate
    return IrregularTimeIndex(index)


def from_string(text: str) -> TimeIndex:
    """Parse the output of ``TimeIndex.to_string()``."""
    tokens = text.strip().split(",")
    kind = tokens[0]
    if kind == "uniform":
        if len(tokens) != 4:
            raise EContractViolation("Malformed uniform index string", context={"text": text})
        return UniformTimeIndex(tokens[1], int(tokens[2]), tokens[3])
    if kind == "irregular":
        return IrregularTimeIndex([pd.Timestamp(tok) for tok in tokens[1:] if tok])
    raise EContractViolation(f"Unknown index kind: {kind!r}", context={"text": text})
