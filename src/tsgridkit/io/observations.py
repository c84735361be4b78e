"""Row-oriented ingestion: long-format observations to a series collection."""

from __future__ import annotations

import hashlib
import logging
from collections.abc import Iterable, Iterator
from itertools import groupby

import numpy as np
import pandas as pd

from tsgridkit.contracts.specs import ObservationContract
from tsgridkit.core.config import DEFAULT_CONFIG, GridConfig
from tsgridkit.core.errors import EContractViolation, EDuplicateObservation
from tsgridkit.runtime.partitioned import PartitionedCollection
from tsgridkit.series.collection import SeriesCollection
from tsgridkit.time.index import NOT_FOUND, TimeIndex

logger = logging.getLogger(__name__)

Observation = tuple[tuple[str, int], float]


def stable_key_partition(key: str, num_partitions: int) -> int:
    """Hash partition for a series key that is identical across processes and runs."""
    digest = hashlib.sha256(key.encode("utf-8")).hexdigest()[:16]
    return int(digest, 16) % num_partitions


def _assemble_series(
    observations: Iterator[Observation],
    size: int,
    fill_value: float,
) -> Iterator[tuple[str, np.ndarray]]:
    for key, group in groupby(observations, key=lambda obs: obs[0][0]):
        vec = np.full(size, fill_value, dtype=np.float64)
        for (_, loc), value in group:
            vec[loc] = value
        yield key, vec


def _resolve_duplicates(data: pd.DataFrame, contract: ObservationContract) -> pd.DataFrame:
    subset = [contract.key_col, "_loc"]
    if contract.on_duplicate == "error":
        dupes = data.duplicated(subset=subset, keep=False)
        if dupes.any():
            sample = data.loc[dupes, [contract.key_col, contract.ts_col]].head(5)
            raise EDuplicateObservation(
                f"Found {int(dupes.sum())} rows sharing a (key, instant) pair",
                context={"sample": sample.astype(str).to_dict("records")},
            )
        return data
    return data.drop_duplicates(subset=subset, keep=contract.on_duplicate)


def from_observations(
    df: pd.DataFrame,
    target_index: TimeIndex,
    contract: ObservationContract | None = None,
    num_partitions: int | None = None,
    config: GridConfig = DEFAULT_CONFIG,
) -> SeriesCollection:
    """Build a collection from (timestamp, key, value) rows.

    Rows are grouped by key and placed at their offset in ``target_index``;
    rows whose instant is not in the index are dropped. Series are hash
    partitioned by key and sorted by key within each partition.

    Args:
        df: Long-format observations
        target_index: Index every series is conformed to
        contract: Column names and duplicate policy (default: ObservationContract())
        num_partitions: Partition count (default: ``config.default_partitions``)
        config: Execution configuration

    Returns:
        New SeriesCollection

    Raises:
        EContractViolation: If required columns are missing
        EDuplicateObservation: If duplicates exist and the policy is "error"
    """
    contract = contract or ObservationContract()
    missing = [c for c in contract.columns if c not in df.columns]
    if missing:
        raise EContractViolation(
            f"Missing required columns: {missing}",
            context={"required": contract.columns, "found": list(df.columns)},
        )

    data = df[contract.columns].copy()
    data[contract.ts_col] = pd.to_datetime(data[contract.ts_col])
    data[contract.key_col] = data[contract.key_col].astype(str)
    data[contract.value_col] = data[contract.value_col].astype(np.float64)
    data["_loc"] = target_index.locs(pd.DatetimeIndex(data[contract.ts_col]))

    outside = data["_loc"] == NOT_FOUND
    if outside.any():
        logger.warning(
            "Dropping %d observation(s) whose instant is not in the target index",
            int(outside.sum()),
        )
        data = data.loc[~outside]

    data = _resolve_duplicates(data, contract)

    n = num_partitions or config.default_partitions
    rows: list[Observation] = list(
        zip(
            zip(data[contract.key_col].tolist(), data["_loc"].astype(int).tolist()),
            data[contract.value_col].tolist(),
        )
    )
    size = target_index.size
    fill_value = config.fill_value
    base = PartitionedCollection.from_records(rows, n, config)
    shuffled = base.repartition_and_sort_within_partitions(
        n,
        lambda key_loc: stable_key_partition(key_loc[0], n),
        lambda key_loc: key_loc,
    )
    series = shuffled.map_partitions(lambda it: _assemble_series(it, size, fill_value))
    return SeriesCollection(target_index, series)


def checked_collection(
    target_index: TimeIndex,
    records: PartitionedCollection[tuple[str, np.ndarray]],
) -> SeriesCollection:
    """Wrap ``(key, vector)`` records, verifying each vector against the index size.

    The check runs lazily inside the partition tasks and raises
    ``EContractViolation`` for a vector of the wrong length.
    """
    size = target_index.size

    def checked(record: tuple[str, np.ndarray]) -> tuple[str, np.ndarray]:
        key, values = record
        vec = np.asarray(values, dtype=np.float64)
        if vec.shape != (size,):
            raise EContractViolation(
                "Vector length does not match index size",
                context={"key": key, "vector_length": int(vec.size), "index_size": size},
            )
        return key, vec

    return SeriesCollection(target_index, records.map(checked))


def from_vectors(
    target_index: TimeIndex,
    records: Iterable[tuple[str, np.ndarray]],
    num_partitions: int | None = None,
    config: GridConfig = DEFAULT_CONFIG,
) -> SeriesCollection:
    """Build a collection from ``(key, vector)`` pairs already aligned to ``target_index``."""
    base = PartitionedCollection.from_records(records, num_partitions, config)
    return checked_collection(target_index, base)


__all__ = ["from_observations", "from_vectors", "checked_collection", "stable_key_partition"]
