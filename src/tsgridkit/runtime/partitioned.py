"""In-process partitioned lazy collection.

``PartitionedCollection`` is the execution substrate the series layer is
built on. It holds one compute function per partition and runs nothing
until a terminal operation asks for data. Narrow operations (map, filter,
map_partitions_with_index) are pipelined into the same partition task;
``repartition_and_sort_within_partitions`` is a shuffle boundary that
materializes every parent partition once before any child partition is
served.

Partition tasks are executed on a ``ThreadPoolExecutor`` and re-executed
on failure up to ``GridConfig.max_task_attempts`` times, so every compute
function must be a deterministic, side-effect-free function of its
partition.
"""

from __future__ import annotations

import copy
import logging
import threading
from collections.abc import Callable, Iterable, Iterator, Sequence
from concurrent.futures import ThreadPoolExecutor, as_completed
from typing import Any, Generic, TypeVar

from tsgridkit.core.config import DEFAULT_CONFIG, GridConfig
from tsgridkit.core.errors import EPartitionTaskFailed, TSGridKitError

logger = logging.getLogger(__name__)

T = TypeVar("T")
U = TypeVar("U")
K = TypeVar("K")
V = TypeVar("V")
A = TypeVar("A")


class _ShuffleStage(Generic[K, V]):
    """Materialized output of a repartition-and-sort, computed once."""

    def __init__(
        self,
        parent: PartitionedCollection[tuple[K, V]],
        num_partitions: int,
        partitioner: Callable[[K], int],
        sort_key: Callable[[K], Any],
    ) -> None:
        self._parent = parent
        self._num_partitions = num_partitions
        self._partitioner = partitioner
        self._sort_key = sort_key
        self._buckets: list[list[tuple[K, V]]] | None = None
        self._lock = threading.Lock()

    def bucket(self, split: int) -> list[tuple[K, V]]:
        with self._lock:
            if self._buckets is None:
                self._buckets = self._run()
        return self._buckets[split]

    def _run(self) -> list[list[tuple[K, V]]]:
        buckets: list[list[tuple[K, V]]] = [[] for _ in range(self._num_partitions)]
        n_records = 0
        for part in self._parent.partitions():
            for key, value in part:
                dest = self._partitioner(key)
                if not 0 <= dest < self._num_partitions:
                    raise TSGridKitError(
                        "Partitioner returned an out-of-range partition",
                        context={"partition": dest, "num_partitions": self._num_partitions},
                    )
                buckets[dest].append((key, value))
                n_records += 1
        for bucket in buckets:
            bucket.sort(key=lambda kv: self._sort_key(kv[0]))
        logger.debug(
            "Shuffled %d records from %d into %d partitions",
            n_records,
            self._parent.num_partitions,
            self._num_partitions,
        )
        return buckets


class PartitionedCollection(Generic[T]):
    """Lazy, immutable collection split into ordered partitions.

    Args:
        num_partitions: Number of partitions
        compute: Function producing the records of one partition
        config: Execution configuration (workers, task attempts)
    """

    def __init__(
        self,
        num_partitions: int,
        compute: Callable[[int], Iterable[T]],
        config: GridConfig = DEFAULT_CONFIG,
    ) -> None:
        if num_partitions < 0:
            raise ValueError(f"num_partitions must be non-negative, got {num_partitions}")
        self._num_partitions = num_partitions
        self._compute = compute
        self._config = config

    # ---------------------------
    # Construction
    # ---------------------------

    @classmethod
    def from_partitions(
        cls,
        partitions: Sequence[Sequence[T]],
        config: GridConfig = DEFAULT_CONFIG,
    ) -> PartitionedCollection[T]:
        frozen = [tuple(p) for p in partitions]
        return cls(len(frozen), lambda split: iter(frozen[split]), config)

    @classmethod
    def from_records(
        cls,
        records: Iterable[T],
        num_partitions: int | None = None,
        config: GridConfig = DEFAULT_CONFIG,
    ) -> PartitionedCollection[T]:
        """Split records into contiguous, near-equal partitions, keeping their order."""
        items = list(records)
        n = num_partitions or config.default_partitions
        bounds = [len(items) * i // n for i in range(n + 1)]
        return cls.from_partitions(
            [items[bounds[i]:bounds[i + 1]] for i in range(n)],
            config,
        )

    # ---------------------------
    # Properties
    # ---------------------------

    @property
    def num_partitions(self) -> int:
        return self._num_partitions

    @property
    def config(self) -> GridConfig:
        return self._config

    # ---------------------------
    # Narrow transforms
    # ---------------------------

    def map_partitions_with_index(
        self,
        f: Callable[[int, Iterator[T]], Iterable[U]],
    ) -> PartitionedCollection[U]:
        parent = self._compute
        return PartitionedCollection(
            self._num_partitions,
            lambda split: f(split, iter(parent(split))),
            self._config,
        )

    def map_partitions(self, f: Callable[[Iterator[T]], Iterable[U]]) -> PartitionedCollection[U]:
        return self.map_partitions_with_index(lambda _, it: f(it))

    def map(self, f: Callable[[T], U]) -> PartitionedCollection[U]:
        return self.map_partitions(lambda it: (f(x) for x in it))

    def flat_map(self, f: Callable[[T], Iterable[U]]) -> PartitionedCollection[U]:
        return self.map_partitions(lambda it: (y for x in it for y in f(x)))

    def filter(self, predicate: Callable[[T], bool]) -> PartitionedCollection[T]:
        return self.map_partitions(lambda it: (x for x in it if predicate(x)))

    # ---------------------------
    # Shuffle
    # ---------------------------

    def repartition_and_sort_within_partitions(
        self: PartitionedCollection[tuple[K, V]],
        num_partitions: int,
        partitioner: Callable[[K], int],
        sort_key: Callable[[K], Any],
    ) -> PartitionedCollection[tuple[K, V]]:
        """Redistribute key/value records and sort each destination partition.

        Args:
            num_partitions: Destination partition count
            partitioner: Maps a record key to its destination partition
            sort_key: Maps a record key to its sort position within a partition

        Returns:
            Collection whose partition ``i`` holds exactly the records with
            ``partitioner(key) == i``, ascending by ``sort_key(key)``
        """
        stage: _ShuffleStage[K, V] = _ShuffleStage(self, num_partitions, partitioner, sort_key)
        return PartitionedCollection(
            num_partitions, lambda split: iter(stage.bucket(split)), self._config
        )

    # ---------------------------
    # Execution
    # ---------------------------

    def _run_task(self, split: int) -> list[T]:
        attempts = self._config.max_task_attempts
        last_error: Exception | None = None
        for attempt in range(1, attempts + 1):
            try:
                return list(self._compute(split))
            except TSGridKitError:
                raise
            except Exception as e:
                last_error = e
                if attempt < attempts:
                    logger.warning(
                        "Partition %d task failed on attempt %d/%d: %s; retrying",
                        split,
                        attempt,
                        attempts,
                        e,
                    )
        raise EPartitionTaskFailed(
            f"Partition {split} failed after {attempts} attempt(s)",
            context={"partition": split, "error": repr(last_error)},
        ) from last_error

    def iter_partition(self, split: int) -> Iterator[T]:
        """Records of a single partition."""
        if not 0 <= split < self._num_partitions:
            raise IndexError(f"Partition {split} out of range ({self._num_partitions} partitions)")
        return iter(self._run_task(split))

    def partitions(self) -> list[list[T]]:
        """Materialize every partition, in partition order."""
        n = self._num_partitions
        if n == 0:
            return []
        if n == 1 or self._config.max_workers == 1:
            return [self._run_task(split) for split in range(n)]

        results: list[list[T] | None] = [None] * n
        with ThreadPoolExecutor(max_workers=self._config.max_workers) as executor:
            futures = {executor.submit(self._run_task, split): split for split in range(n)}
            for future in as_completed(futures):
                results[futures[future]] = future.result()
        return [r if r is not None else [] for r in results]

    def collect(self) -> list[T]:
        return [x for part in self.partitions() for x in part]

    def count(self) -> int:
        return sum(len(part) for part in self.partitions())

    def first(self) -> T | None:
        """First record in partition order, or None when the collection is empty."""
        for split in range(self._num_partitions):
            for x in self.iter_partition(split):
                return x
        return None

    def aggregate(
        self,
        zero: A,
        seq_op: Callable[[A, T], A],
        comb_op: Callable[[A, A], A],
    ) -> A:
        """Fold each partition from a fresh copy of ``zero`` and merge the partials.

        ``comb_op`` must be associative and commutative; partials are merged
        in partition order.
        """
        fold_parent = self._compute

        def fold(split: int) -> Iterator[A]:
            acc = copy.deepcopy(zero)
            for x in fold_parent(split):
                acc = seq_op(acc, x)
            yield acc

        partials = PartitionedCollection(self._num_partitions, fold, self._config).collect()
        result = copy.deepcopy(zero)
        for partial in partials:
            result = comb_op(result, partial)
        return result

    def __repr__(self) -> str:
        return f"PartitionedCollection(num_partitions={self._num_partitions})"
