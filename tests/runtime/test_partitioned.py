"""Tests for runtime/partitioned.py."""

import logging
import threading
from collections import Counter

import pytest

from tsgridkit import EContractViolation, EPartitionTaskFailed, GridConfig, TSGridKitError
from tsgridkit.runtime import PartitionedCollection


class TestConstruction:
    """Tests for building partitioned collections."""

    def test_from_records_contiguous_split(self) -> None:
        """Test records are split into contiguous, near-equal runs."""
        coll = PartitionedCollection.from_records(range(10), 3)
        assert coll.partitions() == [[0, 1, 2], [3, 4, 5], [6, 7, 8, 9]]

    def test_from_records_default_partitions(self) -> None:
        coll = PartitionedCollection.from_records([1, 2], config=GridConfig(default_partitions=3))
        assert coll.num_partitions == 3
        assert coll.collect() == [1, 2]

    def test_negative_partitions_rejected(self) -> None:
        with pytest.raises(ValueError, match="non-negative"):
            PartitionedCollection(-1, lambda split: [])

    def test_zero_partitions(self) -> None:
        coll = PartitionedCollection(0, lambda split: [])
        assert coll.partitions() == []
        assert coll.first() is None


class TestTransforms:
    """Tests for narrow transforms and actions."""

    def test_map_filter_keep_order(self) -> None:
        coll = PartitionedCollection.from_records(range(20), 4, GridConfig.parallel())
        result = coll.map(lambda x: x * 10).filter(lambda x: x % 20 == 0).collect()
        assert result == list(range(0, 200, 20))

    def test_flat_map(self) -> None:
        coll = PartitionedCollection.from_records(["ab", "c"], 2)
        assert coll.flat_map(list).collect() == ["a", "b", "c"]

    def test_map_partitions_with_index(self) -> None:
        coll = PartitionedCollection.from_records(range(4), 2)
        tagged = coll.map_partitions_with_index(lambda split, it: ((split, x) for x in it))
        assert tagged.collect() == [(0, 0), (0, 1), (1, 2), (1, 3)]

    def test_count_and_first(self) -> None:
        coll = PartitionedCollection.from_partitions([[], [], [5, 6]])
        assert coll.count() == 2
        assert coll.first() == 5

    def test_iter_partition_out_of_range(self) -> None:
        coll = PartitionedCollection.from_records(range(4), 2)
        with pytest.raises(IndexError):
            coll.iter_partition(2)

    def test_aggregate(self) -> None:
        """Test aggregate folds each partition from a fresh zero."""
        coll = PartitionedCollection.from_records(range(1, 11), 3)
        total = coll.aggregate([], lambda acc, x: acc + [x], lambda a, b: a + b)
        assert sorted(total) == list(range(1, 11))
        assert coll.aggregate(0, lambda acc, x: acc + x, lambda a, b: a + b) == 55

    def test_aggregate_zero_not_shared(self) -> None:
        """Test an in-place seq_op does not leak between partitions."""
        coll = PartitionedCollection.from_records([1, 2, 3, 4], 2)

        def seq(acc: list, x: int) -> list:
            acc.append(x)
            return acc

        zero: list = []
        partial_sizes = coll.aggregate(zero, seq, lambda a, b: a + [len(b)])
        assert partial_sizes == [2, 2]
        assert zero == []


class TestShuffle:
    """Tests for repartition_and_sort_within_partitions."""

    def test_routes_and_sorts(self) -> None:
        """Test records land on their partition, sorted by key."""
        records = [(k, f"v{k}") for k in [5, 2, 8, 1, 4, 7]]
        coll = PartitionedCollection.from_records(records, 3)
        shuffled = coll.repartition_and_sort_within_partitions(2, lambda k: k % 2, lambda k: k)
        assert shuffled.num_partitions == 2
        assert shuffled.partitions() == [
            [(2, "v2"), (4, "v4"), (8, "v8")],
            [(1, "v1"), (5, "v5"), (7, "v7")],
        ]

    def test_sort_is_stable(self) -> None:
        """Test equal sort keys keep their arrival order."""
        records = [("a", 1), ("b", 2), ("a", 3)]
        coll = PartitionedCollection.from_records(records, 2)
        shuffled = coll.repartition_and_sort_within_partitions(1, lambda k: 0, lambda k: 0)
        assert shuffled.collect() == records

    def test_parent_computed_once(self) -> None:
        """Test the shuffle materializes each parent partition once."""
        calls: Counter = Counter()
        lock = threading.Lock()

        def compute(split: int):
            with lock:
                calls[split] += 1
            return [(split * 10 + i, i) for i in range(3)]

        parent = PartitionedCollection(3, compute, GridConfig.parallel())
        shuffled = parent.repartition_and_sort_within_partitions(4, lambda k: k % 4, lambda k: k)
        shuffled.collect()
        shuffled.collect()
        assert calls == Counter({0: 1, 1: 1, 2: 1})

    def test_out_of_range_partitioner(self) -> None:
        coll = PartitionedCollection.from_records([(1, "x")], 1)
        shuffled = coll.repartition_and_sort_within_partitions(2, lambda k: 5, lambda k: k)
        with pytest.raises(TSGridKitError, match="out-of-range"):
            shuffled.collect()


class TestRetries:
    """Tests for partition task re-execution."""

    @staticmethod
    def _flaky(failures: int):
        attempts: Counter = Counter()
        lock = threading.Lock()

        def compute(split: int):
            with lock:
                attempts[split] += 1
                n = attempts[split]
            if n <= failures:
                raise RuntimeError(f"worker lost on partition {split}")
            return [split]

        return compute, attempts

    def test_transient_failure_retried(self, caplog) -> None:
        """Test a failed partition task is re-executed."""
        compute, attempts = self._flaky(failures=1)
        coll = PartitionedCollection(3, compute, GridConfig(max_task_attempts=2))
        with caplog.at_level(logging.WARNING, logger="tsgridkit.runtime.partitioned"):
            assert coll.collect() == [0, 1, 2]
        assert all(n == 2 for n in attempts.values())
        assert "retrying" in caplog.text

    def test_attempts_exhausted(self) -> None:
        """Test persistent failures surface as EPartitionTaskFailed."""
        compute, attempts = self._flaky(failures=5)
        coll = PartitionedCollection(2, compute, GridConfig(max_task_attempts=3))
        with pytest.raises(EPartitionTaskFailed) as exc_info:
            coll.collect()
        assert isinstance(exc_info.value.__cause__, RuntimeError)
        assert exc_info.value.error_code == "E_PARTITION_TASK_FAILED"

    def test_sequential_config_does_not_retry(self) -> None:
        compute, attempts = self._flaky(failures=1)
        coll = PartitionedCollection(1, compute, GridConfig.sequential())
        with pytest.raises(EPartitionTaskFailed):
            coll.collect()
        assert attempts[0] == 1

    def test_domain_errors_not_retried(self) -> None:
        """Test library errors propagate unchanged on the first attempt."""
        calls: Counter = Counter()

        def compute(split: int):
            calls[split] += 1
            raise EContractViolation("bad record")

        coll = PartitionedCollection(1, compute, GridConfig(max_task_attempts=3))
        with pytest.raises(EContractViolation):
            coll.collect()
        assert calls[0] == 1
