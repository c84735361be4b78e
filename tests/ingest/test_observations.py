"""Tests for io/observations.py."""

import logging

import numpy as np
import pandas as pd
import pytest
from pydantic import ValidationError

from tsgridkit import (
    EContractViolation,
    EDuplicateObservation,
    GridConfig,
    ObservationContract,
    from_observations,
    from_vectors,
)
from tsgridkit.io.observations import stable_key_partition
from tsgridkit.time import uniform

nan = np.nan


@pytest.fixture
def rows() -> pd.DataFrame:
    """Out-of-order long-format rows for two series over three days."""
    return pd.DataFrame({
        "timestamp": ["2024-01-03", "2024-01-01", "2024-01-01", "2024-01-02"],
        "key": ["a", "b", "a", "a"],
        "value": [3.0, 10.0, 1.0, 2.0],
    })


class TestFromObservations:
    """Tests for row-oriented ingestion."""

    def test_groups_rows_into_series(self, rows) -> None:
        """Test rows are grouped by key and placed at their offset."""
        idx = uniform("2024-01-01", periods=3)
        coll = from_observations(rows, idx, num_partitions=2)
        series = dict(coll.collect())
        assert sorted(series) == ["a", "b"]
        np.testing.assert_array_equal(series["a"], [1.0, 2.0, 3.0])
        np.testing.assert_array_equal(series["b"], [10.0, nan, nan])
        assert coll.index == idx

    def test_rows_outside_index_dropped(self, rows, caplog) -> None:
        idx = uniform("2024-01-01", periods=2)
        with caplog.at_level(logging.WARNING, logger="tsgridkit.io.observations"):
            coll = from_observations(rows, idx, num_partitions=1)
        np.testing.assert_array_equal(coll.find_series("a"), [1.0, 2.0])
        assert "Dropping 1 observation" in caplog.text

    def test_partition_placement_by_key(self) -> None:
        """Test series land on their key's hash partition, sorted by key."""
        keys = [f"k{i:02d}" for i in range(20)]
        df = pd.DataFrame({"timestamp": "2024-01-01", "key": keys, "value": 1.0})
        idx = uniform("2024-01-01", periods=1)
        coll = from_observations(df, idx, num_partitions=3)
        for split, part in enumerate(coll.records.partitions()):
            part_keys = [key for key, _ in part]
            assert part_keys == sorted(part_keys)
            assert all(stable_key_partition(key, 3) == split for key in part_keys)
        assert coll.count() == 20

    def test_stable_key_partition(self) -> None:
        assert stable_key_partition("series-1", 7) == stable_key_partition("series-1", 7)
        assert all(0 <= stable_key_partition(f"s{i}", 5) < 5 for i in range(50))

    def test_custom_contract(self) -> None:
        df = pd.DataFrame({"ds": ["2024-01-02"], "unique_id": ["x"], "y": [4.0]})
        contract = ObservationContract(ts_col="ds", key_col="unique_id", value_col="y")
        coll = from_observations(df, uniform("2024-01-01", periods=2), contract=contract)
        np.testing.assert_array_equal(coll.find_series("x"), [nan, 4.0])

    def test_missing_columns(self, rows) -> None:
        with pytest.raises(EContractViolation, match="Missing required columns"):
            from_observations(rows.drop(columns=["value"]), uniform("2024-01-01", periods=3))

    def test_default_partitions_from_config(self, rows) -> None:
        config = GridConfig(default_partitions=5)
        coll = from_observations(rows, uniform("2024-01-01", periods=3), config=config)
        assert coll.num_partitions == 5

    def test_empty_frame(self) -> None:
        df = pd.DataFrame({"timestamp": [], "key": [], "value": []})
        coll = from_observations(df, uniform("2024-01-01", periods=3))
        assert coll.count() == 0
        assert coll.to_instants().collect() == []


class TestDuplicates:
    """Tests for the duplicate (key, instant) policy."""

    @pytest.fixture
    def dupes(self) -> pd.DataFrame:
        return pd.DataFrame({
            "timestamp": ["2024-01-01", "2024-01-01", "2024-01-02"],
            "key": ["a", "a", "a"],
            "value": [1.0, 5.0, 2.0],
        })

    def test_last_wins_by_default(self, dupes) -> None:
        coll = from_observations(dupes, uniform("2024-01-01", periods=2))
        np.testing.assert_array_equal(coll.find_series("a"), [5.0, 2.0])

    def test_first_policy(self, dupes) -> None:
        contract = ObservationContract(on_duplicate="first")
        coll = from_observations(dupes, uniform("2024-01-01", periods=2), contract=contract)
        np.testing.assert_array_equal(coll.find_series("a"), [1.0, 2.0])

    def test_error_policy(self, dupes) -> None:
        contract = ObservationContract(on_duplicate="error")
        with pytest.raises(EDuplicateObservation) as exc_info:
            from_observations(dupes, uniform("2024-01-01", periods=2), contract=contract)
        assert isinstance(exc_info.value, EContractViolation)
        assert exc_info.value.context["sample"]

    def test_unknown_policy_rejected(self) -> None:
        with pytest.raises(ValidationError):
            ObservationContract(on_duplicate="mean")


class TestFromVectors:
    """Tests for pre-aligned vector ingestion."""

    def test_keeps_input_order(self) -> None:
        idx = uniform("2024-01-01", periods=2)
        coll = from_vectors(idx, [("z", [1.0, 2.0]), ("a", [3.0, 4.0])], num_partitions=2)
        assert coll.keys == ["z", "a"]

    def test_wrong_length_rejected(self) -> None:
        """Test vectors not matching the index fail when the collection is computed."""
        idx = uniform("2024-01-01", periods=3)
        coll = from_vectors(idx, [("a", [1.0, 2.0])], num_partitions=1)
        with pytest.raises(EContractViolation, match="does not match"):
            coll.collect()
