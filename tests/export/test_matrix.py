"""Tests for export/matrix.py."""

import numpy as np
import pytest

from tsgridkit import EIndexNotUniform
from tsgridkit.export import IndexedRow
from tsgridkit.time import irregular, uniform

nan = np.nan


class TestRowMatrix:
    """Tests for to_row_matrix."""

    def test_rows_are_instants(self, make_collection, daily_index) -> None:
        """Test the matrix has one row per instant and one column per key."""
        series = {"a": [1.0, 2.0, 3.0, 4.0, 5.0], "b": [6.0, nan, 8.0, 9.0, 10.0]}
        coll = make_collection(daily_index, series)
        matrix = coll.to_row_matrix()
        assert matrix.num_rows == 5
        assert matrix.num_cols == 2
        np.testing.assert_array_equal(matrix.to_numpy(), coll.collect_as_frame().to_numpy())

    def test_irregular_index_allowed(self, make_collection) -> None:
        idx = irregular(["2024-01-01", "2024-01-05"])
        matrix = make_collection(idx, {"a": [1.0, 2.0]}).to_row_matrix()
        np.testing.assert_array_equal(matrix.to_numpy(), [[1.0], [2.0]])

    def test_empty_collection(self, make_collection, daily_index) -> None:
        """Test an empty collection yields a zero-row matrix."""
        matrix = make_collection(daily_index, {}).to_row_matrix()
        assert matrix.num_rows == 0
        assert matrix.to_numpy().shape == (0, 0)


class TestIndexedRowMatrix:
    """Tests for to_indexed_row_matrix."""

    def test_row_indices_follow_offsets(self, make_collection, daily_index) -> None:
        coll = make_collection(daily_index, {"a": [1.0, 2.0, 3.0, 4.0, 5.0]})
        matrix = coll.to_indexed_row_matrix(num_partitions=2)
        rows = matrix.rows.collect()
        assert [row.index for row in rows] == [0, 1, 2, 3, 4]
        assert all(isinstance(row, IndexedRow) for row in rows)
        assert matrix.num_rows == 5
        np.testing.assert_array_equal(matrix.to_numpy()[:, 0], [1.0, 2.0, 3.0, 4.0, 5.0])

    def test_sliced_index_restarts_at_zero(self, make_collection, daily_index) -> None:
        """Test row indices count from the start of the collection's own index."""
        coll = make_collection(daily_index, {"a": [1.0, 2.0, 3.0, 4.0, 5.0]})
        matrix = coll.slice("2024-01-03", "2024-01-05").to_indexed_row_matrix()
        assert [row.index for row in matrix.rows.collect()] == [0, 1, 2]

    def test_hourly_index(self, make_collection) -> None:
        idx = uniform("2024-01-01", periods=3, freq="h")
        matrix = make_collection(idx, {"a": [1.0, 2.0, 3.0]}).to_indexed_row_matrix()
        assert [row.index for row in matrix.rows.collect()] == [0, 1, 2]

    def test_non_uniform_rejected(self, make_collection) -> None:
        """Test an irregular index is a precondition failure."""
        idx = irregular(["2024-01-01", "2024-01-02", "2024-01-09"])
        coll = make_collection(idx, {"a": [1.0, 2.0, 3.0]})
        with pytest.raises(EIndexNotUniform):
            coll.to_indexed_row_matrix()

    def test_empty_collection(self, make_collection, daily_index) -> None:
        matrix = make_collection(daily_index, {}).to_indexed_row_matrix()
        assert matrix.num_rows == 0
        assert matrix.to_numpy().shape == (0, 0)
