"""Tests for series/univariate.py."""

import numpy as np
import pytest

from tsgridkit.series import (
    differences,
    fill_series,
    first_not_nan,
    last_not_nan,
    price_to_returns,
    quotients,
)

nan = np.nan


class TestObservedBounds:
    """Tests for first/last observed offsets."""

    def test_first_and_last(self) -> None:
        vec = np.array([nan, 1.0, nan, 2.0, nan])
        assert first_not_nan(vec) == 1
        assert last_not_nan(vec) == 3

    def test_all_missing(self) -> None:
        """Test sentinels for a series without observations."""
        vec = np.full(4, nan)
        assert first_not_nan(vec) == 4
        assert last_not_nan(vec) == -1


class TestDifferencesAndQuotients:
    """Tests for lagged transforms."""

    def test_differences(self) -> None:
        vec = np.array([1.0, 2.0, 4.0, 7.0, 11.0])
        np.testing.assert_array_equal(differences(vec), [1.0, 2.0, 3.0, 4.0])
        np.testing.assert_array_equal(differences(vec, 2), [1.0, 1.0, 1.0])

    def test_negative_order_rejected(self) -> None:
        with pytest.raises(ValueError, match="non-negative"):
            differences(np.ones(3), -1)

    def test_quotients(self) -> None:
        vec = np.array([1.0, 2.0, 8.0])
        np.testing.assert_array_equal(quotients(vec), [2.0, 4.0])
        np.testing.assert_array_equal(quotients(vec, 2), [8.0])

    def test_quotients_zero_division(self) -> None:
        """Test division by zero yields inf without warnings."""
        result = quotients(np.array([0.0, 1.0]))
        assert np.isinf(result[0])

    def test_returns(self) -> None:
        np.testing.assert_allclose(price_to_returns(np.array([100.0, 110.0, 99.0])), [0.1, -0.1])


class TestFill:
    """Tests for missing-value imputation."""

    def test_linear_leaves_edges(self) -> None:
        """Test linear fill interpolates interior gaps only."""
        vec = np.array([nan, 1.0, nan, 3.0, nan])
        np.testing.assert_array_equal(fill_series(vec, "linear"), [nan, 1.0, 2.0, 3.0, nan])

    def test_previous_and_next(self) -> None:
        vec = np.array([nan, 1.0, nan, 3.0, nan])
        np.testing.assert_array_equal(fill_series(vec, "previous"), [nan, 1.0, 1.0, 3.0, 3.0])
        np.testing.assert_array_equal(fill_series(vec, "next"), [1.0, 1.0, 3.0, 3.0, nan])

    def test_nearest_ties_to_earlier(self) -> None:
        """Test nearest fill resolves equidistant gaps to the earlier observation."""
        vec = np.array([nan, 1.0, nan, 3.0, nan, nan, nan])
        np.testing.assert_array_equal(
            fill_series(vec, "nearest"), [1.0, 1.0, 1.0, 3.0, 3.0, 3.0, 3.0]
        )

    def test_nearest_all_missing(self) -> None:
        vec = np.full(3, nan)
        assert np.isnan(fill_series(vec, "nearest")).all()

    def test_unknown_method(self) -> None:
        with pytest.raises(ValueError, match="Unknown fill method"):
            fill_series(np.ones(2), "spline")  # type: ignore[arg-type]
