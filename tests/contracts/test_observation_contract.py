"""Tests for contracts/specs.py."""

import pytest
from pydantic import ValidationError

from tsgridkit import ObservationContract


class TestObservationContract:
    """Tests for the long-format column contract."""

    def test_defaults(self) -> None:
        contract = ObservationContract()
        assert contract.columns == ["timestamp", "key", "value"]
        assert contract.on_duplicate == "last"

    def test_extra_fields_forbidden(self) -> None:
        with pytest.raises(ValidationError):
            ObservationContract(weight_col="w")

    def test_columns_must_be_distinct(self) -> None:
        """Test the same column cannot play two roles."""
        with pytest.raises(ValidationError, match="distinct"):
            ObservationContract(ts_col="x", key_col="x")

    def test_frozen(self) -> None:
        contract = ObservationContract()
        with pytest.raises(ValidationError):
            contract.ts_col = "ds"

    def test_json_round_trip(self) -> None:
        contract = ObservationContract(ts_col="ds", key_col="unique_id", value_col="y")
        assert ObservationContract.model_validate_json(contract.model_dump_json()) == contract
