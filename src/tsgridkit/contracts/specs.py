"""Pydantic specs for tsgridkit column contracts.

These models are the JSON-serializable descriptions of how tabular
inputs map onto series keys, instants and values.
"""

from __future__ import annotations

from typing import Literal

from pydantic import BaseModel, ConfigDict, model_validator

# ---------------------------
# Common
# ---------------------------


class BaseSpec(BaseModel):
    model_config = ConfigDict(extra="forbid", frozen=True)


DuplicatePolicy = Literal["last", "first", "error"]


# ---------------------------
# Data contracts (column-level)
# ---------------------------


class ObservationContract(BaseSpec):
    """Long-format observation columns and duplicate handling.

    ``on_duplicate`` decides what happens when the same (key, instant)
    pair appears more than once: ``"last"`` keeps the row that comes last
    in input order, ``"first"`` the one that comes first, ``"error"``
    rejects the input.
    """

    ts_col: str = "timestamp"
    key_col: str = "key"
    value_col: str = "value"
    on_duplicate: DuplicatePolicy = "last"

    @model_validator(mode="after")
    def _distinct_columns(self) -> ObservationContract:
        cols = [self.ts_col, self.key_col, self.value_col]
        if len(set(cols)) != len(cols):
            raise ValueError(f"Observation columns must be distinct, got {cols}")
        return self

    @property
    def columns(self) -> list[str]:
        return [self.ts_col, self.key_col, self.value_col]
