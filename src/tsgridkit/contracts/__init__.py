"""Column contracts for tabular inputs and outputs."""

from tsgridkit.contracts.specs import BaseSpec, DuplicatePolicy, ObservationContract

__all__ = ["BaseSpec", "DuplicatePolicy", "ObservationContract"]
