"""Core error types with rich context.

All errors raised by tsgridkit derive from ``TSGridKitError`` and carry
an ``error_code``, free-form ``context`` and an actionable ``fix_hint``.
"""

# ruff: noqa: N818

from __future__ import annotations

from typing import Any


class TSGridKitError(Exception):
    """Base exception with rich context.

    Attributes:
        error_code: Unique error code string for programmatic handling
        message: Human-readable error message
        context: Additional context data for debugging
        fix_hint: Actionable hint for resolving the error
    """

    error_code: str = "E_UNKNOWN"
    fix_hint: str = ""

    def __init__(
        self,
        message: str,
        context: dict[str, Any] | None = None,
        fix_hint: str | None = None,
    ) -> None:
        super().__init__(message)
        self.message = message
        self.context = context or {}
        if fix_hint:
            self.fix_hint = fix_hint

    def __str__(self) -> str:
        parts = [f"[{self.error_code}] {self.message}"]
        if self.context:
            parts.append(f"(context: {self.context})")
        if self.fix_hint:
            parts.append(f"[hint: {self.fix_hint}]")
        return " ".join(parts)

    def to_agent_dict(self) -> dict[str, Any]:
        """Return a structured dict with error_code, message, fix_hint and context."""
        return {
            "error_code": self.error_code,
            "message": self.message,
            "fix_hint": self.fix_hint,
            "context": self.context,
        }


# ---------------------------
# Contract Errors
# ---------------------------


class EContractViolation(TSGridKitError):
    """Input data violates contract requirements."""

    error_code = "E_CONTRACT_VIOLATION"
    fix_hint = "Check that vectors match the index size and instants are strictly increasing"


class EInstantNotFound(EContractViolation):
    """An instant is not part of the time index."""

    error_code = "E_INSTANT_NOT_FOUND"
    fix_hint = "Pick an instant from collection.index, or slice() to a range instead"


class ESeriesNotFound(TSGridKitError):
    """No series with the requested key."""

    error_code = "E_SERIES_NOT_FOUND"
    fix_hint = "Inspect collection.keys for the available series"


class EIndexNotUniform(TSGridKitError):
    """Operation requires a uniform (constant-stride) time index."""

    error_code = "E_INDEX_NOT_UNIFORM"
    fix_hint = "Use to_row_matrix(), or rebase with with_index(uniform(...)) first"


class EDuplicateObservation(EContractViolation):
    """Duplicate (key, instant) pairs found in observations."""

    error_code = "E_DUPLICATE_OBSERVATION"
    fix_hint = "Set ObservationContract(on_duplicate='last') or drop duplicates upstream"


# ---------------------------
# Codec Errors
# ---------------------------


class EBufferDecode(TSGridKitError):
    """Raw series buffer is malformed."""

    error_code = "E_BUFFER_DECODE"
    fix_hint = "Buffers must be written with encode_series()"


# ---------------------------
# Execution Errors
# ---------------------------


class EPartitionTaskFailed(TSGridKitError):
    """A partition task kept failing after all attempts."""

    error_code = "E_PARTITION_TASK_FAILED"
    fix_hint = "Inspect the chained exception; raise GridConfig.max_task_attempts for flaky inputs"


class EReassemblyFailed(TSGridKitError):
    """Chunk fragments for an instant could not be reassembled."""

    error_code = "E_REASSEMBLY_FAILED"


# Error registry for lookup
ERROR_REGISTRY: dict[str, type[TSGridKitError]] = {
    cls.error_code: cls
    for cls in (
        EContractViolation,
        EInstantNotFound,
        ESeriesNotFound,
        EIndexNotUniform,
        EDuplicateObservation,
        EBufferDecode,
        EPartitionTaskFailed,
        EReassemblyFailed,
    )
}


def get_error_class(error_code: str) -> type[TSGridKitError]:
    """Get error class by code."""
    return ERROR_REGISTRY.get(error_code, TSGridKitError)


__all__ = [
    "TSGridKitError",
    "EContractViolation",
    "EInstantNotFound",
    "ESeriesNotFound",
    "EIndexNotUniform",
    "EDuplicateObservation",
    "EBufferDecode",
    "EPartitionTaskFailed",
    "EReassemblyFailed",
    "ERROR_REGISTRY",
    "get_error_class",
]
