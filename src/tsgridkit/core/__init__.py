"""Core configuration and error types."""

from tsgridkit.core.config import DEFAULT_CONFIG, GridConfig
from tsgridkit.core.errors import (
    ERROR_REGISTRY,
    EBufferDecode,
    EContractViolation,
    EDuplicateObservation,
    EIndexNotUniform,
    EInstantNotFound,
    EPartitionTaskFailed,
    EReassemblyFailed,
    ESeriesNotFound,
    TSGridKitError,
    get_error_class,
)

__all__ = [
    "GridConfig",
    "DEFAULT_CONFIG",
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
