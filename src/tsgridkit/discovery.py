"""API discovery and introspection for tsgridkit.

Provides ``describe()`` which returns a machine-readable schema of the
library's public surface: version, stable APIs and error codes with fix
hints.
"""

from __future__ import annotations

from typing import Any


def describe() -> dict[str, Any]:
    """Return a machine-readable API schema for tsgridkit.

    Returns a dictionary with:
      - ``version``: library version string
      - ``apis``: mapping of task names to primary API functions
      - ``error_codes``: mapping of error codes to description/fix_hint
    """
    import tsgridkit

    return {
        "version": tsgridkit.__version__,
        "apis": _get_apis(),
        "error_codes": _get_error_codes(),
    }


def _get_apis() -> dict[str, dict[str, str]]:
    """Return stable API surface."""
    return {
        "ingest_rows": {
            "function": "from_observations",
            "description": "Group (timestamp, key, value) rows into series on a target index",
        },
        "ingest_buffers": {
            "function": "from_buffers",
            "description": "Decode length-prefixed binary series",
        },
        "ingest_frames": {
            "function": "from_frames / from_series",
            "description": "Rebase locally held series onto a target index",
        },
        "align": {
            "function": "align",
            "description": "Rebase one vector from a source index onto a target index",
        },
        "slice": {
            "function": "SeriesCollection.slice",
            "description": "Restrict every series to an inclusive instant range",
        },
        "clean": {
            "function": "SeriesCollection.remove_instants_with_nans",
            "description": "Drop instants missing in any series",
        },
        "transpose": {
            "function": "SeriesCollection.to_instants",
            "description": "Time-major records, one per instant across all series",
        },
        "export_matrix": {
            "function": "SeriesCollection.to_row_matrix / to_indexed_row_matrix",
            "description": "Row matrices built from the transpose",
        },
        "persist": {
            "function": "save_csv / load_csv",
            "description": "Flat-file round trip with a serialized time index",
        },
    }


def _get_error_codes() -> dict[str, dict[str, str]]:
    """Return error code registry with descriptions and fix hints."""
    from tsgridkit.core.errors import ERROR_REGISTRY

    return {
        code: {
            "class": cls.__name__,
            "description": (cls.__doc__ or "").strip(),
            "fix_hint": cls.fix_hint,
        }
        for code, cls in ERROR_REGISTRY.items()
    }


__all__ = ["describe"]
