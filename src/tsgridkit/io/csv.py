"""Flat-file egress and ingestion.

A saved collection is a directory holding one ``part-NNNNN`` text file per
partition, with one line per series (``key,value0,value1,...``), and a
``timeIndex`` file with the serialized index. Values are written with
``repr`` so every float64, NaN included, reads back identically. Every
line ends with ``\n`` and only ``\n`` separates lines, so keys may hold any
other character, ``\r`` and whitespace included.
"""

from __future__ import annotations

import logging
from collections.abc import Iterator
from pathlib import Path
from typing import TYPE_CHECKING

import numpy as np

from tsgridkit.core.config import DEFAULT_CONFIG, GridConfig
from tsgridkit.core.errors import EContractViolation
from tsgridkit.io.observations import checked_collection
from tsgridkit.runtime.partitioned import PartitionedCollection
from tsgridkit.time.index import from_string

if TYPE_CHECKING:
    from tsgridkit.series.collection import SeriesCollection

logger = logging.getLogger(__name__)

INDEX_FILE = "timeIndex"
PART_PREFIX = "part-"
ENCODING = "utf-8"
# Keys decoded from UTF-16 buffers may hold lone surrogates.
ENCODING_ERRORS = "surrogatepass"


def format_line(key: str, values: np.ndarray) -> str:
    if "," in key or "\n" in key:
        raise EContractViolation(
            "Series keys written to CSV must not contain commas or newlines",
            context={"key": key},
        )
    return ",".join([key, *map(repr, np.asarray(values, dtype=np.float64).tolist())])


def parse_line(line: str) -> tuple[str, np.ndarray]:
    if line.endswith("\n"):
        line = line[:-1]
    key, *tokens = line.split(",")
    try:
        return key, np.array([float(tok) for tok in tokens], dtype=np.float64)
    except ValueError as e:
        raise EContractViolation(
            "Malformed series line", context={"key": key, "error": str(e)}
        ) from e


def save_csv(collection: SeriesCollection, path: str | Path) -> None:
    """Write ``collection`` to the directory ``path`` (created if needed)."""
    out_dir = Path(path)
    out_dir.mkdir(parents=True, exist_ok=True)

    for split, part in enumerate(collection.records.partitions()):
        part_file = out_dir / f"{PART_PREFIX}{split:05d}"
        with part_file.open("w", encoding=ENCODING, errors=ENCODING_ERRORS, newline="") as f:
            for key, values in part:
                f.write(format_line(key, values))
                f.write("\n")

    (out_dir / INDEX_FILE).write_text(collection.index.to_string() + "\n", encoding="utf-8")
    logger.info("Saved %d partition(s) to %s", collection.num_partitions, out_dir)


def load_csv(path: str | Path, config: GridConfig = DEFAULT_CONFIG) -> SeriesCollection:
    """Load a directory written by ``save_csv``. Part files are read lazily, one per partition.

    Raises:
        EContractViolation: If the index file is missing or a line is malformed
    """
    in_dir = Path(path)
    index_file = in_dir / INDEX_FILE
    if not index_file.exists():
        raise EContractViolation(
            f"No {INDEX_FILE} file in {in_dir}",
            context={"path": str(in_dir)},
            fix_hint="Point load_csv at a directory written by save_csv()",
        )
    index = from_string(index_file.read_text(encoding="utf-8"))
    part_files = sorted(in_dir.glob(f"{PART_PREFIX}*"))

    def read_part(split: int) -> Iterator[tuple[str, np.ndarray]]:
        # Binary iteration splits on b"\n" only; text mode would also split on "\r".
        with part_files[split].open("rb") as f:
            for raw in f:
                if not raw.endswith(b"\n"):
                    raise EContractViolation(
                        "Part file ends with an unterminated line",
                        context={"file": part_files[split].name},
                        fix_hint="The file was likely truncated; rewrite it with save_csv()",
                    )
                yield parse_line(raw.decode(ENCODING, ENCODING_ERRORS))

    records = PartitionedCollection(len(part_files), read_part, config)
    return checked_collection(index, records)


__all__ = ["save_csv", "load_csv", "format_line", "parse_line"]
