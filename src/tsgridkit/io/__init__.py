"""Construction adapters and codecs.

Builds series collections from rows, local frames, raw buffers and flat
files, and writes them back out.
"""

from tsgridkit.io.buffers import decode_series, encode_series, from_buffers
from tsgridkit.io.csv import load_csv, save_csv
from tsgridkit.io.local import from_frames, from_series
from tsgridkit.io.observations import from_observations, from_vectors

__all__ = [
    "from_observations",
    "from_vectors",
    "from_series",
    "from_frames",
    "from_buffers",
    "encode_series",
    "decode_series",
    "save_csv",
    "load_csv",
]
