from __future__ import annotations

import csv
import io
from typing import Dict, Optional
import numpy as np

from modem_lab.utils import SimResult

CSV_HEADER = ["time", "baseband", "carrier", "modulated"]


def to_csv(result: Optional[SimResult]) -> str:
    """One row per sample: time, baseband, carrier, modulated."""
    if result is None:
        raise ValueError("No simulation to export; generate a run first.")

    buf = io.StringIO()
    writer = csv.writer(buf, lineterminator="\n")
    writer.writerow(CSV_HEADER)
    cols = (result.t, result.traces.baseband, result.traces.carrier, result.traces.modulated)
    for row in zip(*cols):
        # repr(float) is the shortest string that parses back to the same value
        writer.writerow([repr(float(v)) for v in row])
    return buf.getvalue()


def from_csv(text: str) -> Dict[str, np.ndarray]:
    reader = csv.reader(io.StringIO(text))
    header = next(reader, None)
    if header is None or [h.strip() for h in header] != CSV_HEADER:
        raise ValueError(f"Expected CSV header {','.join(CSV_HEADER)!r}.")

    rows = []
    for lineno, row in enumerate(reader, start=2):
        if not row:
            continue
        if len(row) != len(CSV_HEADER):
            raise ValueError(f"Line {lineno}: expected {len(CSV_HEADER)} fields, got {len(row)}.")
        rows.append([float(v) for v in row])

    data = np.array(rows, dtype=float).reshape(-1, len(CSV_HEADER))
    return {name: data[:, k] for k, name in enumerate(CSV_HEADER)}
