"""Writers for acquisition results."""
from __future__ import annotations

from pathlib import Path

import pandas as pd

from .acq.processing import VoltageSeries
from .acq.runner import MeasurementResult

DEFAULT_NAME = "test"
DAT_SUFFIX = ".dat"


def dat_path(name: str | None = None, directory: Path | None = None) -> Path:
    """Return `<directory>/<name>.dat`, falling back to `test.dat`."""

    stem = (name or "").strip() or DEFAULT_NAME
    if stem.endswith(DAT_SUFFIX):
        stem = stem[: -len(DAT_SUFFIX)]
    return (directory or Path(".")) / f"{stem}{DAT_SUFFIX}"


def write_dat(series: VoltageSeries, path: Path) -> Path:
    """Write one voltage per line in acquisition order."""

    path.parent.mkdir(parents=True, exist_ok=True)
    # floats are written at repr precision
    pd.Series(series.values).to_csv(path, header=False, index=False)
    return path


def write_csv(result: MeasurementResult, path: Path) -> Path:
    path.parent.mkdir(parents=True, exist_ok=True)
    df = result.to_frame()
    df.index.name = "sample"
    df.to_csv(path)
    return path


def format_summary(result: MeasurementResult) -> list[str]:
    lines = [
        f"Time taken: {result.elapsed_s:f}",
        f"SPS: {result.throughput_sps:f}",
    ]
    if result.soft_failures:
        lines.append(f"Unparsed lines (recorded as 0): {result.soft_failures}")
    return lines
