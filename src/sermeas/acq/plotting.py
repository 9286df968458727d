"""Plotting helper for acquired voltage series."""
from __future__ import annotations

from pathlib import Path
from typing import Any

import numpy as np

from .processing import VoltageSeries


def plot_series(series: VoltageSeries, out_path: Path, *, title: str | None = None) -> Path:
    plt = _require_matplotlib()
    out_path.parent.mkdir(parents=True, exist_ok=True)
    fig, ax = plt.subplots(figsize=(10, 4))
    ax.plot(np.arange(len(series)), series.values, color="tab:blue", linewidth=0.8)
    ax.set_xlabel("Sample")
    ax.set_ylabel("Voltage [V]")
    if title:
        ax.set_title(title)
    ax.grid(True, alpha=0.3)
    fig.tight_layout()
    fig.savefig(out_path, dpi=150)
    plt.close(fig)
    return out_path


def _require_matplotlib() -> Any:
    home_cache = Path.home() / ".cache" / "fontconfig"
    try:
        home_cache.mkdir(parents=True, exist_ok=True)
    except OSError as exc:
        raise RuntimeError("matplotlib cannot write font cache in this environment") from exc

    try:
        import matplotlib
        matplotlib.use("Agg", force=True)
        import matplotlib.pyplot as plt  # type: ignore
    except ImportError as exc:
        raise RuntimeError("matplotlib is required for plotting (pip install .[plot])") from exc
    return plt
