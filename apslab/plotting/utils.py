"""File helpers shared by the APS figure factories."""

from __future__ import annotations

import re
from pathlib import Path

import matplotlib.figure
import matplotlib.pyplot as plt

from apslab.plotting.styles import DEFAULT_PLOT_STYLE, PlotStyle

_UNSAFE = re.compile(r"[^0-9A-Za-z]+")


def sanitize_label(label: str, max_len: int = 40, fallback: str = "figure") -> str:
    """File stem for a decision-limit label, e.g. `"cdl1_7.0"` -> `"cdl1_7_0"`."""
    clean = _UNSAFE.sub("_", str(label)).strip("_")
    return (clean or fallback)[:max_len]


def save_figure(
    fig: matplotlib.figure.Figure,
    out_path: Path,
    *,
    style: PlotStyle = DEFAULT_PLOT_STYLE,
    close: bool = True,
) -> Path:
    """Write `fig` as a PNG at the style's dpi on a white background."""
    out_path.parent.mkdir(parents=True, exist_ok=True)
    fig.savefig(out_path, dpi=style.dpi, facecolor="white", bbox_inches="tight", pad_inches=0.05)
    if close:
        plt.close(fig)
    return out_path
