"""Shared plotting style settings for deterministic figure outputs."""

from __future__ import annotations

from dataclasses import asdict, dataclass
from typing import Any

import matplotlib
import matplotlib.pyplot as plt
import numpy as np

from apslab.core.aggregate import BELOW_MIN, DESIRABLE, MIN, OPTIMAL

# Grey marks results below the minimum agreement level.
BUCKET_COLORS: dict[str, str] = {
    BELOW_MIN: "#9CA3AF",
    MIN: "#DC2626",
    DESIRABLE: "#16A34A",
    OPTIMAL: "#2563EB",
}

# Per-point outcome of a sensitivity and specificity check at one decision limit.
COMBINED_ORDER: tuple[str, ...] = ("both", "sensitivity", "specificity", "neither")
COMBINED_COLORS: dict[str, str] = {
    "both": "#F4D03F",
    "sensitivity": "#76C7C0",
    "specificity": "#AED6F1",
    "neither": "#D7DBDD",
}


@dataclass(frozen=True)
class PlotStyle:
    """Figure sizes, colours and fonts for APS result figures."""

    dpi: int = 200
    figsize_curve: tuple[float, float] = (6.5, 5.0)
    figsize_surface: tuple[float, float] = (7.0, 5.5)
    figsize_distribution: tuple[float, float] = (7.0, 4.2)
    line_color: str = "#3B82F6"
    limit_color: str = "#B91C1C"
    hist_color: str = "#93C5FD"
    sensitivity_color: str = "#0D9488"
    specificity_color: str = "#7C3AED"
    marker_size: float = 14.0
    legend_fontsize: int = 8
    axis_label_fontsize: int = 10
    title_fontsize: int = 11


DEFAULT_PLOT_STYLE = PlotStyle()


def apply_plot_style(style: PlotStyle = DEFAULT_PLOT_STYLE) -> None:
    """Set the rcParams shared by every APS figure of a run."""
    plt.rcParams.update(
        {
            "figure.dpi": style.dpi,
            "savefig.dpi": style.dpi,
            "font.family": "DejaVu Sans",
            "axes.titlesize": style.title_fontsize,
            "axes.labelsize": style.axis_label_fontsize,
            "axes.spines.top": False,
            "axes.spines.right": False,
            "legend.fontsize": style.legend_fontsize,
            "legend.frameon": False,
        }
    )


def plot_style_dict(style: PlotStyle = DEFAULT_PLOT_STYLE) -> dict[str, Any]:
    """Style fields, bucket colours and library versions, saved next to the figures."""
    d = asdict(style)
    d["bucket_colors"] = dict(BUCKET_COLORS)
    d["matplotlib_version"] = str(matplotlib.__version__)
    d["numpy_version"] = str(np.__version__)
    return d
