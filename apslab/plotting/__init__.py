"""Plotting API for simulated APS grids."""

from apslab.plotting.aps import (
    METRICS,
    combined_outcomes,
    plot_combined_sens_spec,
    plot_dataset_distribution,
    plot_metric_curve,
    plot_result_suite,
)
from apslab.plotting.styles import (
    BUCKET_COLORS,
    COMBINED_COLORS,
    DEFAULT_PLOT_STYLE,
    PlotStyle,
    apply_plot_style,
    plot_style_dict,
)
from apslab.plotting.utils import sanitize_label, save_figure

__all__ = [
    "BUCKET_COLORS",
    "COMBINED_COLORS",
    "DEFAULT_PLOT_STYLE",
    "METRICS",
    "PlotStyle",
    "apply_plot_style",
    "combined_outcomes",
    "plot_combined_sens_spec",
    "plot_dataset_distribution",
    "plot_metric_curve",
    "plot_result_suite",
    "plot_style_dict",
    "sanitize_label",
    "save_figure",
]
