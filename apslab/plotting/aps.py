"""Figures for simulated APS grids, bound to `SimulationResult` objects."""

from __future__ import annotations

from pathlib import Path
from typing import Sequence

import matplotlib.pyplot as plt
import numpy as np

from apslab.core.aggregate import BUCKET_ORDER, bucket_label, metric_bucket
from apslab.core.types import AgreementThresholds, ModelVariant, SimulationResult
from apslab.plotting.styles import (
    BUCKET_COLORS,
    COMBINED_COLORS,
    COMBINED_ORDER,
    DEFAULT_PLOT_STYLE,
    PlotStyle,
    apply_plot_style,
)
from apslab.plotting.utils import sanitize_label, save_figure

METRICS: tuple[str, ...] = ("agreement", "sensitivity", "specificity")


def _has_bias(result: SimulationResult) -> bool:
    model = result.metadata.get("model")
    if model is not None:
        return ModelVariant.parse(model).has_bias
    return any(p.bias != 0.0 for p in result.points)


def _series_title(result: SimulationResult, metric: str, level: int | None) -> str:
    if level is None:
        return f"Overall {metric}"
    return f"{metric.capitalize()} at decision limit {result.names[int(level)]}"


def plot_dataset_distribution(
    data: Sequence[float],
    decision_limits: Sequence[float],
    *,
    bins: int = 40,
    title: str | None = None,
    ax: plt.Axes | None = None,
    style: PlotStyle = DEFAULT_PLOT_STYLE,
) -> tuple[plt.Figure, plt.Axes]:
    """Histogram of the measurand values with the decision limits marked."""
    values = np.asarray(data, dtype=float).ravel()
    if values.size == 0:
        raise ValueError("data must be non-empty.")
    if ax is None:
        fig, ax = plt.subplots(figsize=style.figsize_distribution)
    else:
        fig = ax.figure

    ax.hist(values, bins=int(bins), color=style.hist_color, edgecolor="black", linewidth=0.4)
    for limit in decision_limits:
        ax.axvline(float(limit), color=style.limit_color, linestyle="--", linewidth=1.2)
    ax.set_xlabel("Measurand value")
    ax.set_ylabel("Count")
    ax.set_title(title or f"Dataset distribution (n={values.size})")
    fig.tight_layout()
    return fig, ax


def plot_metric_curve(
    result: SimulationResult,
    metric: str = "agreement",
    *,
    level: int | None = None,
    thresholds: AgreementThresholds | None = None,
    ax: plt.Axes | None = None,
    style: PlotStyle = DEFAULT_PLOT_STYLE,
) -> tuple[plt.Figure, plt.Axes]:
    """Plot one metric over the grid.

    Measurement-uncertainty grids draw metric (%) against mu (%); imprecision
    and bias grids draw a bias x imprecision map coloured by agreement bucket.
    """
    if metric not in METRICS:
        raise KeyError(f"Unknown metric '{metric}'.")
    th = thresholds or AgreementThresholds()
    values = result.metric_array(metric, level)
    mu_pct = np.asarray([p.mu for p in result.points], dtype=float) * 100.0

    if ax is None:
        figsize = style.figsize_surface if _has_bias(result) else style.figsize_curve
        fig, ax = plt.subplots(figsize=figsize)
    else:
        fig = ax.figure

    if _has_bias(result):
        bias_pct = np.asarray([p.bias for p in result.points], dtype=float) * 100.0
        buckets = np.asarray([metric_bucket(v, th) for v in values])
        for bucket in BUCKET_ORDER:
            mask = buckets == bucket
            if not mask.any():
                continue
            ax.scatter(
                bias_pct[mask],
                mu_pct[mask],
                s=style.marker_size,
                marker="s",
                color=BUCKET_COLORS[bucket],
                label=bucket_label(bucket, th),
            )
        ax.set_xlabel("Bias (%)")
        ax.set_ylabel("Imprecision (%)")
        ax.legend(title=metric.capitalize(), loc="upper right", frameon=False)
    else:
        ax.plot(values * 100.0, mu_pct, marker="o", markersize=2.5, lw=1.2, color=style.line_color)
        for _, threshold in th.as_levels():
            ax.axvline(threshold, color="#6B7280", linestyle=":", linewidth=0.9)
        ax.set_xlim(0.0, 105.0)
        ax.set_xlabel(f"{metric.capitalize()} (%)")
        ax.set_ylabel("APS for measurement uncertainty (%)")

    ax.set_title(_series_title(result, metric, level))
    fig.tight_layout()
    return fig, ax


def combined_outcomes(result: SimulationResult, level: int, threshold: float) -> np.ndarray:
    """Label each grid point by which of sensitivity/specificity reach `threshold` (%)."""
    sens = np.round(result.metric_array("sensitivity", level) * 100.0, 9) >= threshold
    spec = np.round(result.metric_array("specificity", level) * 100.0, 9) >= threshold
    outcomes = np.full(sens.shape, "neither", dtype=object)
    outcomes[spec] = "specificity"
    outcomes[sens] = "sensitivity"
    outcomes[sens & spec] = "both"
    return outcomes


def plot_combined_sens_spec(
    result: SimulationResult,
    level: int,
    *,
    thresholds: AgreementThresholds | None = None,
    ax: plt.Axes | None = None,
    style: PlotStyle = DEFAULT_PLOT_STYLE,
) -> tuple[plt.Figure, plt.Axes]:
    """Sensitivity and specificity at one decision limit in a single figure.

    Measurement-uncertainty grids overlay both curves; imprecision and bias
    grids colour each point by which metric meets the minimum agreement level.
    """
    th = thresholds or AgreementThresholds()
    name = result.names[int(level)]
    mu_pct = np.asarray([p.mu for p in result.points], dtype=float) * 100.0

    if ax is None:
        figsize = style.figsize_surface if _has_bias(result) else style.figsize_curve
        fig, ax = plt.subplots(figsize=figsize)
    else:
        fig = ax.figure

    if _has_bias(result):
        bias_pct = np.asarray([p.bias for p in result.points], dtype=float) * 100.0
        outcomes = combined_outcomes(result, level, th.min)
        for outcome in COMBINED_ORDER:
            mask = outcomes == outcome
            if not mask.any():
                continue
            ax.scatter(
                bias_pct[mask],
                mu_pct[mask],
                s=style.marker_size,
                marker="s",
                color=COMBINED_COLORS[outcome],
                edgecolors="black",
                linewidths=0.3,
                label=f"≥{th.min:g}% ({outcome})",
            )
        ax.set_xlabel("Bias (%)")
        ax.set_ylabel("Imprecision (%)")
        ax.legend(loc="upper right")
    else:
        for metric, color in (
            ("sensitivity", style.sensitivity_color),
            ("specificity", style.specificity_color),
        ):
            values = result.metric_array(metric, level) * 100.0
            ax.plot(
                values,
                mu_pct,
                marker="o",
                markersize=2.5,
                lw=1.2,
                color=color,
                label=metric.capitalize(),
            )
        ax.axvline(th.min, color="#6B7280", linestyle=":", linewidth=0.9)
        ax.set_xlim(0.0, 105.0)
        ax.set_xlabel("Metric (%)")
        ax.set_ylabel("APS for measurement uncertainty (%)")
        ax.legend(loc="lower left")

    ax.set_title(f"Sensitivity & specificity at decision limit {name}")
    fig.tight_layout()
    return fig, ax


def plot_result_suite(
    result: SimulationResult,
    thresholds: AgreementThresholds,
    outdir: str | Path,
    *,
    data: Sequence[float] | None = None,
    style: PlotStyle = DEFAULT_PLOT_STYLE,
) -> list[Path]:
    """Write overall and per-decision-limit figures; return the written paths."""
    out = Path(outdir)
    written: list[Path] = []
    apply_plot_style(style)

    if data is not None:
        limits = result.metadata.get("decision_limits", [])
        fig, _ = plot_dataset_distribution(data, limits, style=style)
        path = out / "distribution.png"
        save_figure(fig, path, style=style)
        written.append(path)

    for metric in METRICS:
        fig, _ = plot_metric_curve(result, metric, thresholds=thresholds, style=style)
        path = out / f"overall_{metric}.png"
        save_figure(fig, path, style=style)
        written.append(path)

    for level, name in enumerate(result.names):
        stem = sanitize_label(f"cdl{level + 1}_{name}")
        for metric in METRICS:
            fig, _ = plot_metric_curve(
                result, metric, level=level, thresholds=thresholds, style=style
            )
            path = out / "sublevel" / f"{stem}_{metric}.png"
            save_figure(fig, path, style=style)
            written.append(path)
        fig, _ = plot_combined_sens_spec(result, level, thresholds=thresholds, style=style)
        path = out / "sublevel" / f"{stem}_combined.png"
        save_figure(fig, path, style=style)
        written.append(path)
    return written
