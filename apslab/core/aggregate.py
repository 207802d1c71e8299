"""Conversion of accumulated trial counts into metrics and result objects."""

from __future__ import annotations

from typing import TYPE_CHECKING, Any, Sequence

import numpy as np

from apslab.core.classify import DecisionLimitSet, category_labels
from apslab.core.types import (
    AgreementThresholds,
    GridPoint,
    SimulationConfig,
    SimulationPoint,
    SimulationResult,
)

if TYPE_CHECKING:
    from apslab.core.engine import TrialCounts

BELOW_MIN = "below-min"
MIN = "min"
DESIRABLE = "desirable"
OPTIMAL = "optimal"
BUCKET_ORDER: tuple[str, ...] = (BELOW_MIN, MIN, DESIRABLE, OPTIMAL)


def safe_ratio(num: float, den: float) -> float:
    """`num / den`, defined as 0.0 for an empty denominator."""
    if den <= 0:
        return 0.0
    return float(num) / float(den)


def metric_bucket(value: float, thresholds: AgreementThresholds) -> str:
    pct = round(float(value) * 100.0, 9)
    if pct >= thresholds.opt:
        return OPTIMAL
    if pct >= thresholds.des:
        return DESIRABLE
    if pct >= thresholds.min:
        return MIN
    return BELOW_MIN


def bucket_label(bucket: str, thresholds: AgreementThresholds) -> str:
    """Display form of a bucket, e.g. `"≥95%"` or `"<90%"`."""
    if bucket == OPTIMAL:
        return f"≥{thresholds.opt:g}%"
    if bucket == DESIRABLE:
        return f"≥{thresholds.des:g}%"
    if bucket == MIN:
        return f"≥{thresholds.min:g}%"
    if bucket == BELOW_MIN:
        return f"<{thresholds.min:g}%"
    raise KeyError(f"Unknown bucket '{bucket}'.")


def format_limit_names(limits: Sequence[float], decimal_places: int) -> list[str]:
    return [f"{float(x):.{int(decimal_places)}f}" for x in limits]


def summarize_counts(
    point: GridPoint,
    counts: TrialCounts,
    thresholds: AgreementThresholds,
) -> SimulationPoint:
    tp = np.asarray(counts.tp, dtype=np.int64)
    fn = np.asarray(counts.fn, dtype=np.int64)
    tn = np.asarray(counts.tn, dtype=np.int64)
    fp = np.asarray(counts.fp, dtype=np.int64)

    agreement = safe_ratio(counts.matches, counts.comparisons)
    sensitivity = safe_ratio(int(tp.sum()), int(tp.sum() + fn.sum()))
    specificity = safe_ratio(int(tn.sum()), int(tn.sum() + fp.sum()))

    sub_agreement = tuple(
        safe_ratio(int(tp[k] + tn[k]), counts.comparisons) for k in range(tp.size)
    )
    sub_sensitivity = tuple(safe_ratio(int(tp[k]), int(tp[k] + fn[k])) for k in range(tp.size))
    sub_specificity = tuple(safe_ratio(int(tn[k]), int(tn[k] + fp[k])) for k in range(tp.size))

    return SimulationPoint(
        mu=float(point.mu),
        bias=float(point.bias),
        agreement=agreement,
        sensitivity=sensitivity,
        specificity=specificity,
        agreement_cat=metric_bucket(agreement, thresholds),
        sensitivity_cat=metric_bucket(sensitivity, thresholds),
        specificity_cat=metric_bucket(specificity, thresholds),
        sublevel_agreement=sub_agreement,
        sublevel_sensitivity=sub_sensitivity,
        sublevel_specificity=sub_specificity,
    )


def assemble_result(
    config: SimulationConfig,
    grid: Sequence[GridPoint],
    counts: Sequence[TrialCounts],
    metadata: dict[str, Any] | None = None,
) -> SimulationResult:
    """Build the result; `counts[i]` belongs to `grid[i]` and order is kept."""
    if len(grid) != len(counts):
        raise ValueError("grid and counts must have the same length.")
    limit_set = DecisionLimitSet.from_values(config.decision_limits)
    points = tuple(
        summarize_counts(gp, c, config.agreement_thresholds) for gp, c in zip(grid, counts)
    )
    return SimulationResult(
        points=points,
        names=tuple(format_limit_names(limit_set.limits, config.decimal_places)),
        categories=tuple(category_labels(limit_set, config.decimal_places)),
        metadata=dict(metadata or {}),
    )
