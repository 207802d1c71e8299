"""APS-limit lookup over a simulated grid (filter, then take the extremum)."""

from __future__ import annotations

from dataclasses import dataclass

import pandas as pd

from apslab.core.types import AgreementThresholds, SimulationResult

NOT_OBTAINABLE = "NO"
NOT_AVAILABLE = "NA"
# Limits above this magnitude (percent) are reported as not available.
REPORTABLE_MAX_PCT = 33.0


@dataclass(frozen=True)
class ApsLimit:
    """Largest tolerable error (percent) meeting one agreement level.

    All three fields are `None` when no grid point meets the threshold.
    """

    level: str
    threshold: float
    mu: float | None
    positive_bias: float | None
    negative_bias: float | None

    @property
    def obtainable(self) -> bool:
        return self.mu is not None


def aps_limits(
    result: SimulationResult,
    thresholds: AgreementThresholds,
    metric: str = "agreement",
    level: int | None = None,
) -> list[ApsLimit]:
    """One `ApsLimit` per Minimum/Desirable/Optimal level.

    `level` selects a decision-limit slot of the sublevel metrics instead of
    the overall metric.
    """
    values = result.metric_array(metric, level) * 100.0
    out: list[ApsLimit] = []
    for name, threshold in thresholds.as_levels():
        ok = [p for p, v in zip(result.points, values) if v >= threshold]
        if not ok:
            out.append(ApsLimit(name, float(threshold), None, None, None))
            continue
        out.append(
            ApsLimit(
                level=name,
                threshold=float(threshold),
                mu=max(p.mu for p in ok) * 100.0,
                positive_bias=max(p.bias for p in ok) * 100.0,
                negative_bias=min(p.bias for p in ok) * 100.0,
            )
        )
    return out


def format_limit(value: float | None, decimals: int = 1) -> str:
    if value is None:
        return NOT_OBTAINABLE
    if abs(value) > REPORTABLE_MAX_PCT:
        return NOT_AVAILABLE
    return f"{value:.{int(decimals)}f}"


def limits_frame(limits: list[ApsLimit], *, with_bias: bool) -> pd.DataFrame:
    rows = []
    for lim in limits:
        row = {"level": lim.level, "threshold": lim.threshold, "mu": format_limit(lim.mu)}
        if with_bias:
            row["positive_bias"] = format_limit(lim.positive_bias)
            row["negative_bias"] = format_limit(lim.negative_bias)
        rows.append(row)
    return pd.DataFrame(rows)
