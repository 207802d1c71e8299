"""Typed configuration and result containers for APS simulations."""

from __future__ import annotations

from dataclasses import asdict, dataclass, field
from enum import Enum
from typing import Any

import numpy as np
import pandas as pd

from apslab.core.errors import ConfigurationError


class ModelVariant(str, Enum):
    """The four perturbation models: {MU, imprecision+bias} x {rerun, resampling}."""

    MU_ANALYTICAL = "mu-analytical"
    MU_RESAMPLING = "mu-resampling"
    IMP_BIAS_ANALYTICAL = "imp-bias-analytical"
    IMP_BIAS_RESAMPLING = "imp-bias-resampling"

    @property
    def is_resampling(self) -> bool:
        return self in (ModelVariant.MU_RESAMPLING, ModelVariant.IMP_BIAS_RESAMPLING)

    @property
    def has_bias(self) -> bool:
        return self in (ModelVariant.IMP_BIAS_ANALYTICAL, ModelVariant.IMP_BIAS_RESAMPLING)

    @property
    def label(self) -> str:
        return _LONG_LABELS[self]

    @classmethod
    def parse(cls, value: str | ModelVariant) -> ModelVariant:
        """Resolve a short key or one of the long application labels."""
        if isinstance(value, ModelVariant):
            return value
        key = str(value).strip()
        for variant in cls:
            if key == variant.value or key == _LONG_LABELS[variant]:
                return variant
        raise ConfigurationError(f"Unknown simulation model '{value}'.")


_LONG_LABELS = {
    ModelVariant.MU_ANALYTICAL: (
        "Setting APS for measurement uncertainty - Analytical rerun simulation"
    ),
    ModelVariant.MU_RESAMPLING: (
        "Setting APS for measurement uncertainty - Resampling simulation"
    ),
    ModelVariant.IMP_BIAS_ANALYTICAL: (
        "Setting APS for imprecision and bias - Analytical rerun simulation"
    ),
    ModelVariant.IMP_BIAS_RESAMPLING: (
        "Setting APS for imprecision and bias - Resampling simulation"
    ),
}


@dataclass(frozen=True)
class AgreementThresholds:
    """Minimum / desirable / optimal agreement levels, in percent."""

    min: float = 90.0
    des: float = 95.0
    opt: float = 99.0

    def as_levels(self) -> list[tuple[str, float]]:
        return [("Minimum", self.min), ("Desirable", self.des), ("Optimal", self.opt)]


@dataclass(frozen=True)
class SimulationConfig:
    """Immutable input of one simulation run.

    Error magnitudes (`cv_i`, `max_*`, `step_size_*`) are percentages;
    `None` selects the per-variant default.
    """

    model: ModelVariant
    data: tuple[float, ...]
    decision_limits: tuple[float, ...]
    decimal_places: int = 0
    agreement_thresholds: AgreementThresholds = field(default_factory=AgreementThresholds)
    cv_i: float | None = None
    sample_size: int | None = None
    max_mu: float | None = None
    step_size_mu: float | None = None
    max_imprecision: float | None = None
    max_bias: float | None = None
    step_size_imp_bias: float | None = None
    n_trials: int = 10
    seed: int = 1234
    round_to_precision: bool = False


@dataclass(frozen=True)
class GridPoint:
    """One candidate error combination; fractions, not percent."""

    mu: float
    bias: float = 0.0


@dataclass(frozen=True)
class SimulationPoint:
    """Aggregated metrics for one grid point.

    - `agreement`: fraction of trials whose full category matches the truth.
    - `sensitivity`/`specificity`: pooled over all decision limits.
    - `sublevel_*`: one slot per decision limit, that limit as the binary cut.
    """

    mu: float
    bias: float
    agreement: float
    sensitivity: float
    specificity: float
    agreement_cat: str
    sensitivity_cat: str
    specificity_cat: str
    sublevel_agreement: tuple[float, ...]
    sublevel_sensitivity: tuple[float, ...]
    sublevel_specificity: tuple[float, ...]

    def metric(self, name: str, level: int | None = None) -> float:
        if name not in ("agreement", "sensitivity", "specificity"):
            raise KeyError(f"Unknown metric '{name}'.")
        if level is None:
            return float(getattr(self, name))
        return float(getattr(self, f"sublevel_{name}")[int(level)])


@dataclass(frozen=True)
class SimulationResult:
    """Output of `run_simulation`, in grid construction order."""

    points: tuple[SimulationPoint, ...]
    names: tuple[str, ...]
    categories: tuple[str, ...] = ()
    metadata: dict[str, Any] = field(default_factory=dict)

    def to_dict(self) -> dict[str, Any]:
        return {
            "mu_data": [asdict(p) for p in self.points],
            "names": list(self.names),
            "categories": list(self.categories),
            "metadata": dict(self.metadata),
        }

    def level_keys(self) -> list[str]:
        """Unique per-limit keys, `cdl<k>:<name>`; names alone may repeat after rounding."""
        return [f"cdl{k + 1}:{name}" for k, name in enumerate(self.names)]

    def to_frame(self) -> pd.DataFrame:
        keys = self.level_keys()
        rows: list[dict[str, Any]] = []
        for p in self.points:
            row: dict[str, Any] = {
                "mu": p.mu,
                "bias": p.bias,
                "agreement": p.agreement,
                "sensitivity": p.sensitivity,
                "specificity": p.specificity,
                "agreement_cat": p.agreement_cat,
                "sensitivity_cat": p.sensitivity_cat,
                "specificity_cat": p.specificity_cat,
            }
            for metric in ("agreement", "sensitivity", "specificity"):
                values = getattr(p, f"sublevel_{metric}")
                for key, value in zip(keys, values):
                    row[f"sublevel_{metric}[{key}]"] = value
            rows.append(row)
        return pd.DataFrame(rows)

    def metric_array(self, name: str, level: int | None = None) -> np.ndarray:
        return np.asarray([p.metric(name, level) for p in self.points], dtype=float)
