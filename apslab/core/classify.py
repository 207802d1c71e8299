"""Classification of values against a set of clinical decision limits."""

from __future__ import annotations

from dataclasses import dataclass

import numpy as np

from apslab.core.utils import finite_1d


@dataclass(frozen=True)
class DecisionLimitSet:
    """Strictly ascending decision limits.

    `n` limits induce `n + 1` ordered categories and `n` binary cut points.
    A value equal to a limit is at-or-below it.
    """

    limits: tuple[float, ...]

    @classmethod
    def from_values(cls, values) -> DecisionLimitSet:
        arr = finite_1d("decision_limits", values)
        if np.any(np.diff(arr) <= 0.0):
            raise ValueError("Decision limits must be strictly ascending.")
        return cls(limits=tuple(float(v) for v in arr))

    @property
    def n_limits(self) -> int:
        return len(self.limits)

    @property
    def n_categories(self) -> int:
        return len(self.limits) + 1

    def as_array(self) -> np.ndarray:
        return np.asarray(self.limits, dtype=float)


def category_index(values: np.ndarray, limit_set: DecisionLimitSet) -> np.ndarray:
    """Number of limits each value strictly exceeds (0..n_limits)."""
    return np.searchsorted(limit_set.as_array(), np.asarray(values, dtype=float), side="left")


def above_limits(values: np.ndarray, limit_set: DecisionLimitSet) -> np.ndarray:
    """Boolean array with a trailing axis of length `n_limits`: value > limit."""
    v = np.asarray(values, dtype=float)
    return v[..., np.newaxis] > limit_set.as_array()


def category_labels(limit_set: DecisionLimitSet, decimal_places: int = 0) -> list[str]:
    fmt = [f"{x:.{int(decimal_places)}f}" for x in limit_set.limits]
    labels = [f"≤{fmt[0]}"]
    for lo, hi in zip(fmt[:-1], fmt[1:]):
        labels.append(f">{lo} and ≤{hi}")
    labels.append(f">{fmt[-1]}")
    return labels
