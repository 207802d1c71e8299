"""Perturbation models producing simulated results from true values.

All four models share one form::

    simulated = v * (1 + total_cv * z) + v * bias

with `z` a standard-normal deviate per (trial, data point). Analytical rerun
uses `total_cv = mu`; resampling adds the within-subject biological variation
in variance, `total_cv = sqrt(mu**2 + cv_i**2)`. Bias is zero for the
measurement-uncertainty models.
"""

from __future__ import annotations

import math
from typing import Callable

import numpy as np

from apslab.core.types import GridPoint, ModelVariant
from apslab.core.utils import stable_seed

Perturbation = Callable[[np.ndarray, np.ndarray, GridPoint, float | None], np.ndarray]


def draw_noise(n_trials: int, n_samples: int, seed: int) -> np.ndarray:
    """Standard-normal deviates of shape `(n_trials, n_samples)`."""
    rng = np.random.default_rng(stable_seed(int(seed), "noise"))
    return rng.standard_normal((int(n_trials), int(n_samples)))


def combined_cv(mu: float, cv_i: float | None) -> float:
    """Analytical and biological variation added in variance (fractions)."""
    if cv_i is None:
        return float(mu)
    return math.sqrt(float(mu) ** 2 + float(cv_i) ** 2)


def _mu_analytical(values, noise, point, cv_i=None):
    return values * (1.0 + noise * point.mu)


def _mu_resampling(values, noise, point, cv_i=None):
    return values * (1.0 + noise * combined_cv(point.mu, cv_i))


def _imp_bias_analytical(values, noise, point, cv_i=None):
    return values * (1.0 + noise * point.mu) + values * point.bias


def _imp_bias_resampling(values, noise, point, cv_i=None):
    return values * (1.0 + noise * combined_cv(point.mu, cv_i)) + values * point.bias


PERTURBATIONS: dict[ModelVariant, Perturbation] = {
    ModelVariant.MU_ANALYTICAL: _mu_analytical,
    ModelVariant.MU_RESAMPLING: _mu_resampling,
    ModelVariant.IMP_BIAS_ANALYTICAL: _imp_bias_analytical,
    ModelVariant.IMP_BIAS_RESAMPLING: _imp_bias_resampling,
}


def perturb(
    model: ModelVariant,
    values: np.ndarray,
    noise: np.ndarray,
    point: GridPoint,
    cv_i: float | None = None,
) -> np.ndarray:
    """Simulated values for `values` under `model` at `point`.

    `values` broadcasts against `noise`, so a `(n_trials, n)` noise block
    yields one simulated row per trial. `cv_i` is a fraction.
    """
    v = np.asarray(values, dtype=float)
    z = np.asarray(noise, dtype=float)
    if model.is_resampling and cv_i is None:
        raise ValueError(f"Model '{model.value}' requires cv_i.")
    return PERTURBATIONS[model](v, z, point, cv_i)
