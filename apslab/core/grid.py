"""Configuration validation and error-parameter grid construction."""

from __future__ import annotations

import logging
import math
from dataclasses import replace

import numpy as np

from apslab.core.errors import ConfigurationError
from apslab.core.types import AgreementThresholds, GridPoint, ModelVariant, SimulationConfig
from apslab.core.utils import stable_seed

logger = logging.getLogger(__name__)

MAX_DECISION_LIMITS = 7

DEFAULT_MAX_MU = 33.1
DEFAULT_STEP_SIZE_MU = 0.1
DEFAULT_MAX_IMPRECISION = 33.3
DEFAULT_MAX_BIAS = 35.0
DEFAULT_STEP_SIZE_IMP_BIAS = 1.0

MU_CAP = 33.3
IMPRECISION_CAP = 33.3
BIAS_CAP = 100.0

# Guards floor(max / step) against representation error, e.g. 0.3 / 0.1.
_STEP_EPS = 1e-9

# Ceiling on n_trials x n_samples; the shared noise matrix holds one float64 per cell.
MAX_TRIAL_CELLS = 50_000_000


def _as_float(name: str, value) -> float:
    if isinstance(value, bool):
        raise ConfigurationError(f"{name} must be a number, got {value!r}.")
    try:
        return float(value)
    except (TypeError, ValueError) as exc:
        raise ConfigurationError(f"{name} must be a number, got {value!r}.") from exc


def _as_int(name: str, value, minimum: int) -> int:
    v = _as_float(name, value)
    if not math.isfinite(v) or v != int(v) or int(v) < minimum:
        raise ConfigurationError(f"{name} must be an integer >= {minimum}, got {value!r}.")
    return int(v)


def _check_override(name: str, value: float | None, cap: float | None = None) -> None:
    if value is None:
        return
    v = _as_float(name, value)
    if not math.isfinite(v) or v <= 0.0:
        raise ConfigurationError(f"{name} must be a positive number, got {value}.")
    if cap is not None and v > cap:
        raise ConfigurationError(f"{name}={v}% exceeds the hard cap of {cap}%.")


def validate_config(config: SimulationConfig) -> SimulationConfig:
    """Validate `config` and return a normalized copy with defaults filled in.

    Raises `ConfigurationError` describing the first failed check.
    """
    model = ModelVariant.parse(config.model)

    try:
        data = np.asarray(config.data, dtype=float).ravel()
    except (TypeError, ValueError) as exc:
        raise ConfigurationError(f"Dataset must hold numbers only: {exc}") from exc
    if data.size == 0:
        raise ConfigurationError("Dataset is empty.")
    if not np.isfinite(data).all():
        raise ConfigurationError("Dataset contains NaN or infinite values.")

    try:
        limits = np.asarray(config.decision_limits, dtype=float).ravel()
    except (TypeError, ValueError) as exc:
        raise ConfigurationError(f"Decision limits must be numbers: {exc}") from exc
    if limits.size < 1 or limits.size > MAX_DECISION_LIMITS:
        raise ConfigurationError(
            f"Between 1 and {MAX_DECISION_LIMITS} decision limits are required, got {limits.size}."
        )
    if not np.isfinite(limits).all():
        raise ConfigurationError("Decision limits must be finite.")
    if np.any(np.diff(limits) <= 0.0):
        raise ConfigurationError(
            f"Decision limits must be strictly ascending, got {limits.tolist()}."
        )

    raw_th = config.agreement_thresholds
    levels = {}
    for name in ("min", "des", "opt"):
        value = _as_float(f"agreement_thresholds.{name}", getattr(raw_th, name))
        if not (0.0 <= value <= 100.0):
            raise ConfigurationError(f"Agreement threshold '{name}'={value} outside [0, 100].")
        levels[name] = value
    th = AgreementThresholds(**levels)
    if not (th.min <= th.des <= th.opt):
        raise ConfigurationError(
            f"Agreement thresholds must satisfy min <= des <= opt, got "
            f"{th.min}/{th.des}/{th.opt}."
        )

    sample_size = config.sample_size
    if sample_size is not None:
        sample_size = _as_int("sample_size", sample_size, 1)
        if sample_size > data.size:
            raise ConfigurationError(
                f"sample_size must be an integer in [1, {data.size}], got {sample_size}."
            )

    cv_i = config.cv_i
    if model.is_resampling:
        if cv_i is None:
            raise ConfigurationError(
                f"Model '{model.value}' requires a biological-variation coefficient (cv_i)."
            )
        cv_i = _as_float("cv_i", cv_i)
        if not math.isfinite(cv_i) or cv_i <= 0.0:
            raise ConfigurationError(f"cv_i must be > 0, got {cv_i}.")
    elif cv_i is not None:
        logger.info("cv_i=%s ignored for analytical-rerun model '%s'.", cv_i, model.value)
        cv_i = None

    _check_override("max_mu", config.max_mu, MU_CAP)
    _check_override("step_size_mu", config.step_size_mu)
    _check_override("max_imprecision", config.max_imprecision, IMPRECISION_CAP)
    _check_override("max_bias", config.max_bias, BIAS_CAP)
    _check_override("step_size_imp_bias", config.step_size_imp_bias)

    decimal_places = _as_int("decimal_places", config.decimal_places, 0)
    n_trials = _as_int("n_trials", config.n_trials, 1)
    n_samples = sample_size if sample_size is not None else data.size
    if n_trials * n_samples > MAX_TRIAL_CELLS:
        raise ConfigurationError(
            f"n_trials x samples = {n_trials * n_samples} exceeds the limit of {MAX_TRIAL_CELLS}; "
            "lower n_trials or sample_size."
        )

    return replace(
        config,
        model=model,
        agreement_thresholds=th,
        data=tuple(float(v) for v in data),
        decision_limits=tuple(float(v) for v in limits),
        decimal_places=decimal_places,
        cv_i=cv_i,
        sample_size=sample_size,
        max_mu=float(config.max_mu if config.max_mu is not None else DEFAULT_MAX_MU),
        step_size_mu=float(
            config.step_size_mu if config.step_size_mu is not None else DEFAULT_STEP_SIZE_MU
        ),
        max_imprecision=float(
            config.max_imprecision
            if config.max_imprecision is not None
            else DEFAULT_MAX_IMPRECISION
        ),
        max_bias=float(config.max_bias if config.max_bias is not None else DEFAULT_MAX_BIAS),
        step_size_imp_bias=float(
            config.step_size_imp_bias
            if config.step_size_imp_bias is not None
            else DEFAULT_STEP_SIZE_IMP_BIAS
        ),
        n_trials=n_trials,
        seed=_as_int("seed", config.seed, 0),
    )


def _n_steps(max_pct: float, step_pct: float) -> int:
    return int(math.floor(float(max_pct) / float(step_pct) + _STEP_EPS))


def _axis(n_from: int, n_to: int, step_pct: float) -> np.ndarray:
    idx = np.arange(n_from, n_to + 1, dtype=float)
    return np.round(idx * float(step_pct) / 100.0, 12)


def grid_axes(config: SimulationConfig) -> tuple[np.ndarray, np.ndarray]:
    """Return `(mu_axis, bias_axis)` as fractions for a validated config."""
    if config.model.has_bias:
        n_imp = _n_steps(config.max_imprecision, config.step_size_imp_bias)
        n_bias = _n_steps(config.max_bias, config.step_size_imp_bias)
        return (
            _axis(0, n_imp, config.step_size_imp_bias),
            _axis(-n_bias, n_bias, config.step_size_imp_bias),
        )
    n_mu = _n_steps(config.max_mu, config.step_size_mu)
    return _axis(0, n_mu, config.step_size_mu), np.zeros(1, dtype=float)


def expected_grid_size(config: SimulationConfig) -> int:
    mu_axis, bias_axis = grid_axes(config)
    return int(mu_axis.size * bias_axis.size)


def build_grid(config: SimulationConfig) -> list[GridPoint]:
    """Row-major grid: imprecision outer, signed bias inner."""
    mu_axis, bias_axis = grid_axes(config)
    return [GridPoint(mu=float(m), bias=float(b)) for m in mu_axis for b in bias_axis]


def select_samples(config: SimulationConfig) -> np.ndarray:
    """Dataset values used by every grid point of the run.

    A configured `sample_size` draws a seeded subset once; dataset order is kept.
    """
    data = np.asarray(config.data, dtype=float)
    if config.sample_size is None or config.sample_size >= data.size:
        return data
    rng = np.random.default_rng(stable_seed(config.seed, "subsample"))
    idx = np.sort(rng.choice(data.size, size=int(config.sample_size), replace=False))
    return data[idx]


def prepare_run(config: SimulationConfig) -> tuple[SimulationConfig, list[GridPoint]]:
    validated = validate_config(config)
    return validated, build_grid(validated)
