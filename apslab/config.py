"""Configuration loading utilities for APS simulations."""

from __future__ import annotations

import json
from pathlib import Path
from typing import Any, Iterable, Mapping, Sequence

from apslab.core.errors import ConfigurationError
from apslab.core.types import AgreementThresholds, ModelVariant, SimulationConfig

_OPTIONAL_FLOATS: tuple[str, ...] = (
    "cv_i",
    "max_mu",
    "step_size_mu",
    "max_imprecision",
    "max_bias",
    "step_size_imp_bias",
)
KNOWN_KEYS: frozenset[str] = frozenset(
    {
        "model",
        "cdls",
        "decision_limits",
        "decimal_places",
        "agreement_thresholds",
        "sample_size",
        "n_trials",
        "seed",
        "round_to_precision",
        "data",
        "dataset",
        *_OPTIONAL_FLOATS,
    }
)


def load_json_config(path: str | Path) -> dict[str, Any]:
    """Read the JSON object holding one run's simulation settings.

    Key mapping and type checks happen in `config_from_mapping`.
    """
    config_path = Path(path)
    if not config_path.is_file():
        raise FileNotFoundError(f"Simulation config not found: {config_path}")
    if config_path.suffix.lower() != ".json":
        raise ValueError(f"Simulation configs must be .json files, got '{config_path.name}'.")

    text = config_path.read_text(encoding="utf-8")
    try:
        settings = json.loads(text)
    except json.JSONDecodeError as exc:
        raise ValueError(
            f"Config '{config_path}' is not valid JSON (line {exc.lineno}, column {exc.colno}): "
            f"{exc.msg}"
        ) from exc

    if not isinstance(settings, dict):
        raise ValueError(
            f"Config '{config_path}' must hold an object of simulation settings, "
            f"not a JSON {type(settings).__name__}."
        )
    return settings


def _number(key: str, value: Any) -> float:
    if isinstance(value, bool):
        raise ConfigurationError(f"'{key}' must be a number, got {value!r}.")
    try:
        return float(value)
    except (TypeError, ValueError) as exc:
        raise ConfigurationError(f"'{key}' must be a number, got {value!r}.") from exc


def _numbers(key: str, values: Any) -> tuple[float, ...]:
    if isinstance(values, (str, bytes, Mapping)) or not isinstance(values, Iterable):
        raise ConfigurationError(f"'{key}' must be a list of numbers, got {values!r}.")
    return tuple(_number(key, v) for v in values)


def _thresholds(raw: Any) -> AgreementThresholds:
    if raw is None:
        return AgreementThresholds()
    if not isinstance(raw, Mapping):
        raise ConfigurationError("agreement_thresholds must be an object with min/des/opt.")
    unknown = set(raw) - {"min", "des", "opt"}
    if unknown:
        raise ConfigurationError(f"Unknown agreement_thresholds keys: {sorted(unknown)}.")
    defaults = AgreementThresholds()
    return AgreementThresholds(
        min=_number("agreement_thresholds.min", raw.get("min", defaults.min)),
        des=_number("agreement_thresholds.des", raw.get("des", defaults.des)),
        opt=_number("agreement_thresholds.opt", raw.get("opt", defaults.opt)),
    )


def _resolve_data(mapping: Mapping[str, Any], data: Sequence[float] | None) -> tuple[float, ...]:
    if data is not None:
        return _numbers("data", data)
    if "data" in mapping:
        return _numbers("data", mapping["data"])
    source = mapping.get("dataset")
    if isinstance(source, Mapping) and "path" in source and "column" in source:
        from apslab.io import load_column

        try:
            values = load_column(source["path"], source["column"])
        except (OSError, KeyError, ValueError) as exc:
            raise ConfigurationError(f"'dataset' could not be loaded: {exc}") from exc
        return _numbers("dataset", values)
    raise ConfigurationError(
        "No dataset given: pass data, an inline 'data' list, or 'dataset': {'path', 'column'}."
    )


def config_from_mapping(
    mapping: Mapping[str, Any],
    data: Sequence[float] | None = None,
) -> SimulationConfig:
    """Build a `SimulationConfig` from JSON-style keys.

    `data` overrides any dataset named in the mapping. Values of the wrong
    type raise `ConfigurationError` naming the key; range checks are left to
    `validate_config`.
    """
    unknown = set(mapping) - KNOWN_KEYS
    if unknown:
        raise ConfigurationError(f"Unknown config keys: {sorted(unknown)}.")
    if "model" not in mapping:
        raise ConfigurationError("Config is missing 'model'.")
    if "cdls" in mapping and "decision_limits" in mapping:
        raise ConfigurationError("Give either 'cdls' or 'decision_limits', not both.")
    limits_key = "decision_limits" if "decision_limits" in mapping else "cdls"
    limits = mapping.get(limits_key)
    if limits is None:
        raise ConfigurationError("Config is missing 'decision_limits'.")

    optional = {
        key: (None if mapping.get(key) is None else _number(key, mapping[key]))
        for key in _OPTIONAL_FLOATS
    }
    seed = mapping.get("seed", 1234)
    if isinstance(seed, bool) or not isinstance(seed, int):
        raise ConfigurationError(f"'seed' must be an integer, got {seed!r}.")
    return SimulationConfig(
        model=ModelVariant.parse(mapping["model"]),
        data=_resolve_data(mapping, data),
        decision_limits=_numbers(limits_key, limits),
        decimal_places=mapping.get("decimal_places", 0),
        agreement_thresholds=_thresholds(mapping.get("agreement_thresholds")),
        sample_size=mapping.get("sample_size"),
        n_trials=mapping.get("n_trials", 10),
        seed=seed,
        round_to_precision=bool(mapping.get("round_to_precision", False)),
        **optional,
    )
