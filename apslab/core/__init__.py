"""Simulation core: grid, perturbation, classification, trials, aggregation."""

from apslab.core.aggregate import assemble_result, bucket_label, metric_bucket, safe_ratio
from apslab.core.classify import DecisionLimitSet, above_limits, category_index
from apslab.core.engine import TrialCounts, evaluate_grid_point, run_simulation
from apslab.core.errors import (
    ConfigurationError,
    SimulationCancelled,
    SimulationRuntimeError,
)
from apslab.core.grid import build_grid, expected_grid_size, select_samples, validate_config
from apslab.core.perturbation import draw_noise, perturb
from apslab.core.progress import ProgressReporter
from apslab.core.types import (
    AgreementThresholds,
    GridPoint,
    ModelVariant,
    SimulationConfig,
    SimulationPoint,
    SimulationResult,
)

__all__ = [
    "AgreementThresholds",
    "ConfigurationError",
    "DecisionLimitSet",
    "GridPoint",
    "ModelVariant",
    "ProgressReporter",
    "SimulationCancelled",
    "SimulationConfig",
    "SimulationPoint",
    "SimulationResult",
    "SimulationRuntimeError",
    "TrialCounts",
    "above_limits",
    "assemble_result",
    "bucket_label",
    "build_grid",
    "category_index",
    "draw_noise",
    "evaluate_grid_point",
    "expected_grid_size",
    "metric_bucket",
    "perturb",
    "run_simulation",
    "safe_ratio",
    "select_samples",
    "validate_config",
]
