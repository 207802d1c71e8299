"""apslab public API."""

from apslab._version import __version__
from apslab.core.engine import run_simulation
from apslab.core.errors import (
    ConfigurationError,
    SimulationCancelled,
    SimulationRuntimeError,
)
from apslab.core.types import (
    AgreementThresholds,
    ModelVariant,
    SimulationConfig,
    SimulationPoint,
    SimulationResult,
)


def plot_result_suite(*args, **kwargs):
    """Lazy wrapper to avoid importing matplotlib at import time."""
    from apslab.plotting.aps import plot_result_suite as _plot_result_suite

    return _plot_result_suite(*args, **kwargs)


__all__ = [
    "__version__",
    "AgreementThresholds",
    "ConfigurationError",
    "ModelVariant",
    "SimulationCancelled",
    "SimulationConfig",
    "SimulationPoint",
    "SimulationResult",
    "SimulationRuntimeError",
    "plot_result_suite",
    "run_simulation",
]
