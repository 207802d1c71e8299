"""Exception types raised by the simulation core."""

from __future__ import annotations


class ConfigurationError(ValueError):
    """Invalid simulation configuration; raised before any computation."""


class SimulationRuntimeError(RuntimeError):
    """Terminal numeric or resource failure during a sweep."""


class SimulationCancelled(RuntimeError):
    """The sweep was cancelled at a grid-point boundary."""
