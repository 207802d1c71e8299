"""Monte Carlo trial engine: sweep the error grid and count classification outcomes."""

from __future__ import annotations

import logging
import os
import threading
import time
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass

import numpy as np

from apslab._version import __version__
from apslab.core.aggregate import assemble_result
from apslab.core.classify import DecisionLimitSet, above_limits, category_index
from apslab.core.errors import (
    ConfigurationError,
    SimulationCancelled,
    SimulationRuntimeError,
)
from apslab.core.grid import prepare_run, select_samples
from apslab.core.perturbation import draw_noise, perturb
from apslab.core.progress import ProgressReporter, ProgressSink
from apslab.core.types import GridPoint, ModelVariant, SimulationConfig, SimulationResult

logger = logging.getLogger(__name__)

# Upper bound on trials x samples evaluated per vectorised chunk.
CHUNK_ELEMENTS = 1 << 16


@dataclass
class TrialCounts:
    """Per-grid-point accumulator; combine partial counts with `+`."""

    comparisons: int
    matches: int
    tp: np.ndarray
    fn: np.ndarray
    tn: np.ndarray
    fp: np.ndarray

    @classmethod
    def zeros(cls, n_limits: int) -> TrialCounts:
        z = np.zeros(int(n_limits), dtype=np.int64)
        return cls(0, 0, z.copy(), z.copy(), z.copy(), z.copy())

    def __add__(self, other: TrialCounts) -> TrialCounts:
        if self.tp.shape != other.tp.shape:
            raise ValueError("Cannot merge counts over different decision-limit sets.")
        return TrialCounts(
            comparisons=self.comparisons + other.comparisons,
            matches=self.matches + other.matches,
            tp=self.tp + other.tp,
            fn=self.fn + other.fn,
            tn=self.tn + other.tn,
            fp=self.fp + other.fp,
        )


def count_outcomes(
    true_values: np.ndarray,
    simulated: np.ndarray,
    limit_set: DecisionLimitSet,
) -> TrialCounts:
    """Count matches and per-limit confusion cells for one block of trials.

    `simulated` has shape `(n_trials, n)` against `true_values` of shape `(n,)`.
    """
    truth = np.asarray(true_values, dtype=float)
    sim = np.atleast_2d(np.asarray(simulated, dtype=float))
    if sim.shape[-1] != truth.size:
        raise ValueError("simulated and true_values length mismatch.")

    matches = int(np.sum(category_index(sim, limit_set) == category_index(truth, limit_set)))
    pos_true = above_limits(truth, limit_set)[np.newaxis, :, :]
    pos_sim = above_limits(sim, limit_set)
    neg_true = ~pos_true
    neg_sim = ~pos_sim
    return TrialCounts(
        comparisons=int(sim.size),
        matches=matches,
        tp=np.sum(pos_true & pos_sim, axis=(0, 1), dtype=np.int64),
        fn=np.sum(pos_true & neg_sim, axis=(0, 1), dtype=np.int64),
        tn=np.sum(neg_true & neg_sim, axis=(0, 1), dtype=np.int64),
        fp=np.sum(neg_true & pos_sim, axis=(0, 1), dtype=np.int64),
    )


def evaluate_grid_point(
    model: ModelVariant,
    point: GridPoint,
    samples: np.ndarray,
    noise: np.ndarray,
    limit_set: DecisionLimitSet,
    *,
    cv_i: float | None = None,
    round_to: int | None = None,
    chunk_size: int | None = None,
) -> TrialCounts:
    """Run every trial of one grid point over the samples.

    `noise` has shape `(n_trials, n_samples)`; `cv_i` is a fraction.
    """
    values = np.asarray(samples, dtype=float)
    z = np.asarray(noise, dtype=float)
    if z.ndim != 2 or z.shape[1] != values.size:
        raise ValueError("noise must have shape (n_trials, n_samples).")

    n_trials = z.shape[0]
    step = int(chunk_size) if chunk_size else max(1, CHUNK_ELEMENTS // max(1, n_trials))
    total = TrialCounts.zeros(limit_set.n_limits)
    for start in range(0, values.size, step):
        stop = min(values.size, start + step)
        with np.errstate(over="raise"):
            sim = perturb(model, values[start:stop], z[:, start:stop], point, cv_i)
        if round_to is not None:
            sim = np.round(sim, int(round_to))
        total = total + count_outcomes(values[start:stop], sim, limit_set)
    return total


def _resolve_jobs(n_jobs: int | None) -> int:
    if n_jobs is None:
        return max(1, os.cpu_count() or 1)
    if int(n_jobs) != n_jobs or int(n_jobs) < 1:
        raise ConfigurationError(f"n_jobs must be a positive integer, got {n_jobs}.")
    return int(n_jobs)


def run_simulation(
    config: SimulationConfig,
    *,
    progress: ProgressSink | None = None,
    n_jobs: int | None = None,
    cancel_event: threading.Event | None = None,
    chunk_size: int | None = None,
    min_progress_step: float = 0.0,
) -> SimulationResult:
    """Validate `config`, sweep its grid and return the aggregated result.

    Grid points run on a thread pool of `n_jobs` workers (default: CPU count;
    1 runs serially). The noise matrix is drawn once from `config.seed` and
    shared by every grid point, so the result does not depend on `n_jobs`.
    Setting `cancel_event` aborts at the next grid-point boundary with
    `SimulationCancelled`. No partial result is ever returned.
    """
    validated, grid = prepare_run(config)
    jobs = _resolve_jobs(n_jobs)
    limit_set = DecisionLimitSet.from_values(validated.decision_limits)
    cv_frac = None if validated.cv_i is None else validated.cv_i / 100.0
    round_to = validated.decimal_places if validated.round_to_precision else None

    try:
        samples = select_samples(validated)
        noise = draw_noise(validated.n_trials, samples.size, validated.seed)
    except MemoryError as exc:
        raise SimulationRuntimeError(f"Simulation aborted: {exc}") from exc

    logger.info(
        "Simulation start: model=%s grid_points=%d samples=%d trials=%d limits=%s workers=%d",
        validated.model.value,
        len(grid),
        samples.size,
        validated.n_trials,
        list(validated.decision_limits),
        jobs,
    )
    t0 = time.perf_counter()

    def _task(i: int, reporter: ProgressReporter) -> TrialCounts:
        if cancel_event is not None and cancel_event.is_set():
            raise SimulationCancelled(f"Simulation cancelled before grid point {i}.")
        counts = evaluate_grid_point(
            validated.model,
            grid[i],
            samples,
            noise,
            limit_set,
            cv_i=cv_frac,
            round_to=round_to,
            chunk_size=chunk_size,
        )
        logger.debug("grid point %d mu=%.4f bias=%.4f done", i, grid[i].mu, grid[i].bias)
        reporter.advance()
        return counts

    try:
        with ProgressReporter(progress, len(grid), min_step=min_progress_step) as reporter:
            if jobs == 1:
                counts = [_task(i, reporter) for i in range(len(grid))]
            else:
                with ThreadPoolExecutor(max_workers=jobs, thread_name_prefix="apslab") as ex:
                    futures = [ex.submit(_task, i, reporter) for i in range(len(grid))]
                    try:
                        counts = [f.result() for f in futures]
                    except BaseException:
                        for f in futures:
                            f.cancel()
                        raise
    except (FloatingPointError, OverflowError, MemoryError) as exc:
        raise SimulationRuntimeError(f"Simulation aborted: {exc}") from exc

    elapsed = time.perf_counter() - t0
    logger.info("Simulation finished: %d grid points in %.2fs", len(grid), elapsed)

    th = validated.agreement_thresholds
    metadata = {
        "model": validated.model.value,
        "n_grid_points": len(grid),
        "n_samples": int(samples.size),
        "n_trials": int(validated.n_trials),
        "seed": int(validated.seed),
        "cv_i": validated.cv_i,
        "decision_limits": list(validated.decision_limits),
        "agreement_thresholds": {"min": th.min, "des": th.des, "opt": th.opt},
        "round_to_precision": bool(validated.round_to_precision),
        "apslab_version": __version__,
    }
    return assemble_result(validated, grid, counts, metadata)
