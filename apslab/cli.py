"""Command-line interface for APS simulations."""

from __future__ import annotations

import argparse
from pathlib import Path
from typing import Iterable

import pandas as pd

from apslab.config import config_from_mapping, load_json_config
from apslab.core.engine import run_simulation
from apslab.core.errors import ConfigurationError
from apslab.core.types import SimulationConfig, SimulationResult
from apslab.io import (
    ensure_dir,
    list_columns,
    load_column,
    setup_logger,
    write_json,
    write_result_outputs,
)
from apslab.limits import aps_limits, limits_frame

METRICS: tuple[str, ...] = ("agreement", "sensitivity", "specificity")


def _limits_table(result: SimulationResult, config: SimulationConfig) -> pd.DataFrame:
    with_bias = config.model.has_bias
    frames = []
    scopes: list[tuple[str, int | None]] = [("overall", None)]
    scopes.extend((key, level) for level, key in enumerate(result.level_keys()))
    for metric in METRICS:
        for scope, level in scopes:
            df = limits_frame(
                aps_limits(result, config.agreement_thresholds, metric=metric, level=level),
                with_bias=with_bias,
            )
            df.insert(0, "scope", scope)
            df.insert(0, "metric", metric)
            frames.append(df)
    return pd.concat(frames, ignore_index=True)


def run_main(argv: Iterable[str] | None = None) -> int:
    """Run one APS simulation from a JSON config.

    Args:
        argv: Command-line arguments (if None, uses sys.argv).

    Returns:
        Exit code (0 for success, 2 for unreadable inputs or an invalid configuration).
    """
    parser = argparse.ArgumentParser(description="Run an APS Monte Carlo simulation")
    parser.add_argument("--config", required=True, help="Path to .json simulation config")
    parser.add_argument("--data", default=None, help="Path to .csv/.xlsx dataset")
    parser.add_argument("--column", default=None, help="Column holding the measurand values")
    parser.add_argument("--outdir", default="apslab_out", help="Output directory")
    parser.add_argument("--n-jobs", type=int, default=None, help="Worker threads (default: CPU count)")
    parser.add_argument(
        "--progress-step", type=float, default=5.0, help="Minimum percent between progress logs"
    )
    parser.add_argument("--no-plots", action="store_true", help="Skip figure output")
    args = parser.parse_args(list(argv) if argv is not None else None)

    outdir = Path(args.outdir)
    ensure_dir(outdir)
    logger = setup_logger(outdir / "logs" / "run.log", "apslab")

    if args.data is not None and args.column is None:
        parser.error("--column is required with --data")

    try:
        data = load_column(args.data, args.column) if args.data is not None else None
        mapping = load_json_config(args.config)
    except (OSError, KeyError, ValueError) as exc:
        logger.error("Could not load inputs: %s", exc)
        return 2

    try:
        config = config_from_mapping(mapping, data=data)
        result = run_simulation(
            config,
            progress=lambda pct: logger.info("progress %.1f%%", pct),
            n_jobs=args.n_jobs,
            min_progress_step=args.progress_step,
        )
    except ConfigurationError as exc:
        logger.error("Invalid configuration: %s", exc)
        return 2

    json_path, csv_path = write_result_outputs(result, outdir)
    logger.info("Wrote %s and %s", json_path, csv_path)

    table = _limits_table(result, config)
    table.to_csv(outdir / "aps_limits.csv", index=False)
    print(table[table["scope"] == "overall"].to_string(index=False))

    if not args.no_plots:
        import matplotlib

        matplotlib.use("Agg")
        from apslab.plotting.aps import plot_result_suite
        from apslab.plotting.styles import plot_style_dict

        paths = plot_result_suite(
            result, config.agreement_thresholds, outdir / "figures", data=config.data
        )
        write_json(outdir / "figures" / "plot_style.json", plot_style_dict())
        logger.info("Wrote %d figures to %s", len(paths), outdir / "figures")
    return 0


def columns_main(argv: Iterable[str] | None = None) -> int:
    """Print the column names of a tabular dataset."""
    parser = argparse.ArgumentParser(description="List dataset columns")
    parser.add_argument("path", help="Path to .csv/.xlsx dataset")
    args = parser.parse_args(list(argv) if argv is not None else None)
    for name in list_columns(args.path):
        print(name)
    return 0


def main(argv: Iterable[str] | None = None) -> int:
    """Main CLI entry point.

    Args:
        argv: Command-line arguments (if None, uses sys.argv).

    Returns:
        Exit code.
    """
    parser = argparse.ArgumentParser(description="apslab CLI")
    sub = parser.add_subparsers(dest="command", required=True)

    sub.add_parser("run", help="Run a simulation", add_help=False)
    sub.add_parser("columns", help="List dataset columns", add_help=False)

    args, remainder = parser.parse_known_args(list(argv) if argv is not None else None)
    if args.command == "run":
        return run_main(remainder)
    if args.command == "columns":
        return columns_main(remainder)
    return 1


if __name__ == "__main__":
    raise SystemExit(main())
