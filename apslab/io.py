"""Dataset loading, result writing, and logging helpers."""

from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Any

import numpy as np
import pandas as pd

from apslab.core.types import SimulationResult

TABULAR_SUFFIXES: tuple[str, ...] = (".csv", ".xlsx", ".xls")
LOG_FORMAT = "%(asctime)s %(levelname)-7s %(name)s: %(message)s"


def ensure_dir(path: str | Path) -> Path:
    """Create an output directory (with parents) and return it."""
    p = Path(path)
    p.mkdir(parents=True, exist_ok=True)
    return p


def _json_default(obj: Any) -> Any:
    # numpy scalars and arrays can reach result metadata.
    if isinstance(obj, np.generic):
        return obj.item()
    if isinstance(obj, np.ndarray):
        return obj.tolist()
    if isinstance(obj, Path):
        return str(obj)
    raise TypeError(f"{type(obj).__name__} is not JSON serializable")


def write_json(path: str | Path, payload: dict[str, Any]) -> Path:
    """Write `payload` as indented UTF-8 JSON, keeping symbols such as "≤" readable."""
    out = Path(path)
    ensure_dir(out.parent)
    with out.open("w", encoding="utf-8") as f:
        json.dump(payload, f, indent=2, ensure_ascii=False, default=_json_default)
    return out


def setup_logger(
    log_path: Path, logger_name: str = "apslab", level: int = logging.INFO
) -> logging.Logger:
    """Send one run's log records to `log_path` and to stderr.

    Handlers left by an earlier call are closed and replaced.
    """
    ensure_dir(log_path.parent)
    logger = logging.getLogger(logger_name)
    logger.setLevel(level)
    for handler in list(logger.handlers):
        logger.removeHandler(handler)
        handler.close()
    formatter = logging.Formatter(LOG_FORMAT)
    file_handler = logging.FileHandler(log_path, mode="w", encoding="utf-8")
    for handler in (file_handler, logging.StreamHandler()):
        handler.setFormatter(formatter)
        logger.addHandler(handler)
    return logger


def _read_table(path: str | Path) -> pd.DataFrame:
    table_path = Path(path)
    if not table_path.exists():
        raise FileNotFoundError(f"Data file not found: {table_path}")
    suffix = table_path.suffix.lower()
    if suffix == ".csv":
        return pd.read_csv(table_path)
    if suffix in (".xlsx", ".xls"):
        # First worksheet only.
        return pd.read_excel(table_path, sheet_name=0)
    raise ValueError(
        f"Unsupported data format '{suffix}' for '{table_path}'. "
        f"Use one of: {', '.join(TABULAR_SUFFIXES)}."
    )


def list_columns(path: str | Path) -> list[str]:
    """Header names of a .csv/.xlsx file."""
    return [str(c) for c in _read_table(path).columns]


def load_column(path: str | Path, column: str) -> np.ndarray:
    """Numeric values of one column, in file order.

    Cells that do not parse as numbers (blanks, comments) are skipped.
    """
    df = _read_table(path)
    names = [str(c) for c in df.columns]
    if str(column) not in names:
        raise KeyError(f"Column '{column}' not found in '{path}'. Available: {', '.join(names)}")
    series = df.iloc[:, names.index(str(column))]
    values = pd.to_numeric(series, errors="coerce").dropna()
    values = values[np.isfinite(values.to_numpy(dtype=float))]
    if values.empty:
        raise ValueError(f"Column '{column}' in '{path}' holds no numeric values.")
    return values.to_numpy(dtype=float)


def write_result_outputs(result: SimulationResult, outdir: str | Path) -> tuple[Path, Path]:
    """Write `result.json` and `points.csv` under `outdir`."""
    out = Path(outdir)
    ensure_dir(out)
    json_path = out / "result.json"
    csv_path = out / "points.csv"
    write_json(json_path, result.to_dict())
    result.to_frame().to_csv(csv_path, index=False)
    return json_path, csv_path
