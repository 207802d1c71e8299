from __future__ import annotations

import json
from pathlib import Path

import numpy as np
import pandas as pd
import pytest

from apslab.core.engine import run_simulation
from apslab.core.types import ModelVariant, SimulationConfig
from apslab.io import list_columns, load_column, write_result_outputs


def test_load_column_skips_non_numeric_cells(tmp_path: Path):
    csv = tmp_path / "labs.csv"
    csv.write_text("patient,hba1c\na,5.4\nb,x\nc,\nd,6.8\n", encoding="utf-8")
    assert list_columns(csv) == ["patient", "hba1c"]
    assert np.array_equal(load_column(csv, "hba1c"), np.array([5.4, 6.8]))


def test_load_column_from_first_excel_sheet(tmp_path: Path):
    xlsx = tmp_path / "labs.xlsx"
    pd.DataFrame({"glucose": [4.1, 5.5, 9.2]}).to_excel(xlsx, index=False)
    assert list_columns(xlsx) == ["glucose"]
    assert load_column(xlsx, "glucose").tolist() == [4.1, 5.5, 9.2]


def test_load_column_errors(tmp_path: Path):
    csv = tmp_path / "labs.csv"
    csv.write_text("name\nfoo\nbar\n", encoding="utf-8")
    with pytest.raises(KeyError, match="not found"):
        load_column(csv, "glucose")
    with pytest.raises(ValueError, match="no numeric values"):
        load_column(csv, "name")
    with pytest.raises(FileNotFoundError):
        load_column(tmp_path / "missing.csv", "x")

    txt = tmp_path / "labs.txt"
    txt.write_text("1\n2\n", encoding="utf-8")
    with pytest.raises(ValueError, match="Unsupported data format"):
        list_columns(txt)


def test_write_result_outputs(tmp_path: Path):
    cfg = SimulationConfig(
        model=ModelVariant.MU_ANALYTICAL,
        data=(2.0, 4.0, 6.0, 8.0),
        decision_limits=(3.0, 7.0),
        max_mu=1.0,
        step_size_mu=0.5,
    )
    result = run_simulation(cfg, n_jobs=1)
    json_path, csv_path = write_result_outputs(result, tmp_path / "out")

    payload = json.loads(json_path.read_text(encoding="utf-8"))
    assert set(payload) == {"mu_data", "names", "categories", "metadata"}
    assert payload["names"] == ["3", "7"]
    assert payload["categories"] == ["≤3", ">3 and ≤7", ">7"]
    assert len(payload["mu_data"]) == 3
    assert payload["mu_data"][0]["sublevel_agreement"] == [1.0, 1.0]

    frame = pd.read_csv(csv_path)
    assert len(frame) == 3
    assert "sublevel_sensitivity[cdl2:7]" in frame.columns


def test_frame_columns_stay_distinct_when_limit_names_repeat(tmp_path: Path):
    cfg = SimulationConfig(
        model=ModelVariant.MU_ANALYTICAL,
        data=(5.0, 6.0, 6.2, 7.0),
        decision_limits=(5.7, 6.5),
        max_mu=1.0,
        step_size_mu=0.5,
    )
    result = run_simulation(cfg, n_jobs=1)
    assert result.names == ("6", "6")
    assert result.level_keys() == ["cdl1:6", "cdl2:6"]

    frame = result.to_frame()
    cols = [c for c in frame.columns if c.startswith("sublevel_agreement[")]
    assert cols == ["sublevel_agreement[cdl1:6]", "sublevel_agreement[cdl2:6]"]

    _, csv_path = write_result_outputs(result, tmp_path)
    assert len(pd.read_csv(csv_path).columns) == 8 + 3 * 2
