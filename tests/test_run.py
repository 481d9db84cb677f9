# tests/test_run.py
from __future__ import annotations
import json

import pandas as pd
import pytest

from pmtct_model.run import load_parameters, main, run_baseline
from pmtct_model.parameters import get_default_parameters


def test_load_parameters_defaults():
    assert load_parameters() == get_default_parameters()


def test_load_parameters_overrides(tmp_path):
    path = tmp_path / "params.json"
    path.write_text(json.dumps({"mu": 0.15, "f": 1}))
    params = load_parameters(str(path))
    assert params.mu == 0.15
    assert params.f == 1.0
    assert params.r == get_default_parameters().r


def test_run_baseline_with_custom_step():
    traj = run_baseline(t_end=10, step=0.05, verbose=False)
    assert len(traj) == 11


def test_main_writes_outputs(tmp_path, capsys):
    csv_path = tmp_path / "out.csv"
    png_path = tmp_path / "out.png"
    assert main(["--t-end", "30", "--csv", str(csv_path), "--plot", str(png_path)]) == 0

    out = capsys.readouterr().out
    assert "[Main] Solving 0..30 days with RK4" in out
    assert "child_deaths" in out
    assert len(pd.read_csv(csv_path)) == 31
    assert png_path.stat().st_size > 0


def test_main_rejects_bad_parameter_file(tmp_path):
    path = tmp_path / "params.json"
    path.write_text(json.dumps({"gamma": 0.1}))
    with pytest.raises(SystemExit) as excinfo:
        main(["--params", str(path), "--quiet"])
    assert excinfo.value.code == 2
