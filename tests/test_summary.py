# tests/test_summary.py
from __future__ import annotations

import numpy as np
import pytest

from pmtct_model.errors import InvalidInput
from pmtct_model.simulation import simulate
from pmtct_model.state_vector import COMPARTMENT_NAMES
from pmtct_model.summary import SUMMARY_STATISTICS, outcome_metrics, summarize


@pytest.fixture(scope="module")
def traj():
    return simulate()


def test_summarize_selected_columns(traj):
    stats = summarize(traj, ["CIP", "VS", "D"])
    assert list(stats.columns) == ["CIP", "VS", "D"]
    assert list(stats.index) == list(SUMMARY_STATISTICS)
    assert stats.loc["min", "D"] == traj["D"].min()
    assert stats.loc["max", "VS"] == traj["VS"].max()
    assert stats.loc["mean", "CIP"] == pytest.approx(traj["CIP"].mean())
    assert stats.loc["50%", "CIP"] == pytest.approx(np.median(traj["CIP"]))


def test_summarize_all_columns_by_default(traj):
    assert list(summarize(traj).columns) == list(COMPARTMENT_NAMES)


def test_summarize_unknown_column(traj):
    with pytest.raises(InvalidInput, match="XX"):
        summarize(traj, ["CIP", "XX"])


def test_outcome_metrics(traj):
    metrics = outcome_metrics(traj)
    assert metrics["t_end"] == 365.0
    assert metrics["child_deaths"] == traj["D"][-1]
    assert metrics["virally_suppressed"] == traj["VS"][-1]
    assert metrics["children_born"] > 0
    # every birth to an infected mother is infected with probability mu
    assert metrics["infected_fraction"] == pytest.approx(0.3, rel=1e-9)
    assert metrics["peak_CIP"] >= traj["CIP"][0]
