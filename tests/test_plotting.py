# tests/test_plotting.py
from __future__ import annotations

import matplotlib.pyplot as plt
import pytest

from pmtct_model.errors import InvalidInput
from pmtct_model.plotting import plot_children, plot_overview, plot_trajectory, plot_women
from pmtct_model.simulation import default_time_grid, simulate


@pytest.fixture(scope="module")
def traj():
    return simulate(grid=default_time_grid(30))


def test_plot_trajectory_draws_requested_series(traj):
    ax = plot_trajectory(traj, [("CIP", "r-"), ("VS", "b--")], title="Children")
    assert len(ax.get_lines()) == 2
    assert ax.get_title() == "Children"
    plt.close(ax.figure)


def test_plot_trajectory_unknown_column(traj):
    with pytest.raises(InvalidInput):
        plot_trajectory(traj, [("XX", "k-")])


def test_grouped_panels(traj):
    ax_w = plot_women(traj)
    ax_c = plot_children(traj)
    assert len(ax_w.get_lines()) == 7
    assert len(ax_c.get_lines()) == 4
    plt.close("all")


def test_plot_overview(traj):
    fig = plot_overview(traj)
    assert len(fig.axes) == 2
    plt.close(fig)
