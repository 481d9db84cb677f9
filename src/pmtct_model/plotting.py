# src/pmtct_model/plotting.py

from __future__ import annotations
from typing import Optional, Sequence, Tuple

import matplotlib.pyplot as plt

from .errors import InvalidInput
from .state_vector import COMPARTMENT_NAMES
from .trajectory import Trajectory

COMPARTMENT_LABELS = {
    "WS": "Susceptible women",
    "WNI": "HIV-uninfected women",
    "WI": "HIV-infected women",
    "NP": "Not pregnant (uninfected)",
    "P": "Pregnant (uninfected)",
    "NPWI": "Not pregnant (infected)",
    "PWI": "Pregnant (infected)",
    "CNIP": "HIV-uninfected children",
    "CIP": "HIV-infected children",
    "VS": "Virally suppressed children",
    "D": "Child deaths (cumulative)",
}

WOMEN_SERIES = [
    ("WS", "b-"),
    ("WNI", "g-"),
    ("WI", "r-"),
    ("NP", "g--"),
    ("P", "g:"),
    ("NPWI", "r--"),
    ("PWI", "r:"),
]

CHILDREN_SERIES = [
    ("CNIP", "g-"),
    ("CIP", "r-"),
    ("VS", "b--"),
    ("D", "k:"),
]


def plot_trajectory(
    trajectory: Trajectory,
    series: Sequence[Tuple[str, str]],
    ax: Optional[plt.Axes] = None,
    title: Optional[str] = None,
) -> plt.Axes:
    """Line chart of (compartment, matplotlib format string) pairs."""
    unknown = [name for name, _ in series if name not in COMPARTMENT_NAMES]
    if unknown:
        raise InvalidInput(f"Unknown compartments: {', '.join(unknown)}")

    if ax is None:
        fig, ax = plt.subplots(figsize=(6, 4))

    for name, style in series:
        ax.plot(trajectory.t, trajectory[name], style, label=COMPARTMENT_LABELS[name])
    ax.set_xlabel("Time [days]")
    ax.set_ylabel("Population")
    if title:
        ax.set_title(title)
    ax.grid(True)
    ax.legend(fontsize="small")
    return ax


# Women
def plot_women(
    trajectory: Trajectory,
    ax: Optional[plt.Axes] = None,
) -> plt.Axes:
    return plot_trajectory(trajectory, WOMEN_SERIES, ax=ax, title="Women")


# Children of infected mothers
def plot_children(
    trajectory: Trajectory,
    ax: Optional[plt.Axes] = None,
) -> plt.Axes:
    return plot_trajectory(trajectory, CHILDREN_SERIES, ax=ax, title="Children")


def plot_overview(trajectory: Trajectory) -> plt.Figure:
    fig, (ax_w, ax_c) = plt.subplots(1, 2, figsize=(12, 4))
    plot_women(trajectory, ax=ax_w)
    plot_children(trajectory, ax=ax_c)
    fig.tight_layout()
    return fig
