# summary.py

from __future__ import annotations
from typing import Dict, Optional, Sequence

import numpy as np
import pandas as pd

from .errors import InvalidInput
from .state_vector import COMPARTMENT_NAMES, StateIx
from .trajectory import Trajectory

SUMMARY_STATISTICS = ("min", "25%", "50%", "75%", "mean", "max")


def summarize(
    trajectory: Trajectory,
    columns: Optional[Sequence[str]] = None,
) -> pd.DataFrame:
    """
    Descriptive statistics over all rows of the trajectory.

    Returns a DataFrame with rows min / quartiles / mean / max and one
    column per requested compartment (all compartments if columns is None).
    """
    if columns is None:
        columns = list(COMPARTMENT_NAMES)
    else:
        columns = list(columns)
        unknown = [c for c in columns if c not in COMPARTMENT_NAMES]
        if unknown:
            raise InvalidInput(f"Unknown compartments: {', '.join(unknown)}")
        if not columns:
            raise InvalidInput("No columns requested")

    df = trajectory.to_frame()[columns]
    return df.describe().loc[list(SUMMARY_STATISTICS)]


def outcome_metrics(trajectory: Trajectory) -> Dict[str, float]:
    """
    Headline numbers at the end of the horizon.

    children_born counts births to infected mothers over the run
    (CNIP + CIP + VS + D growth); infected_fraction is the share of those
    that were HIV-infected.
    """
    t = trajectory.t
    y0 = trajectory.y[:, 0]
    y_end = trajectory.y[:, -1]

    ix = StateIx
    born_uninfected = y_end[ix.CNIP] - y0[ix.CNIP]
    born_infected = (
        (y_end[ix.CIP] + y_end[ix.VS] + y_end[ix.D])
        - (y0[ix.CIP] + y0[ix.VS] + y0[ix.D])
    )
    children_born = born_uninfected + born_infected
    infected_fraction = born_infected / children_born if children_born > 0 else np.nan

    cip = trajectory[ix.CIP]
    return dict(
        t_end=float(t[-1]),
        virally_suppressed=float(y_end[ix.VS]),
        child_deaths=float(y_end[ix.D]),
        children_born=float(children_born),
        infected_fraction=float(infected_fraction),
        peak_CIP=float(cip.max()),
        t_peak_CIP=float(t[int(np.argmax(cip))]),
    )
