# trajectory.py
"""
Output of one integration run: one state vector per requested time point.
"""

from __future__ import annotations
from typing import Union

import numpy as np
import pandas as pd

from .errors import InvalidInput
from .state_vector import COMPARTMENT_NAMES, N_STATES, StateIx


class Trajectory:
    """
    Immutable time series of the 11 compartments.

    Attributes:
        t: Time array [n_time]
        y: State array [n_states, n_time]
    """

    def __init__(self, t: np.ndarray, y: np.ndarray):
        t = np.array(t, dtype=float)
        y = np.array(y, dtype=float)
        if t.ndim != 1 or y.shape != (N_STATES, t.size):
            raise InvalidInput(
                f"Trajectory shapes do not match: t {t.shape}, y {y.shape}"
            )
        t.setflags(write=False)
        y.setflags(write=False)
        self._t = t
        self._y = y

    @property
    def t(self) -> np.ndarray:
        return self._t

    @property
    def y(self) -> np.ndarray:
        return self._y

    @property
    def columns(self) -> tuple:
        return COMPARTMENT_NAMES

    def __len__(self) -> int:
        return self._t.size

    def __getitem__(self, key: Union[str, int, StateIx]) -> np.ndarray:
        if isinstance(key, str):
            if key not in COMPARTMENT_NAMES:
                raise KeyError(key)
            key = StateIx[key]
        return self._y[int(key)]

    def __eq__(self, other) -> bool:
        if not isinstance(other, Trajectory):
            return NotImplemented
        return np.array_equal(self._t, other._t) and np.array_equal(self._y, other._y)

    def __repr__(self) -> str:
        if len(self) == 0:
            return "Trajectory(empty)"
        return f"Trajectory(n_time={len(self)}, t=[{self._t[0]:g}, {self._t[-1]:g}])"

    def final_state(self) -> np.ndarray:
        return self._y[:, -1].copy()

    def state_at(self, time: float) -> np.ndarray:
        """State at one of the output time points (exact match only)."""
        hits = np.flatnonzero(self._t == time)
        if hits.size == 0:
            raise KeyError(time)
        return self._y[:, hits[0]].copy()

    def to_frame(self) -> pd.DataFrame:
        """Rows indexed by time, one column per compartment (a fresh copy)."""
        df = pd.DataFrame(self._y.T.copy(), columns=list(COMPARTMENT_NAMES))
        df.index = pd.Index(self._t.copy(), name="time")
        return df

    def to_csv(self, path) -> None:
        self.to_frame().to_csv(path)
