# state_vector.py
# single source of truth for the order of compartments in the ODE vector y

from __future__ import annotations
from enum import IntEnum
from typing import Mapping, Optional, Sequence, Union
import numpy as np

from .errors import InvalidInput


class StateIx(IntEnum):
    # Women
    WS = 0     # Susceptible women
    WNI = 1    # HIV-uninfected women
    WI = 2     # HIV-infected women

    # HIV-uninfected women by pregnancy status
    NP = 3     # Not pregnant
    P = 4      # Pregnant

    # HIV-infected women by pregnancy status
    NPWI = 5   # Not pregnant
    PWI = 6    # Pregnant

    # Children born during pregnancy of infected women
    CNIP = 7   # HIV-uninfected
    CIP = 8    # HIV-infected
    VS = 9     # Virally suppressed

    # Cumulative child deaths
    D = 10


N_STATES = max(StateIx) + 1  # assumes enum values are 0..N-1

COMPARTMENT_NAMES = tuple(ix.name for ix in StateIx)

WOMEN_COMPARTMENTS = ("WS", "WNI", "WI", "NP", "P", "NPWI", "PWI")
CHILD_COMPARTMENTS = ("CNIP", "CIP", "VS", "D")

DEFAULT_INITIAL_STATE = {
    "WS": 10000.0,
    "WNI": 9000.0,
    "WI": 1000.0,
    "NP": 4500.0,
    "P": 4500.0,
    "NPWI": 300.0,
    "PWI": 700.0,
    "CNIP": 490.0,
    "CIP": 210.0,
    "VS": 189.0,
    "D": 21.0,
}

StateLike = Union[Sequence[float], np.ndarray, Mapping[str, float]]


def as_state_vector(values: StateLike) -> np.ndarray:
    """
    Coerce a sequence (in StateIx order) or a name -> value mapping to a
    float64 state vector, checking arity, finiteness and sign.
    """
    if isinstance(values, Mapping):
        missing = [name for name in COMPARTMENT_NAMES if name not in values]
        if missing:
            raise InvalidInput(f"Missing compartments: {', '.join(missing)}")
        unknown = sorted(set(values) - set(COMPARTMENT_NAMES))
        if unknown:
            raise InvalidInput(f"Unknown compartments: {', '.join(unknown)}")
        values = [values[name] for name in COMPARTMENT_NAMES]

    try:
        y = np.array(values, dtype=float)
    except (TypeError, ValueError) as e:
        raise InvalidInput(f"Initial state is not numeric: {values!r}") from e

    if y.shape != (N_STATES,):
        raise InvalidInput(f"Initial state must have {N_STATES} entries, got shape {y.shape}")
    if not np.all(np.isfinite(y)):
        raise InvalidInput("Initial state contains non-finite values")
    if np.any(y < 0):
        bad = [COMPARTMENT_NAMES[i] for i in np.flatnonzero(y < 0)]
        raise InvalidInput(f"Initial state has negative compartments: {', '.join(bad)}")
    return y


def get_initial_state(values: Optional[StateLike] = None) -> np.ndarray:
    """
    Initial condition as an array; defaults to DEFAULT_INITIAL_STATE.
    A partial mapping overrides only the compartments it names.
    """
    if values is None:
        return as_state_vector(DEFAULT_INITIAL_STATE)
    if isinstance(values, Mapping):
        unknown = sorted(set(values) - set(COMPARTMENT_NAMES))
        if unknown:
            raise InvalidInput(f"Unknown compartments: {', '.join(unknown)}")
        return as_state_vector({**DEFAULT_INITIAL_STATE, **values})
    return as_state_vector(values)
