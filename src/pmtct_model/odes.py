# odes.py
"""
ODE system for the HIV / mother-to-child transmission model.

dy/dt = f(t, y, params)

The system is linear and time-autonomous:

    dy/dt = A @ y + b

with b carrying only the constant recruitment of susceptible women (f).
`rhs` evaluates the equations elementwise; `linear_system` builds (A, b)
for the closed-form solver.
"""

from __future__ import annotations
from typing import Tuple

import numpy as np

from .parameters import ModelParameters
from .state_vector import N_STATES, StateIx


def rhs(t: float, y: np.ndarray, params: ModelParameters) -> np.ndarray:
    """
    Full right-hand side of the ODE system dy/dt = f(t, y, params).

    Args:
        t: Time (days). Included for solver compatibility; not used.
        y: State vector [N_STATES]
        params: ModelParameters instance

    Returns:
        dydt: Derivative vector [N_STATES]
    """
    f = params.f
    p = params.p
    delta = params.delta
    alpha = params.alpha
    D = params.D
    x = params.x
    beta = params.beta
    Dt = params.Dt
    mu = params.mu
    r = params.r
    d = params.d

    WS = y[StateIx.WS]
    WNI = y[StateIx.WNI]
    WI = y[StateIx.WI]
    P = y[StateIx.P]
    PWI = y[StateIx.PWI]
    CIP = y[StateIx.CIP]

    dydt = np.zeros(N_STATES, dtype=float)

    # Recruitment is a fixed inflow, not scaled by WS
    dydt[StateIx.WS] = f - delta * WS

    # Women split by HIV status
    dydt[StateIx.WNI] = (1.0 - p) * delta * WS - (alpha + (1.0 - alpha) * D + x) * WNI
    dydt[StateIx.WI] = p * delta * WS - ((1.0 - beta) * Dt + beta + x) * WI

    # Uninfected women by pregnancy status
    dydt[StateIx.NP] = alpha * WNI
    dydt[StateIx.P] = x * WNI - D * P

    # Infected women by pregnancy status
    dydt[StateIx.NPWI] = beta * WI
    dydt[StateIx.PWI] = x * WI - (mu + Dt) * PWI

    # Children of infected mothers
    dydt[StateIx.CNIP] = (1.0 - mu) * PWI
    dydt[StateIx.CIP] = mu * PWI - (r + d) * CIP
    dydt[StateIx.VS] = r * CIP
    dydt[StateIx.D] = d * CIP

    return dydt


def linear_system(params: ModelParameters) -> Tuple[np.ndarray, np.ndarray]:
    """
    Matrix form of `rhs`: returns (A, b) with rhs(t, y, params) == A @ y + b.

    A[i, j] is the rate at which compartment j feeds (or drains) compartment i.
    """
    A = np.zeros((N_STATES, N_STATES), dtype=float)
    b = np.zeros(N_STATES, dtype=float)

    ix = StateIx
    p = params

    b[ix.WS] = p.f
    A[ix.WS, ix.WS] = -p.delta

    A[ix.WNI, ix.WS] = (1.0 - p.p) * p.delta
    A[ix.WNI, ix.WNI] = -(p.alpha + (1.0 - p.alpha) * p.D + p.x)

    A[ix.WI, ix.WS] = p.p * p.delta
    A[ix.WI, ix.WI] = -((1.0 - p.beta) * p.Dt + p.beta + p.x)

    A[ix.NP, ix.WNI] = p.alpha

    A[ix.P, ix.WNI] = p.x
    A[ix.P, ix.P] = -p.D

    A[ix.NPWI, ix.WI] = p.beta

    A[ix.PWI, ix.WI] = p.x
    A[ix.PWI, ix.PWI] = -(p.mu + p.Dt)

    A[ix.CNIP, ix.PWI] = 1.0 - p.mu

    A[ix.CIP, ix.PWI] = p.mu
    A[ix.CIP, ix.CIP] = -(p.r + p.d)

    A[ix.VS, ix.CIP] = p.r
    A[ix.D, ix.CIP] = p.d

    return A, b
