# simulation.py
"""
Integration driver for the PMTCT model.

integrate(model, initial_state, params, grid) -> Trajectory

Three methods are available:
- "RK4":  classical fixed-step Runge-Kutta; every grid interval is split
          into equal sub-steps no longer than `step`, so output lands on
          the grid exactly and repeated runs are bit-identical.
- "RK45": adaptive Dormand-Prince via scipy.integrate.solve_ivp.
- "expm": closed form for the linear system, exp(M * dt) on the
          augmented matrix [[A, b], [0, 0]]. Only valid for `rhs`.
"""

from __future__ import annotations
from dataclasses import dataclass
from typing import Callable, Optional, Sequence
import math
import time
import warnings

import numpy as np
from scipy.integrate import solve_ivp
from scipy.linalg import expm

from .errors import InvalidInput, NumericalInstability
from .odes import linear_system, rhs
from .parameters import ModelParameters, get_default_parameters, validate_parameters
from .state_vector import COMPARTMENT_NAMES, N_STATES, StateLike, as_state_vector, get_initial_state
from .trajectory import Trajectory

ModelFn = Callable[[float, np.ndarray, ModelParameters], np.ndarray]

SOLVER_METHODS = ("RK4", "RK45", "expm")


@dataclass(frozen=True)
class SolverSettings:
    method: str = "RK4"
    step: float = 0.1 # (day) RK4 sub-step
    rtol: float = 1e-6 # RK45 relative tolerance
    atol: float = 1e-8 # RK45 absolute tolerance
    max_step: Optional[float] = None # RK45 maximum step (None = automatic)


def get_solver_settings(method: str = "RK4") -> SolverSettings:
    """
    Recommended settings per method. All rates in the default parameter set
    are <= 1/day, so a 0.1 day RK4 step is well inside the stability region.
    """
    if method == "RK4":
        return SolverSettings(method="RK4", step=0.1)
    elif method == "RK45":
        return SolverSettings(method="RK45", rtol=1e-8, atol=1e-8, max_step=1.0)
    elif method == "expm":
        return SolverSettings(method="expm")
    raise InvalidInput(f"Unknown solver method {method!r}; expected one of {SOLVER_METHODS}")


def default_time_grid(t_end: float = 365.0, step: float = 1.0) -> np.ndarray:
    """Output grid 0, step, ..., up to and including t_end (never past it)."""
    if step <= 0 or t_end < 0:
        raise InvalidInput(f"Invalid grid: t_end={t_end}, step={step}")
    n = math.floor(t_end / step + 1e-9)
    return np.linspace(0.0, n * step, n + 1)


def _check_grid(grid: Sequence[float]) -> np.ndarray:
    try:
        t_eval = np.array(grid, dtype=float)
    except (TypeError, ValueError) as e:
        raise InvalidInput(f"Time grid is not numeric: {grid!r}") from e

    if t_eval.ndim != 1:
        raise InvalidInput(f"Time grid must be one-dimensional, got shape {t_eval.shape}")
    if t_eval.size == 0:
        raise InvalidInput("Time grid is empty")
    if not np.all(np.isfinite(t_eval)):
        raise InvalidInput("Time grid contains non-finite values")
    if np.any(np.diff(t_eval) <= 0):
        raise InvalidInput("Time grid must be strictly increasing")
    return t_eval


def _check_settings(settings: SolverSettings) -> None:
    if settings.method not in SOLVER_METHODS:
        raise InvalidInput(f"Unknown solver method {settings.method!r}; expected one of {SOLVER_METHODS}")
    if settings.method == "RK4" and not (settings.step > 0 and math.isfinite(settings.step)):
        raise InvalidInput(f"RK4 step must be positive and finite, got {settings.step}")
    if settings.method == "RK45":
        if settings.rtol <= 0 or settings.atol <= 0:
            raise InvalidInput(f"Tolerances must be positive: rtol={settings.rtol}, atol={settings.atol}")
        if settings.max_step is not None and settings.max_step <= 0:
            raise InvalidInput(f"max_step must be positive, got {settings.max_step}")


# --------------------------------------------------------------------
# Fixed-step RK4
# --------------------------------------------------------------------
def _rk4_step(fun, t: float, y: np.ndarray, h: float) -> np.ndarray:
    k1 = fun(t, y)
    k2 = fun(t + 0.5 * h, y + 0.5 * h * k1)
    k3 = fun(t + 0.5 * h, y + 0.5 * h * k2)
    k4 = fun(t + h, y + h * k3)
    return y + (h / 6.0) * (k1 + 2.0 * k2 + 2.0 * k3 + k4)


def _integrate_rk4(fun, y0: np.ndarray, t_eval: np.ndarray, step: float) -> np.ndarray:
    y_out = np.empty((N_STATES, t_eval.size), dtype=float)
    y_out[:, 0] = y0

    y = y0.copy()
    for i in range(1, t_eval.size):
        t_start = t_eval[i - 1]
        t_stop = t_eval[i]
        n_sub = max(1, math.ceil((t_stop - t_start) / step - 1e-9))
        h = (t_stop - t_start) / n_sub

        for k in range(n_sub):
            t = t_start + k * h
            y = _rk4_step(fun, t, y, h)
            if not np.all(np.isfinite(y)):
                t_bad = t + h
                raise NumericalInstability(f"Non-finite state at t={t_bad:g}", time=t_bad)

        y_out[:, i] = y
    return y_out


# --------------------------------------------------------------------
# Adaptive RK45
# --------------------------------------------------------------------
def _integrate_rk45(fun, y0: np.ndarray, t_eval: np.ndarray, settings: SolverSettings) -> np.ndarray:
    # Without t_eval, sol.t holds every accepted step and sol.t[-1] is the
    # last time the solver reached.
    solve_kwargs = {
        "fun": fun,
        "t_span": (t_eval[0], t_eval[-1]),
        "y0": y0,
        "method": "RK45",
        "dense_output": True,
        "rtol": settings.rtol,
        "atol": settings.atol,
    }
    if settings.max_step is not None:
        solve_kwargs["max_step"] = settings.max_step

    sol = solve_ivp(**solve_kwargs)

    if not sol.success:
        t_fail = float(sol.t[-1]) if sol.t.size else float(t_eval[0])
        raise NumericalInstability(f"ODE solver failed near t={t_fail:g}: {sol.message}", time=t_fail)

    bad = ~np.all(np.isfinite(sol.y), axis=0)
    if bad.any():
        t_bad = float(sol.t[np.argmax(bad)])
        raise NumericalInstability(f"Non-finite state at t={t_bad:g}", time=t_bad)

    y_out = np.array(sol.sol(t_eval), dtype=float).reshape(N_STATES, t_eval.size)
    bad = ~np.all(np.isfinite(y_out), axis=0)
    if bad.any():
        t_bad = float(t_eval[np.argmax(bad)])
        raise NumericalInstability(f"Non-finite state at t={t_bad:g}", time=t_bad)

    # grid point 0 is the initial state unchanged
    y_out[:, 0] = y0
    return y_out


# --------------------------------------------------------------------
# Closed form (matrix exponential)
# --------------------------------------------------------------------
def _integrate_expm(y0: np.ndarray, params: ModelParameters, t_eval: np.ndarray) -> np.ndarray:
    A, b = linear_system(params)

    # Augmented system z = [y, 1], dz/dt = M z
    M = np.zeros((N_STATES + 1, N_STATES + 1), dtype=float)
    M[:N_STATES, :N_STATES] = A
    M[:N_STATES, N_STATES] = b

    y_out = np.empty((N_STATES, t_eval.size), dtype=float)
    y_out[:, 0] = y0

    z = np.append(y0, 1.0)
    propagators = {}
    for i in range(1, t_eval.size):
        dt = t_eval[i] - t_eval[i - 1]
        if dt not in propagators:
            propagators[dt] = expm(M * dt)
        z = propagators[dt] @ z
        if not np.all(np.isfinite(z)):
            raise NumericalInstability(f"Non-finite state at t={t_eval[i]:g}", time=float(t_eval[i]))
        y_out[:, i] = z[:N_STATES]
    return y_out


def _warn_if_negative(t_eval: np.ndarray, y: np.ndarray) -> None:
    negative = np.any(y < 0, axis=0)
    if negative.any():
        j = int(np.argmax(negative))
        names = [COMPARTMENT_NAMES[i] for i in np.flatnonzero(y[:, j] < 0)]
        warnings.warn(
            f"Negative compartment values from t={t_eval[j]:g} ({', '.join(names)}); values are not clamped",
            RuntimeWarning,
            stacklevel=3,
        )


def integrate(
    model: ModelFn,
    initial_state: StateLike,
    params: ModelParameters,
    grid: Sequence[float],
    settings: Optional[SolverSettings] = None,
    verbose: bool = False,
) -> Trajectory:
    """
    Advance initial_state over grid using model(t, y, params) as the right-hand side.

    Args:
        model: Rate function returning dy/dt [N_STATES]
        initial_state: Sequence in StateIx order or name -> value mapping
        params: ModelParameters instance
        grid: Strictly increasing output times (days); grid[0] is the start time
        settings: SolverSettings (default: fixed-step RK4, step 0.1)
        verbose: Print method and timing

    Returns:
        Trajectory with one state per grid point; the first is initial_state.

    Raises:
        InvalidInput: bad grid, parameters, initial state or settings
        NumericalInstability: a step produced NaN/Inf or the solver failed
    """
    if settings is None:
        settings = SolverSettings()

    # All validation happens before the first step
    validate_parameters(params)
    y0 = as_state_vector(initial_state)
    t_eval = _check_grid(grid)
    _check_settings(settings)
    if settings.method == "expm" and model is not rhs:
        raise InvalidInput("The 'expm' method is only valid for the built-in linear model `rhs`")

    def fun(t, y):
        return np.asarray(model(t, y, params), dtype=float)

    probe = fun(t_eval[0], y0.copy())
    if probe.shape != y0.shape:
        raise InvalidInput(f"Model returned shape {probe.shape}, expected {y0.shape}")

    start_time = time.time()

    if t_eval.size == 1:
        y_out = y0.reshape(N_STATES, 1).copy()
    elif settings.method == "RK4":
        y_out = _integrate_rk4(fun, y0, t_eval, settings.step)
    elif settings.method == "RK45":
        y_out = _integrate_rk45(fun, y0, t_eval, settings)
    else:
        y_out = _integrate_expm(y0, params, t_eval)

    if verbose:
        elapsed = time.time() - start_time
        print(
            f"[Sim] method={settings.method}, n_time={t_eval.size}, "
            f"t=[{t_eval[0]:g}, {t_eval[-1]:g}] in {elapsed:.3f}s"
        )

    _warn_if_negative(t_eval, y_out)
    return Trajectory(t_eval, y_out)


def simulate(
    params: Optional[ModelParameters] = None,
    initial_state: Optional[StateLike] = None,
    grid: Optional[Sequence[float]] = None,
    settings: Optional[SolverSettings] = None,
    verbose: bool = False,
) -> Trajectory:
    """
    Run the built-in model with defaults filled in: default parameters,
    the documented initial state and a 0..365 day grid.
    """
    if params is None:
        params = get_default_parameters()
    if grid is None:
        grid = default_time_grid()
    return integrate(
        rhs,
        get_initial_state(initial_state),
        params,
        grid,
        settings=settings,
        verbose=verbose,
    )
