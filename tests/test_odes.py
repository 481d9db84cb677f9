# tests/test_odes.py
from __future__ import annotations

import numpy as np
import pytest

from pmtct_model.odes import linear_system, rhs
from pmtct_model.parameters import get_default_parameters
from pmtct_model.state_vector import N_STATES, StateIx, get_initial_state


def test_rhs_at_default_state():
    params = get_default_parameters()
    dydt = rhs(0.0, get_initial_state(), params)

    assert dydt.shape == (N_STATES,)
    assert dydt[StateIx.WS] == pytest.approx(0.3 - 0.01 * 10000)
    assert dydt[StateIx.WNI] == pytest.approx(0.9 * 0.01 * 10000 - (0.5 + 0.5 * 0.01 + 0.05) * 9000)
    assert dydt[StateIx.WI] == pytest.approx(0.1 * 0.01 * 10000 - (0.7 * 0.05 + 0.3 + 0.05) * 1000)
    assert dydt[StateIx.NP] == pytest.approx(0.5 * 9000)
    assert dydt[StateIx.P] == pytest.approx(0.05 * 9000 - 0.01 * 4500)
    assert dydt[StateIx.NPWI] == pytest.approx(0.3 * 1000)
    assert dydt[StateIx.PWI] == pytest.approx(0.05 * 1000 - (0.3 + 0.05) * 700)
    assert dydt[StateIx.CNIP] == pytest.approx(0.7 * 700)
    assert dydt[StateIx.CIP] == pytest.approx(0.3 * 700 - (0.9 + 0.1) * 210)
    assert dydt[StateIx.VS] == pytest.approx(0.9 * 210)
    assert dydt[StateIx.D] == pytest.approx(0.1 * 210)


def test_rhs_is_time_autonomous():
    params = get_default_parameters()
    y = get_initial_state()
    np.testing.assert_array_equal(rhs(0.0, y, params), rhs(123.4, y, params))


def test_rhs_does_not_modify_state():
    y = get_initial_state()
    before = y.copy()
    rhs(0.0, y, get_default_parameters())
    np.testing.assert_array_equal(y, before)


def test_linear_system_matches_rhs():
    params = get_default_parameters().with_overrides(f=2.0, D=0.03, x=0.2)
    A, b = linear_system(params)
    rng = np.random.default_rng(0)

    for _ in range(5):
        y = rng.uniform(0.0, 1e4, N_STATES)
        np.testing.assert_allclose(A @ y + b, rhs(0.0, y, params), rtol=1e-12, atol=1e-9)


def test_constant_term_is_recruitment_only():
    _, b = linear_system(get_default_parameters())
    expected = np.zeros(N_STATES)
    expected[StateIx.WS] = 0.3
    np.testing.assert_array_equal(b, expected)
