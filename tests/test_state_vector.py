# tests/test_state_vector.py
from __future__ import annotations

import numpy as np
import pytest

from pmtct_model.errors import InvalidInput
from pmtct_model.state_vector import (
    COMPARTMENT_NAMES,
    DEFAULT_INITIAL_STATE,
    N_STATES,
    StateIx,
    as_state_vector,
    get_initial_state,
)


def test_compartment_order():
    assert N_STATES == 11
    assert COMPARTMENT_NAMES == (
        "WS", "WNI", "WI", "NP", "P", "NPWI", "PWI", "CNIP", "CIP", "VS", "D",
    )
    assert [int(ix) for ix in StateIx] == list(range(11))


def test_default_initial_state():
    y0 = get_initial_state()
    assert y0.dtype == np.float64
    assert y0[StateIx.WS] == 10000
    assert y0[StateIx.PWI] == 700
    assert y0[StateIx.D] == 21
    assert list(y0) == [DEFAULT_INITIAL_STATE[name] for name in COMPARTMENT_NAMES]


def test_partial_mapping_overrides_defaults():
    y0 = get_initial_state({"CIP": 0.0, "VS": 0.0})
    assert y0[StateIx.CIP] == 0.0
    assert y0[StateIx.VS] == 0.0
    assert y0[StateIx.WS] == 10000


def test_wrong_arity_rejected():
    with pytest.raises(InvalidInput, match="11"):
        as_state_vector([1.0] * 10)


def test_mapping_missing_compartment_rejected():
    values = dict(DEFAULT_INITIAL_STATE)
    del values["NP"]
    with pytest.raises(InvalidInput, match="NP"):
        as_state_vector(values)


def test_unknown_compartment_rejected():
    with pytest.raises(InvalidInput, match="XX"):
        get_initial_state({"XX": 1.0})


def test_negative_and_non_finite_rejected():
    y = get_initial_state()
    y[StateIx.P] = -1.0
    with pytest.raises(InvalidInput, match="P"):
        as_state_vector(y)
    y[StateIx.P] = np.inf
    with pytest.raises(InvalidInput, match="non-finite"):
        as_state_vector(y)
