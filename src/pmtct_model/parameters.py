# parameters.py
from __future__ import annotations
from dataclasses import dataclass, fields, replace
from typing import Dict, Mapping
import math
import numbers
import numpy as np

from .errors import InvalidInput


@dataclass(frozen=True)
class ModelParameters:
    f: float = 0.3 # (women/day) Fertility rate; constant inflow of new susceptible women
    p: float = 0.1 # HIV prevalence among women leaving the susceptible pool
    delta: float = 0.01 # (1/day) Rate at which susceptible women are classified by HIV status
    alpha: float = 0.5 # Probability an HIV-uninfected woman is not pregnant
    D: float = 0.01 # (1/day) Mortality rate of HIV-uninfected (pregnant) women
    x: float = 0.05 # (1/day) Rate of becoming pregnant
    beta: float = 0.3 # Probability an HIV-infected woman is not pregnant
    Dt: float = 0.05 # (1/day) 15% probability of death among infected women without interventions
    mu: float = 0.3 # Probability of mother-to-child transmission during pregnancy
    r: float = 0.9 # (1/day) Rate of viral suppression in infected children
    d: float = 0.1 # (1/day) Death rate of HIV-infected children

    def __post_init__(self):
        # Store plain floats; bools are kept as given and rejected by validate_parameters
        for fld in fields(self):
            value = getattr(self, fld.name)
            if isinstance(value, numbers.Real) and not isinstance(value, (bool, np.bool_)):
                object.__setattr__(self, fld.name, float(value))

    @classmethod
    def from_mapping(cls, values: Mapping[str, float]) -> "ModelParameters":
        """
        Build a parameter set from a name -> value mapping.

        Every one of the 11 names must be present and nothing else may be.
        """
        missing = [name for name in PARAMETER_NAMES if name not in values]
        if missing:
            raise InvalidInput(f"Missing parameters: {', '.join(missing)}")
        unknown = sorted(set(values) - set(PARAMETER_NAMES))
        if unknown:
            raise InvalidInput(f"Unknown parameters: {', '.join(unknown)}")

        kwargs = {}
        for name in PARAMETER_NAMES:
            try:
                kwargs[name] = float(values[name])
            except (TypeError, ValueError) as e:
                raise InvalidInput(f"Parameter {name!r} is not a number: {values[name]!r}") from e

        params = cls(**kwargs)
        validate_parameters(params)
        return params

    def to_dict(self) -> Dict[str, float]:
        return {name: getattr(self, name) for name in PARAMETER_NAMES}

    def with_overrides(self, **overrides: float) -> "ModelParameters":
        """Return a copy with some values replaced (validated)."""
        unknown = sorted(set(overrides) - set(PARAMETER_NAMES))
        if unknown:
            raise InvalidInput(f"Unknown parameters: {', '.join(unknown)}")
        params = replace(self, **{k: float(v) for k, v in overrides.items()})
        validate_parameters(params)
        return params


PARAMETER_NAMES = tuple(fld.name for fld in fields(ModelParameters))

# Probabilities live in [0, 1]; everything else is a non-negative rate
PROBABILITY_PARAMETERS = frozenset({"p", "alpha", "beta", "mu"})


def get_default_parameters() -> ModelParameters:
    """
    Return a ModelParameters object with all default (typical) values.
    """
    return ModelParameters()


def validate_parameters(params: ModelParameters) -> ModelParameters:
    """
    Check ranges: probabilities in [0, 1], rates >= 0, all finite.
    Returns params unchanged so it can be used inline.
    """
    if not isinstance(params, ModelParameters):
        raise InvalidInput(f"Expected ModelParameters, got {type(params).__name__}")

    for name in PARAMETER_NAMES:
        value = getattr(params, name)
        if isinstance(value, (bool, np.bool_)) or not isinstance(value, numbers.Real) or not math.isfinite(float(value)):
            raise InvalidInput(f"Parameter {name!r} must be a finite number, got {value!r}")
        if value < 0:
            raise InvalidInput(f"Parameter {name!r} must be non-negative, got {value}")
        if name in PROBABILITY_PARAMETERS and value > 1:
            raise InvalidInput(f"Parameter {name!r} is a probability and must be <= 1, got {value}")
    return params


# CV% for the rate parameters varied in sweeps
PARAMETER_CV: Dict[str, float] = {
    "f": 30.0,
    "delta": 25.0,
    "D": 40.0,
    "x": 30.0,
    "Dt": 40.0,
    "r": 35.0,
    "d": 50.0,
}


def _lognormal_from_cv(mean: float, cv_percent: float, rng: np.random.Generator) -> float:
    """
    Sample a lognormal random variable with given mean and CV%.
    """
    if cv_percent <= 0 or mean == 0:
        return mean
    cv = cv_percent / 100.0
    sigma = math.sqrt(math.log(1.0 + cv**2))
    eta = rng.normal(-0.5 * sigma**2, sigma)
    return mean * math.exp(eta)


def sample_parameter_set(
    base: ModelParameters | None = None,
    rng: np.random.Generator | None = None,
) -> ModelParameters:
    """
    Apply lognormal variability (PARAMETER_CV) to the rate parameters of base
    and return a new ModelParameters instance. Probabilities are left as is.
    """
    if base is None:
        base = get_default_parameters()
    if rng is None:
        rng = np.random.default_rng()

    sampled = {
        name: _lognormal_from_cv(getattr(base, name), cv, rng)
        for name, cv in PARAMETER_CV.items()
    }
    return validate_parameters(replace(base, **sampled))
