# errors.py
"""
Exceptions raised by the PMTCT model.

- InvalidInput: malformed parameters, initial state or time grid. Raised
  before any integration step is taken.
- NumericalInstability: a step produced non-finite values, or the solver
  gave up. Carries the time point at which it happened.
"""

from __future__ import annotations
from typing import Optional


class InvalidInput(ValueError):
    pass


class NumericalInstability(RuntimeError):
    def __init__(self, message: str, time: Optional[float] = None):
        super().__init__(message)
        self.time = time
