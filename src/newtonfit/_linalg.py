"""Fallible dense linear solve for the Newton step.

A failed solve is an ordinary outcome of the iteration, not an error, so
solve_linear_system reports it in its return value instead of raising.
"""

import warnings
from dataclasses import dataclass
from typing import Optional

import numpy as np
import scipy.linalg as la
from numpy.typing import NDArray

from newtonfit._types import DivergenceReason


@dataclass(frozen=True)
class LinearSolve:
    """Outcome of solving A x = b: exactly one of delta and reason is set."""

    delta: Optional[NDArray[np.float64]] = None
    reason: Optional[DivergenceReason] = None

    @property
    def ok(self) -> bool:
        return self.reason is None


def solve_linear_system(a: NDArray[np.float64], b: NDArray[np.float64]) -> LinearSolve:
    """Solve the square system a @ x = b.

    Returns:
        LinearSolve with delta set on success, or with reason
        SINGULAR_SYSTEM when LAPACK reports a singular matrix and
        NON_FINITE_STEP when the solution holds NaN or infinite entries.
    """
    try:
        with warnings.catch_warnings():
            # Ill-conditioning is judged from the solution below
            warnings.simplefilter("ignore", la.LinAlgWarning)
            delta = la.solve(a, b, check_finite=False)
    except la.LinAlgError:
        return LinearSolve(reason=DivergenceReason.SINGULAR_SYSTEM)

    if not np.all(np.isfinite(delta)):
        return LinearSolve(reason=DivergenceReason.NON_FINITE_STEP)
    return LinearSolve(delta=np.asarray(delta, dtype=np.float64))
