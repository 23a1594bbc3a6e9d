"""Public type definitions for the newtonfit package.

This module defines the core data structures used by NewtonFitter:
- Observation: One weighted (x, y, weight) data point
- FitterConfig: Stopping thresholds, regularization and iteration bound
- FitResult: Tagged, immutable result returned by NewtonFitter.solve()

The result is tagged so a trustworthy fit (Converged) can be told apart
from a best-effort fallback (Diverged, MaxIterationsExceeded).
"""

import enum
import numbers
from dataclasses import dataclass, field, fields
from typing import Iterator, List, Optional

import numpy as np
from numpy.typing import NDArray


class InvalidStateError(RuntimeError):
    """Raised when an operation is called in a state that cannot support it."""


@dataclass(frozen=True)
class Observation:
    """A single weighted observation.

    Attributes:
        x: Predictor vector. Shape (p,).
        y: Response value.
        weight: Non-negative multiplier on the observation's contribution.
    """

    x: NDArray[np.float64]
    y: float
    weight: float = 1.0


@dataclass(frozen=True)
class FitterConfig:
    """Configuration parameters for NewtonFitter.

    The defaults reproduce the fixed constants of the fitting algorithm;
    only max_iter, verbose and history are expected to be changed in
    normal use.

    Attributes:
        epsilon: Ridge strength. Adds 2*epsilon*beta to the balance and
            2*epsilon to the Jacobian diagonal. Default 1e-5.
        balance_tol: Converged when sum(|balance|) <= balance_tol. Default 1e-8.
        jacobian_tol: Give up when sum(|jacobian|) <= jacobian_tol. Default 1e-8.
        step_tol: Converged when sum(|delta|) <= step_tol. Default 1e-10.
        max_iter: Maximum number of Newton steps. Default 100.
        verbose: Verbosity level (-1=silent, 0=summary, 1=iterations,
            2=debug). Default 0.
        history: If True, record every iterate in the result. Default False.
    """

    epsilon: float = 1e-5
    balance_tol: float = 1e-8
    jacobian_tol: float = 1e-8
    step_tol: float = 1e-10
    max_iter: int = 100
    verbose: int = 0
    history: bool = False

    def __post_init__(self) -> None:
        if isinstance(self.max_iter, bool) or not isinstance(self.max_iter, numbers.Integral):
            raise ValueError(f"max_iter must be an integer, got {self.max_iter!r}")
        if self.max_iter < 1:
            raise ValueError(f"max_iter must be positive, got {self.max_iter}")
        if not np.isfinite(self.epsilon) or self.epsilon < 0.0:
            raise ValueError(f"epsilon must be finite and non-negative, got {self.epsilon}")
        for name in ("balance_tol", "jacobian_tol", "step_tol"):
            value = getattr(self, name)
            if not np.isfinite(value) or value < 0.0:
                raise ValueError(f"{name} must be finite and non-negative, got {value}")


class DivergenceReason(enum.Enum):
    """Why the Newton iteration gave up."""

    NON_FINITE_WARM_START = "non-finite warm start"
    NON_FINITE_BALANCE = "non-finite balance"
    DEGENERATE_JACOBIAN = "degenerate Jacobian"
    SINGULAR_SYSTEM = "singular linear system"
    NON_FINITE_STEP = "non-finite Newton step"


@dataclass(frozen=True)
class FitResult:
    """Base of the tagged fit result - immutable container with dict-like access.

    Attributes:
        beta: Fitted coefficient vector. Shape (dim,). Never aliases fitter state.
        n_iter: Number of balance/Jacobian evaluations performed.
        abs_balance: sum(|balance|) at the last evaluated iterate.
        history: Optional list of iterates, warm start first.
    """

    beta: NDArray[np.float64]
    n_iter: int
    abs_balance: float
    history: Optional[List[NDArray[np.float64]]] = field(default=None, kw_only=True)

    @property
    def success(self) -> bool:
        return False

    @property
    def message(self) -> str:
        return f"Stopped after {self.n_iter} iterations: |balance|={self.abs_balance:.2e}"

    def __getitem__(self, key: str) -> object:
        """Enable dict-style access: result['beta']."""
        return getattr(self, key)

    def keys(self) -> List[str]:
        """Return list of field names for dict-like iteration."""
        return [f.name for f in fields(self)]

    def __iter__(self) -> Iterator[str]:
        """Iterate over field names."""
        return iter(self.keys())

    def __contains__(self, key: str) -> bool:
        """Check if key is a valid field name."""
        return key in self.keys()


@dataclass(frozen=True)
class Converged(FitResult):
    """The balance or the Newton step fell below its tolerance."""

    @property
    def success(self) -> bool:
        return True

    @property
    def message(self) -> str:
        return f"Converged after {self.n_iter} iterations: |balance|={self.abs_balance:.2e}"


@dataclass(frozen=True)
class Diverged(FitResult):
    """A numeric breakdown stopped the iteration; beta is the last good iterate."""

    reason: DivergenceReason

    @property
    def message(self) -> str:
        return f"Diverged after {self.n_iter} iterations: {self.reason.value}"


@dataclass(frozen=True)
class MaxIterationsExceeded(FitResult):
    """The iteration bound was reached before any stopping rule fired."""

    @property
    def message(self) -> str:
        return (
            f"Did not converge in {self.n_iter} iterations: "
            f"|balance|={self.abs_balance:.2e}"
        )
