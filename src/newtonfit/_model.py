"""Model capability consumed by the Newton fitter, plus reference models.

A model turns the observation collection and a coefficient vector into
a balance vector (the gradient of the fit objective, zero at a solution)
and its Jacobian. It also supplies a cheap per-response transform used
only to seed the warm start.

The reference models below are generalized linear models whose balance is
``sum_i w_i * x_i * (mean(x_i . beta) - y_i)``.
"""

from typing import Protocol, runtime_checkable

import numpy as np
from numpy.typing import NDArray
from scipy.special import expit, logit

from newtonfit._observations import ObservationStore
from newtonfit._types import Observation


@runtime_checkable
class VectorFnWithJacobian(Protocol):
    """Interface every fitted model must implement."""

    def dim(self, observation: Observation) -> int:
        """Number of free coefficients, fixed for the life of a fit."""
        ...

    def heuristic_link(self, y: float) -> float:
        """Monotonic transform of a response used to seed the warm start."""
        ...

    def balance_and_jacobian(
        self,
        observations: ObservationStore,
        beta: NDArray[np.float64],
        balance: NDArray[np.float64],
        jacobian: NDArray[np.float64],
    ) -> None:
        """Write the balance (dim,) and Jacobian (dim, dim) into the buffers."""
        ...


class _GeneralizedLinearModel:
    """Shared design-matrix and accumulation logic for the reference models."""

    def __init__(self, intercept: bool = False) -> None:
        self.intercept = intercept

    def dim(self, observation: Observation) -> int:
        return len(observation.x) + (1 if self.intercept else 0)

    def _design(self, observations: ObservationStore) -> NDArray[np.float64]:
        X = observations.x
        if self.intercept:
            X = np.hstack([X, np.ones((X.shape[0], 1))])
        return X

    def _mean_and_variance(self, eta: NDArray[np.float64]):
        raise NotImplementedError

    def balance_and_jacobian(
        self,
        observations: ObservationStore,
        beta: NDArray[np.float64],
        balance: NDArray[np.float64],
        jacobian: NDArray[np.float64],
    ) -> None:
        X = self._design(observations)
        w = observations.weight
        with np.errstate(over="ignore", invalid="ignore"):
            mu, var = self._mean_and_variance(X @ beta)
            balance[:] = X.T @ (w * (mu - observations.y))
            jacobian[:, :] = X.T @ (X * (w * var)[:, np.newaxis])

    def __repr__(self) -> str:
        return f"{type(self).__name__}(intercept={self.intercept})"


class LinearModel(_GeneralizedLinearModel):
    """Weighted least squares: identity link, constant Jacobian X^T W X."""

    def heuristic_link(self, y: float) -> float:
        return float(y)

    def _mean_and_variance(self, eta):
        return eta, np.ones_like(eta)


class LogisticModel(_GeneralizedLinearModel):
    """Logistic regression for responses in [0, 1]."""

    # Responses are clipped before the logit so 0/1 labels seed finite values.
    clip = 0.01

    def heuristic_link(self, y: float) -> float:
        return float(logit(np.clip(y, self.clip, 1.0 - self.clip)))

    def _mean_and_variance(self, eta):
        p = expit(eta)
        return p, p * (1.0 - p)


class PoissonModel(_GeneralizedLinearModel):
    """Poisson regression with log link for non-negative counts."""

    def heuristic_link(self, y: float) -> float:
        return float(np.log(max(y, 0.5)))

    def _mean_and_variance(self, eta):
        mu = np.exp(eta)
        return mu, mu
