"""Pytest fixtures, test models and datasets for newtonfit testing.

This module provides:
- Small hand-written models that exercise each stopping rule
- Datasets with closed-form solutions for the reference models
- A helper that builds a loaded NewtonFitter
"""

import numpy as np
from numpy.typing import NDArray

from newtonfit import FitterConfig, NewtonFitter


# =============================================================================
# Pytest Configuration
# =============================================================================


def pytest_configure(config):
    """Register custom markers."""
    config.addinivalue_line(
        "markers", "robustness: mark test as robustness/edge case test"
    )
    config.addinivalue_line(
        "markers", "slow: mark test as slow (run on limited CI matrix)"
    )


def make_fitter(model, X, y, weights=None, **config_kwargs) -> NewtonFitter:
    """Build a silent NewtonFitter loaded with one observation per row of X."""
    config_kwargs.setdefault("verbose", -1)
    fitter = NewtonFitter(model, FitterConfig(**config_kwargs))
    if weights is None:
        weights = np.ones(len(y))
    for xi, yi, wi in zip(X, y, weights):
        fitter.add_observation(xi, yi, wi)
    return fitter


# =============================================================================
# Test Models
# =============================================================================


class _IdentityLinkModel:
    """Base for test models: dim = predictor length, identity warm start."""

    def dim(self, observation):
        return len(observation.x)

    def heuristic_link(self, y):
        return y


class ConstantBalanceModel(_IdentityLinkModel):
    """Constant balance with an all-zero Jacobian.

    Only the ridge term gives the Jacobian a usable diagonal. The
    regularized root is beta = -c / (2 * epsilon).
    """

    def __init__(self, c: float = 1.0):
        self.c = c

    def balance_and_jacobian(self, observations, beta, balance, jacobian):
        balance[:] = self.c
        jacobian[:, :] = 0.0


class NaNBalanceModel(_IdentityLinkModel):
    """Balance is NaN everywhere."""

    def balance_and_jacobian(self, observations, beta, balance, jacobian):
        balance[:] = np.nan
        jacobian[:, :] = np.eye(len(beta))


class CancelledDiagonalModel(_IdentityLinkModel):
    """Jacobian whose first diagonal entry cancels the default ridge term exactly."""

    def balance_and_jacobian(self, observations, beta, balance, jacobian):
        balance[:] = 1.0
        jacobian[:, :] = np.eye(len(beta))
        jacobian[0, 0] = -2.0 * 1e-5


class CubeRootModel(_IdentityLinkModel):
    """Balance cbrt(beta): Newton's method overshoots, doubling |beta| each step."""

    def balance_and_jacobian(self, observations, beta, balance, jacobian):
        balance[:] = np.cbrt(beta)
        jacobian[:, :] = np.diag(1.0 / (3.0 * np.cbrt(beta) ** 2))


class LogLinkLinearModel(_IdentityLinkModel):
    """Least squares seeded through log(y), which is -inf at y = 0."""

    def heuristic_link(self, y):
        with np.errstate(divide="ignore"):
            return float(np.log(y))

    def balance_and_jacobian(self, observations, beta, balance, jacobian):
        X = observations.x
        balance[:] = X.T @ (X @ beta - observations.y)
        jacobian[:, :] = X.T @ X


class StiffModel(_IdentityLinkModel):
    """Unit balance against a 1e12 Jacobian: the Newton step is 1e-12."""

    def balance_and_jacobian(self, observations, beta, balance, jacobian):
        balance[:] = 1.0
        jacobian[:, :] = 1e12 * np.eye(len(beta))


class OverflowingBalanceModel(_IdentityLinkModel):
    """Balance near the float64 limit with a zero Jacobian.

    With the default ridge term the rescaled balance overflows to inf.
    """

    def balance_and_jacobian(self, observations, beta, balance, jacobian):
        balance[:] = 1e308
        jacobian[:, :] = 0.0


class FirstCoefficientModel(_IdentityLinkModel):
    """Least squares on the first predictor only, so dim is smaller than p."""

    def dim(self, observation):
        return 1

    def balance_and_jacobian(self, observations, beta, balance, jacobian):
        x0 = observations.x[:, :1]
        w = observations.weight
        balance[:] = x0.T @ (w * (x0 @ beta - observations.y))
        jacobian[:, :] = x0.T @ (x0 * w[:, np.newaxis])


# =============================================================================
# Datasets
# =============================================================================

# y = 2x through the origin
LINE_X = np.array([[1.0], [2.0]])
LINE_Y = np.array([2.0, 4.0])

# Constant design: the fitted coefficient is link(weighted mean of y)
CONSTANT_X = np.ones((4, 1))
LOGISTIC_CONSTANT_Y = np.array([1.0, 0.0, 1.0, 1.0])  # mean 0.75 -> logit = log(3)
POISSON_CONSTANT_Y = np.array([1.0, 2.0, 3.0, 6.0])  # mean 3 -> log(3)


def linear_dataset(n: int = 50, seed: int = 0):
    """Noisy linear data with three predictors."""
    rng = np.random.default_rng(seed)
    X = rng.normal(size=(n, 3))
    beta_true = np.array([1.0, -2.0, 0.5])
    y = X @ beta_true + 0.1 * rng.normal(size=n)
    return X, y, beta_true


def logistic_dataset(n: int = 200, seed: int = 1):
    """Bernoulli responses from a two-predictor logistic model."""
    rng = np.random.default_rng(seed)
    X = rng.normal(size=(n, 2))
    p = 1.0 / (1.0 + np.exp(-(X @ np.array([0.8, -0.5]) + 0.3)))
    y = (rng.uniform(size=n) < p).astype(float)
    return X, y


def poisson_dataset(n: int = 200, seed: int = 2):
    """Counts from a two-predictor log-linear model."""
    rng = np.random.default_rng(seed)
    X = rng.normal(scale=0.5, size=(n, 2))
    y = rng.poisson(np.exp(X @ np.array([0.4, -0.3]) + 1.0)).astype(float)
    return X, y


def ridge_solution(X: NDArray, y: NDArray, epsilon: float, weights=None) -> NDArray:
    """Closed-form minimizer of sum w (x.beta - y)^2 / 2 + epsilon ||beta||^2."""
    if weights is None:
        weights = np.ones(len(y))
    A = X.T @ (X * weights[:, np.newaxis]) + 2.0 * epsilon * np.eye(X.shape[1])
    return np.linalg.solve(A, X.T @ (weights * y))
