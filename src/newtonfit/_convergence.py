"""Newton-Raphson iteration on the regularized balance equations.

This module drives the model's balance vector to zero starting from the
warm-start coefficients. Each iteration regularizes, checks convergence,
normalizes the system's magnitude, solves for the Newton step and
applies it. Every stopping rule maps to one tagged result type.
"""

from typing import Callable, List, Optional

import numpy as np
from numpy.typing import NDArray

from newtonfit._linalg import solve_linear_system
from newtonfit._model import VectorFnWithJacobian
from newtonfit._observations import ObservationStore
from newtonfit._scaling import SystemScaler, regularize
from newtonfit._types import (
    Converged,
    DivergenceReason,
    Diverged,
    FitResult,
    FitterConfig,
    MaxIterationsExceeded,
)


def format_vector(v: NDArray[np.float64]) -> str:
    """Render a vector as ``{a, b, c}`` for iteration traces."""
    return "{" + ", ".join(repr(float(vi)) for vi in v) + "}"


def newton_iterate(
    model: VectorFnWithJacobian,
    observations: ObservationStore,
    beta0: NDArray[np.float64],
    config: FitterConfig,
    callback: Optional[Callable[[NDArray[np.float64], NDArray[np.float64]], None]] = None,
) -> FitResult:
    """Run Newton's method until a stopping rule fires or max_iter is reached.

    Args:
        model: Supplies the balance vector and Jacobian.
        observations: Full observation collection, passed through to the model.
        beta0: Initial coefficients. Shape (dim,). Not modified.
        config: Tolerances, ridge strength, iteration bound and verbosity.
        callback: Optional function called with (beta, balance) after
            regularization at each evaluated iterate.

    Returns:
        Converged, Diverged or MaxIterationsExceeded. For Diverged the
        coefficients are those of the last iterate before the failure.
    """
    beta = np.array(beta0, dtype=np.float64)
    dim = beta.size

    # Scratch buffers owned by this call
    balance = np.zeros(dim, dtype=np.float64)
    jacobian = np.zeros((dim, dim), dtype=np.float64)

    history: Optional[List[NDArray[np.float64]]] = [beta.copy()] if config.history else None
    abs_balance = float("nan")

    def finish(result_type, n_iter, **extra) -> FitResult:
        return result_type(
            beta=beta.copy(),
            n_iter=n_iter,
            abs_balance=abs_balance,
            history=history,
            **extra,
        )

    if not np.all(np.isfinite(beta)):
        return finish(Diverged, 0, reason=DivergenceReason.NON_FINITE_WARM_START)

    for n_iter in range(1, config.max_iter + 1):
        balance.fill(0.0)
        jacobian.fill(0.0)
        model.balance_and_jacobian(observations, beta, balance, jacobian)
        regularize(balance, jacobian, beta, config.epsilon)

        if callback is not None:
            callback(beta, balance)

        abs_balance = float(np.sum(np.abs(balance)))

        if config.verbose >= 1:
            print(f"    [Newton] Iteration {n_iter:4d}: |balance|={abs_balance:.4e}")
        if config.verbose >= 2:
            print(f"    [Newton] beta={format_vector(beta)}")
            print(f"    [Newton] balance={format_vector(balance)}")

        if not np.isfinite(abs_balance):
            return finish(Diverged, n_iter, reason=DivergenceReason.NON_FINITE_BALANCE)
        if abs_balance <= config.balance_tol:
            return finish(Converged, n_iter)

        scaler = SystemScaler.from_jacobian(jacobian, tol=config.jacobian_tol)
        if scaler is None:
            return finish(Diverged, n_iter, reason=DivergenceReason.DEGENERATE_JACOBIAN)
        scaler.apply(balance, jacobian)

        step = solve_linear_system(jacobian, balance)
        if not step.ok:
            return finish(Diverged, n_iter, reason=step.reason)

        beta -= step.delta
        delta_abs = float(np.sum(np.abs(step.delta)))
        if history is not None:
            history.append(beta.copy())

        if config.verbose >= 1:
            print(f"    [Newton] step |delta|={delta_abs:.4e}")

        if delta_abs <= config.step_tol:
            return finish(Converged, n_iter)

    return finish(MaxIterationsExceeded, config.max_iter)
