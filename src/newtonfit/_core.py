"""NewtonFitter: fit a model's coefficients to weighted observations.

This module orchestrates the two phases of a fit:
1. Warm Start - weighted linear least squares on heuristic-linked responses
2. Newton Iteration - drive the regularized balance equations to zero

NewtonFitter is the main public API of the newtonfit package.
"""

from typing import Callable, Optional

import numpy as np
from numpy.typing import ArrayLike, NDArray

from newtonfit._convergence import format_vector, newton_iterate
from newtonfit._model import VectorFnWithJacobian
from newtonfit._observations import ObservationStore
from newtonfit._types import FitResult, FitterConfig, InvalidStateError
from newtonfit._warm_start import LinearFitter, reconcile_length


class NewtonFitter:
    """Fit a vector-valued model by Newton's method on its balance equations.

    A fitter owns its observations. Calls to add_observation and solve
    must not overlap; independent fitters share no state and may run in
    parallel.

    Args:
        model: Object implementing the VectorFnWithJacobian protocol.
        config: Optional FitterConfig. Defaults to FitterConfig().

    Raises:
        TypeError: If model does not implement VectorFnWithJacobian.

    Example:
        >>> from newtonfit import FitterConfig, LinearModel, NewtonFitter
        >>> fitter = NewtonFitter(LinearModel(), FitterConfig(verbose=-1))
        >>> fitter.add_observation([1.0], 2.0)
        >>> fitter.add_observation([2.0], 4.0)
        >>> result = fitter.solve()
        >>> print(result.beta)  # [1.99999...]
        >>> print(result.success)  # True
    """

    def __init__(
        self,
        model: VectorFnWithJacobian,
        config: Optional[FitterConfig] = None,
    ) -> None:
        if not isinstance(model, VectorFnWithJacobian):
            raise TypeError(
                f"model must implement dim, heuristic_link and balance_and_jacobian, "
                f"got {type(model).__name__}"
            )
        self.model = model
        self.config = config if config is not None else FitterConfig()
        self._observations = ObservationStore()

    @property
    def observations(self) -> ObservationStore:
        return self._observations

    def add_observation(self, x: ArrayLike, y: float, weight: float = 1.0) -> None:
        """Append one observation.

        Raises:
            ValueError: If x's length differs from earlier observations.
        """
        self._observations.add(x, y, weight)

    def warm_start(self) -> NDArray[np.float64]:
        """Initial coefficients from weighted least squares. Shape (dim,).

        The least-squares solution has the predictor length; it is
        zero-padded or truncated to the model dimensionality.

        Raises:
            InvalidStateError: If no observations were added.
        """
        if len(self._observations) == 0:
            raise InvalidStateError("solve() requires at least one observation")

        dim = self.model.dim(self._observations[0])

        # Often fitting y ~ f(x . beta), so start from f^-1(y) ~ x . beta
        linear = LinearFitter(self._observations.n_features)
        for obs in self._observations:
            linear.add_observation(obs.x, self.model.heuristic_link(obs.y), obs.weight)
        beta = linear.solve()

        if self.config.verbose >= 2:
            print(f"    Warm start: {format_vector(beta)}")
        if beta.size != dim:
            if self.config.verbose >= 2:
                print(f"    Reconciling warm start length {beta.size} to dim={dim}")
            beta = reconcile_length(beta, dim)
        return beta

    def solve(
        self,
        callback: Optional[Callable[[NDArray[np.float64], NDArray[np.float64]], None]] = None,
    ) -> FitResult:
        """Fit the model to all observations added so far.

        Args:
            callback: Optional function called with (beta, balance) at each
                evaluated iterate.

        Returns:
            Converged, Diverged or MaxIterationsExceeded, each carrying the
            coefficient vector as an independent array.

        Raises:
            InvalidStateError: If no observations were added.
        """
        verbose = self.config.verbose

        # =====================================================================
        # Phase 1: Warm Start
        # =====================================================================
        if verbose >= 1:
            print(
                f"[newtonfit] Phase 1: Warm start from {len(self._observations)} "
                f"observations"
            )
        beta0 = self.warm_start()

        # =====================================================================
        # Phase 2: Newton Iteration
        # =====================================================================
        if verbose >= 1:
            print(
                f"[newtonfit] Phase 2: Newton iteration "
                f"(dim={beta0.size}, max_iter={self.config.max_iter})"
            )
        result = newton_iterate(
            self.model,
            self._observations,
            beta0,
            self.config,
            callback=callback,
        )

        if verbose >= 0:
            status = "CONVERGED" if result.success else "NOT CONVERGED"
            print(f"[newtonfit] {status}")
            print(f"    {result.message}")

        return result
