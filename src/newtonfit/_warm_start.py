"""Weighted linear least squares used to seed the Newton iteration.

The warm start solves the normal equations X^T W X beta = X^T W y over
the heuristic-linked responses. Its natural length is the predictor
length, which need not match the model dimensionality; reconcile_length
bridges the two.
"""

from typing import Optional

import numpy as np
import scipy.linalg as la
from numpy.typing import ArrayLike, NDArray

from newtonfit._observations import ObservationStore
from newtonfit._types import InvalidStateError


class LinearFitter:
    """Ordinary weighted least-squares fitter.

    Args:
        n_features: Optional predictor length fixed up front.
    """

    def __init__(self, n_features: Optional[int] = None) -> None:
        self.observations = ObservationStore(n_features)

    def add_observation(self, x: ArrayLike, y: float, weight: float = 1.0) -> None:
        self.observations.add(x, y, weight)

    def solve(self) -> NDArray[np.float64]:
        """Return the weighted least-squares coefficients. Shape (p,).

        Rank-deficient systems return the minimum-norm solution. When the
        normal equations are not finite, or the least-squares solve fails,
        every coefficient is NaN.

        Raises:
            InvalidStateError: If no observations were added.
        """
        if len(self.observations) == 0:
            raise InvalidStateError("cannot solve with no observations")

        X = self.observations.x
        w = self.observations.weight
        with np.errstate(over="ignore", invalid="ignore"):
            A = X.T @ (X * w[:, np.newaxis])
            b = X.T @ (w * self.observations.y)

        # Non-finite normal equations carry no warm start; the Newton
        # iteration reports them as a breakdown
        if not (np.all(np.isfinite(A)) and np.all(np.isfinite(b))):
            return np.full(X.shape[1], np.nan)

        # gelsd handles singular A (e.g. fewer observations than features)
        try:
            beta, _, _, _ = la.lstsq(A, b)
        except la.LinAlgError:
            return np.full(X.shape[1], np.nan)
        return np.asarray(beta, dtype=np.float64)


def reconcile_length(beta: NDArray[np.float64], dim: int) -> NDArray[np.float64]:
    """Resize a coefficient vector to dim entries.

    Entries are kept by position; missing trailing entries are zero and
    surplus trailing entries are dropped. Always returns a fresh array.
    """
    beta = np.asarray(beta, dtype=np.float64)
    out = np.zeros(dim, dtype=np.float64)
    n = min(dim, beta.size)
    out[:n] = beta[:n]
    return out
