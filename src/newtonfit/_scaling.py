"""Ridge regularization and magnitude normalization of the Newton system.

Balance and Jacobian magnitudes vary by orders of magnitude across
problems. Before each solve the system J delta = g is multiplied by
dim^2 / sum(|J|) so the Jacobian entries average O(1). Scaling both sides
by the same factor leaves delta unchanged.
"""

from __future__ import annotations

import dataclasses
from typing import Optional

import numpy as np
from numpy.typing import NDArray


def regularize(
    balance: NDArray[np.float64],
    jacobian: NDArray[np.float64],
    beta: NDArray[np.float64],
    epsilon: float,
) -> None:
    """Add the gradient and Hessian of epsilon * ||beta||^2 in place."""
    balance += 2.0 * epsilon * beta
    jacobian[np.diag_indices_from(jacobian)] += 2.0 * epsilon


@dataclasses.dataclass(frozen=True)
class SystemScaler:
    """Uniform scaling of a square linear system.

    scaled = original * scale, with scale = dim^2 / sum(|jacobian|)
    """

    scale: float

    @classmethod
    def from_jacobian(
        cls, jacobian: NDArray[np.float64], tol: float = 1e-8
    ) -> Optional[SystemScaler]:
        """Derive the scale from the Jacobian's total absolute magnitude.

        Returns None when that magnitude is non-finite or at most tol,
        in which case the system carries no usable information.
        """
        tot_abs = float(np.sum(np.abs(jacobian)))
        if not np.isfinite(tot_abs) or tot_abs <= tol:
            return None
        dim = jacobian.shape[0]
        return cls(scale=(dim * dim) / tot_abs)

    def apply(self, balance: NDArray[np.float64], jacobian: NDArray[np.float64]) -> None:
        # Overflow here surfaces as a non-finite Newton step
        with np.errstate(over="ignore"):
            balance *= self.scale
            jacobian *= self.scale
