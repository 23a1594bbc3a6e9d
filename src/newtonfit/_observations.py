"""Append-only store of weighted observations.

The store fixes the predictor length on the first insertion (or at
construction) and rejects any later observation that disagrees with it.
Models read the collection through the stacked ``x``, ``y`` and
``weight`` arrays, which are rebuilt lazily after each append.
"""

from typing import Iterator, List, Optional, Sequence

import numpy as np
from numpy.typing import ArrayLike, NDArray

from newtonfit._types import Observation


class ObservationStore:
    """Ordered, append-only collection of (x, y, weight) observations.

    Args:
        n_features: Optional predictor length fixed up front. When None the
            first observation fixes it.
    """

    def __init__(self, n_features: Optional[int] = None) -> None:
        if n_features is not None and n_features < 1:
            raise ValueError(f"n_features must be positive, got {n_features}")
        self._n_features = n_features
        self._observations: List[Observation] = []
        self._stacked: Optional[tuple] = None

    @property
    def n_features(self) -> Optional[int]:
        """Predictor length shared by every observation, or None if unknown."""
        return self._n_features

    def add(self, x: ArrayLike, y: float, weight: float = 1.0) -> Observation:
        """Append one observation.

        Raises:
            ValueError: If x is not a non-empty 1-D vector, or its length
                differs from the length already established for this store.
        """
        x = np.array(x, dtype=np.float64)
        if x.ndim != 1 or x.size == 0:
            raise ValueError(f"x must be a non-empty 1-D vector, got shape {x.shape}")
        if self._n_features is not None and x.size != self._n_features:
            raise ValueError(
                f"x has length {x.size}, expected {self._n_features} "
                f"to match earlier observations"
            )
        x.setflags(write=False)
        observation = Observation(x=x, y=float(y), weight=float(weight))
        self._observations.append(observation)
        self._n_features = x.size
        self._stacked = None
        return observation

    def extend(
        self,
        X: ArrayLike,
        y: Sequence[float],
        weights: Optional[Sequence[float]] = None,
    ) -> None:
        """Append one observation per row of X."""
        X = np.atleast_2d(np.asarray(X, dtype=np.float64))
        y = np.asarray(y, dtype=np.float64).ravel()
        if weights is None:
            weights = np.ones(len(y))
        weights = np.asarray(weights, dtype=np.float64).ravel()
        if not (X.shape[0] == len(y) == len(weights)):
            raise ValueError(
                f"X, y and weights disagree on the number of observations: "
                f"{X.shape[0]}, {len(y)}, {len(weights)}"
            )
        for xi, yi, wi in zip(X, y, weights):
            self.add(xi, yi, wi)

    def _stack(self) -> tuple:
        if self._stacked is None:
            if not self._observations:
                empty = np.zeros(0, dtype=np.float64)
                X = np.zeros((0, self._n_features or 0), dtype=np.float64)
                stacked = (X, empty, empty.copy())
            else:
                stacked = (
                    np.vstack([o.x for o in self._observations]),
                    np.array([o.y for o in self._observations], dtype=np.float64),
                    np.array([o.weight for o in self._observations], dtype=np.float64),
                )
            for arr in stacked:
                arr.setflags(write=False)
            self._stacked = stacked
        return self._stacked

    @property
    def x(self) -> NDArray[np.float64]:
        """Predictor matrix. Shape (n, p)."""
        return self._stack()[0]

    @property
    def y(self) -> NDArray[np.float64]:
        """Responses. Shape (n,)."""
        return self._stack()[1]

    @property
    def weight(self) -> NDArray[np.float64]:
        """Observation weights. Shape (n,)."""
        return self._stack()[2]

    def __len__(self) -> int:
        return len(self._observations)

    def __iter__(self) -> Iterator[Observation]:
        return iter(self._observations)

    def __getitem__(self, index: int) -> Observation:
        return self._observations[index]

    def __repr__(self) -> str:
        return f"ObservationStore(n={len(self)}, n_features={self._n_features})"
