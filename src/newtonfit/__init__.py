"""newtonfit: Newton's-method fitting of model coefficients to weighted observations."""

__version__ = "0.1.0"

from newtonfit._core import NewtonFitter
from newtonfit._model import LinearModel, LogisticModel, PoissonModel, VectorFnWithJacobian
from newtonfit._observations import ObservationStore
from newtonfit._types import (
    Converged,
    Diverged,
    DivergenceReason,
    FitResult,
    FitterConfig,
    InvalidStateError,
    MaxIterationsExceeded,
    Observation,
)
from newtonfit._warm_start import LinearFitter

__all__ = [
    "__version__",
    "NewtonFitter",
    "LinearFitter",
    "FitterConfig",
    "FitResult",
    "Converged",
    "Diverged",
    "DivergenceReason",
    "MaxIterationsExceeded",
    "InvalidStateError",
    "Observation",
    "ObservationStore",
    "VectorFnWithJacobian",
    "LinearModel",
    "LogisticModel",
    "PoissonModel",
]
