"""
Error taxonomy for simulation studies.

  InvalidParameter     — malformed generator / runner / model configuration
  DegenerateFit        — one model could not be fit on one simulated dataset
  AggregationMismatch  — internal invariant broken while reducing records
"""


class BiasVarianceError(Exception):
    """Base class for every error raised by bvlab."""


class InvalidParameter(BiasVarianceError, ValueError):
    """Raised before any work is done, so collected state stays untouched."""


class DegenerateFit(BiasVarianceError):
    """The expanded design matrix cannot be resolved by the fitting rule."""

    def __init__(self, message, rank=None, n_params=None):
        super().__init__(message)
        self.rank = rank
        self.n_params = n_params


class AggregationMismatch(BiasVarianceError):
    """A defect signal: never caught inside the library."""
