from abc import ABC, abstractmethod

import numpy as np


class BaseModel(ABC):
    """
    The Contract: every regressor in a model family (OLS, LASSO, trees)
    follows this.  `fit` works on the already-expanded design matrix.
    """

    def __init__(self):
        self.weights = None
        self.bias = None

        # set by _standardize_fit
        self.mu = None
        self.std = None

    @abstractmethod
    def fit(self, X: np.ndarray, y: np.ndarray) -> "BaseModel":
        """Train the model and return it."""

    @abstractmethod
    def predict(self, X: np.ndarray) -> np.ndarray:
        """Make predictions on new data."""

    def path_predict(self, X: np.ndarray):
        """
        Yield (lambda, predictions, n_nonzero) triples.

        Unpenalized models have a single entry with lambda None; penalized
        models yield one entry per point of their regularization path.
        """
        yield None, self.predict(X), self.n_nonzero()

    def n_nonzero(self):
        """Number of non-zero coefficients, or None for non-linear models."""
        if self.weights is None:
            return None
        return int(np.count_nonzero(self.weights))

    def _add_bias(self, X):
        """Helper to add a column of 1s for the bias term (x0)."""
        return np.c_[np.ones(X.shape[0]), X]

    def _standardize_fit(self, X: np.ndarray) -> np.ndarray:
        X = np.asarray(X, dtype=np.float64)
        self.mu = np.mean(X, axis=0)
        self.std = np.std(X, axis=0)
        self.std[self.std == 0] = 1.0
        return (X - self.mu) / self.std
