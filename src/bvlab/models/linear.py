"""
Linear models — ordinary least squares and an L1-penalized (LASSO) path.

OLS is solved in closed form.  The LASSO path uses scikit-learn's
coordinate descent on standardized features (glmnet convention):

  Loss = (1/2n) * ||y - Xw - b||² + lambda * ||w||₁

The path is walked from the smallest lambda upwards and warm-started from
the least-squares solution, so lambda = 0 reproduces OLS.
"""

import warnings

import numpy as np
from sklearn.exceptions import ConvergenceWarning
from sklearn.linear_model import Lasso

from bvlab.errors import DegenerateFit
from bvlab.models.base import BaseModel


def _check_rank(X_b: np.ndarray, what: str) -> None:
    n, p = X_b.shape
    if n < p:
        raise DegenerateFit(
            f"{what}: {p} parameters but only {n} observations", rank=n, n_params=p
        )
    rank = int(np.linalg.matrix_rank(X_b))
    if rank < p:
        raise DegenerateFit(
            f"{what}: design matrix is rank deficient (rank {rank} < {p})",
            rank=rank,
            n_params=p,
        )


class LinearRegressionOLS(BaseModel):
    """
    Multiple linear regression, closed form: W = argmin ||y - X_b W||².

    Refuses rank-deficient designs instead of silently returning a
    minimum-norm solution.
    """

    def fit(self, X: np.ndarray, y: np.ndarray) -> "LinearRegressionOLS":
        X = np.asarray(X, dtype=np.float64)
        y = np.asarray(y, dtype=np.float64).ravel()

        X_b = self._add_bias(X)  # (n, d+1), column 0 is the bias
        _check_rank(X_b, "OLS")

        W_full, *_ = np.linalg.lstsq(X_b, y, rcond=None)
        self.bias = float(W_full[0])
        self.weights = W_full[1:]
        return self

    def predict(self, X: np.ndarray) -> np.ndarray:
        X = np.asarray(X, dtype=np.float64)
        return X @ self.weights + self.bias


class LassoPath(BaseModel):
    """
    LASSO fitted at every lambda of a grid in one call.

    The feature expansion and standardization are shared by the whole path;
    coefficients are stored per lambda on the original feature scale.
    """

    def __init__(self, lambdas, standardize: bool = True, max_iter: int = 10000, tol: float = 1e-10):
        super().__init__()
        self.lambdas = tuple(sorted(float(lam) for lam in lambdas))
        self.standardize = standardize
        self.max_iter = int(max_iter)
        self.tol = float(tol)
        self.path_weights = None  # (n_lambdas, d)
        self.path_bias = None  # (n_lambdas,)

    def fit(self, X: np.ndarray, y: np.ndarray) -> "LassoPath":
        X = np.asarray(X, dtype=np.float64)
        y = np.asarray(y, dtype=np.float64).ravel()
        n, d = X.shape

        if self.standardize:
            Xs = self._standardize_fit(X)
        else:
            self.mu = np.zeros(d)
            self.std = np.ones(d)
            Xs = X

        # least-squares start; only lambda = 0 actually needs full rank
        try:
            _check_rank(self._add_bias(Xs), "LASSO")
            W_start, *_ = np.linalg.lstsq(self._add_bias(Xs), y, rcond=None)
            W = W_start[1:]
        except DegenerateFit:
            if self.lambdas[0] == 0.0:
                raise
            W = np.zeros(d)

        weights, biases = [], []
        for lam in self.lambdas:
            model = Lasso(
                alpha=lam,
                fit_intercept=True,
                max_iter=self.max_iter,
                tol=self.tol,
                warm_start=True,
            )
            model.coef_ = W.copy()
            with warnings.catch_warnings():
                # alpha=0 is legitimate here: it is the OLS end of the path
                warnings.simplefilter("ignore", ConvergenceWarning)
                warnings.simplefilter("ignore", UserWarning)
                model.fit(Xs, y)
            W = np.asarray(model.coef_, dtype=np.float64).ravel()

            # back to the original scale
            weights.append(W / self.std)
            biases.append(float(model.intercept_) - float(np.sum(W * self.mu / self.std)))

        self.path_weights = np.vstack(weights)
        self.path_bias = np.asarray(biases)
        self.weights = self.path_weights[0]
        self.bias = float(self.path_bias[0])
        return self

    def predict(self, X: np.ndarray) -> np.ndarray:
        """(n,) for a single lambda, (n, n_lambdas) for a path."""
        X = np.asarray(X, dtype=np.float64)
        preds = X @ self.path_weights.T + self.path_bias
        return preds[:, 0] if len(self.lambdas) == 1 else preds

    def path_predict(self, X: np.ndarray):
        X = np.asarray(X, dtype=np.float64)
        preds = X @ self.path_weights.T + self.path_bias
        for j, lam in enumerate(self.lambdas):
            yield lam, preds[:, j], int(np.count_nonzero(self.path_weights[j]))

    def coefficients(self, lam: float) -> np.ndarray:
        j = self.lambdas.index(float(lam))
        return self.path_weights[j]
