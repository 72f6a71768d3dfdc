"""
Tree-based regressors (single tree, random forest, gradient boosting).

Thin wrappers around scikit-learn so they honour the BaseModel contract;
the hyperparameters come from the model spec, the random state from the
simulation run that owns the fit.
"""

import numpy as np
from sklearn.ensemble import GradientBoostingRegressor, RandomForestRegressor
from sklearn.tree import DecisionTreeRegressor

from bvlab.models.base import BaseModel


class SklearnTreeModel(BaseModel):
    def __init__(self, estimator):
        super().__init__()
        self.estimator = estimator

    def fit(self, X: np.ndarray, y: np.ndarray) -> "SklearnTreeModel":
        X = np.asarray(X, dtype=np.float64)
        y = np.asarray(y, dtype=np.float64).ravel()
        self.estimator.fit(X, y)
        return self

    def predict(self, X: np.ndarray) -> np.ndarray:
        return np.asarray(self.estimator.predict(np.asarray(X, dtype=np.float64)), dtype=np.float64)

    def n_nonzero(self):
        return None


class DecisionTreeModel(SklearnTreeModel):
    def __init__(self, max_depth=None, min_samples_leaf=5, random_state=None):
        super().__init__(
            DecisionTreeRegressor(
                max_depth=max_depth,
                min_samples_leaf=min_samples_leaf,
                random_state=random_state,
            )
        )


class RandomForestModel(SklearnTreeModel):
    def __init__(
        self,
        n_estimators=100,
        max_depth=None,
        min_samples_leaf=5,
        max_features=1.0,
        max_samples=None,
        random_state=None,
    ):
        super().__init__(
            RandomForestRegressor(
                n_estimators=n_estimators,
                max_depth=max_depth,
                min_samples_leaf=min_samples_leaf,
                max_features=max_features,
                max_samples=max_samples,
                random_state=random_state,
                n_jobs=1,  # parallelism lives at the run level
            )
        )


class GradientBoostingModel(SklearnTreeModel):
    def __init__(self, n_estimators=100, learning_rate=0.1, max_depth=3, subsample=1.0, random_state=None):
        super().__init__(
            GradientBoostingRegressor(
                n_estimators=n_estimators,
                learning_rate=learning_rate,
                max_depth=max_depth,
                subsample=subsample,
                random_state=random_state,
            )
        )
