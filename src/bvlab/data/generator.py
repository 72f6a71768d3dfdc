"""
Synthetic data for bias–variance studies.

A GroundTruth is the noiseless data-generating relationship; the
DataGenerator draws uniform features, evaluates the ground truth and adds
Gaussian label noise.  Everything random goes through an explicit
numpy Generator, never the global np.random state.
"""

import math
from numbers import Integral, Real

import numpy as np
import pandas as pd

from bvlab.errors import InvalidParameter

TARGET = "y"


def feature_columns(n_features: int) -> list:
    return [f"x{j}" for j in range(1, n_features + 1)]


class GroundTruth:
    """
    Known expected target as a function of the features.

    `fn` receives a DataFrame of features and returns one value per row.
    """

    def __init__(self, name: str, fn, columns, formula: str = ""):
        self.name = name
        self._fn = fn
        self.columns = tuple(columns)
        self.formula = formula

    def __call__(self, features) -> np.ndarray:
        frame = _as_frame(features)
        missing = [c for c in self.columns if c not in frame.columns]
        if missing:
            raise InvalidParameter(
                f"ground truth '{self.name}' needs columns {missing}"
            )
        return np.asarray(self._fn(frame), dtype=np.float64).reshape(-1)

    def at(self, point) -> float:
        """True value at a single feature vector (mapping column -> value)."""
        return float(self(point)[0])

    def __repr__(self):
        return f"GroundTruth({self.name!r}: {self.formula})"

    def __reduce__(self):
        # built-ins are looked up by name so joblib workers can unpickle them
        if GROUND_TRUTHS.get(self.name) is self:
            return (get_ground_truth, (self.name,))
        return object.__reduce__(self)


def _as_frame(features) -> pd.DataFrame:
    if isinstance(features, pd.DataFrame):
        return features
    if isinstance(features, pd.Series):
        return features.to_frame().T
    if isinstance(features, dict):
        return pd.DataFrame([features])
    return pd.DataFrame(list(features))


GROUND_TRUTHS = {
    "quadratic_x1": GroundTruth(
        "quadratic_x1",
        lambda df: df["x1"].to_numpy() ** 2 - 1.5 * df["x1"].to_numpy(),
        columns=("x1",),
        formula="y = x1^2 - 1.5*x1",
    ),
    "quadratic_x2": GroundTruth(
        "quadratic_x2",
        lambda df: df["x1"].to_numpy() ** 2 - 1.5 * df["x2"].to_numpy(),
        columns=("x1", "x2"),
        formula="y = x1^2 - 1.5*x2",
    ),
}


def get_ground_truth(name: str) -> GroundTruth:
    try:
        return GROUND_TRUTHS[name]
    except KeyError:
        raise InvalidParameter(
            f"unknown ground truth '{name}' (known: {sorted(GROUND_TRUTHS)})"
        ) from None


class Dataset:
    """
    Fixed-schema table of feature columns plus the target column `y`.
    """

    def __init__(self, frame: pd.DataFrame, feature_names):
        self.feature_names = list(feature_names)
        if TARGET not in frame.columns:
            raise InvalidParameter(f"dataset has no '{TARGET}' column")
        missing = [c for c in self.feature_names if c not in frame.columns]
        if missing:
            raise InvalidParameter(f"dataset is missing feature columns {missing}")
        self.frame = frame[self.feature_names + [TARGET]].reset_index(drop=True)

    @property
    def features(self) -> pd.DataFrame:
        return self.frame[self.feature_names]

    @property
    def target(self) -> np.ndarray:
        return self.frame[TARGET].to_numpy(dtype=np.float64)

    def __len__(self):
        return len(self.frame)

    def __eq__(self, other):
        if not isinstance(other, Dataset):
            return NotImplemented
        return self.feature_names == other.feature_names and self.frame.equals(other.frame)

    def __repr__(self):
        return f"Dataset(n={len(self)}, features={self.feature_names})"


class DataGenerator:
    """
    Draws `n` i.i.d. rows: features ~ U[low, high], y = f(x) + N(0, noise_sd²).
    """

    def __init__(self, ground_truth, n_features: int = 2, low: float = 0.0, high: float = 1.0):
        if isinstance(ground_truth, str):
            ground_truth = get_ground_truth(ground_truth)
        if not isinstance(n_features, Integral) or isinstance(n_features, bool) or n_features < 1:
            raise InvalidParameter(f"n_features must be a positive integer, got {n_features!r}")
        if not (math.isfinite(low) and math.isfinite(high)) or low >= high:
            raise InvalidParameter(f"feature range must satisfy low < high, got [{low}, {high}]")

        self.ground_truth = ground_truth
        self.n_features = int(n_features)
        self.low = float(low)
        self.high = float(high)
        self.feature_names = feature_columns(self.n_features)

        missing = [c for c in ground_truth.columns if c not in self.feature_names]
        if missing:
            raise InvalidParameter(
                f"ground truth '{ground_truth.name}' uses {missing}, "
                f"but only {self.feature_names} are generated"
            )

    def generate(self, n: int, noise_sd: float, seed=None, rng=None) -> Dataset:
        """
        Build one dataset.  The same `seed` (or an identically seeded `rng`)
        reproduces the dataset bit for bit.
        """
        validate_generator_params(n, noise_sd)
        if rng is None:
            rng = np.random.default_rng(seed)

        X = rng.uniform(self.low, self.high, size=(int(n), self.n_features))
        frame = pd.DataFrame(X, columns=self.feature_names)

        y = self.ground_truth(frame)
        if noise_sd > 0:
            y = y + rng.normal(0.0, float(noise_sd), size=int(n))
        frame[TARGET] = y
        return Dataset(frame, self.feature_names)

    def __repr__(self):
        return (
            f"DataGenerator({self.ground_truth.name}, n_features={self.n_features}, "
            f"range=[{self.low}, {self.high}])"
        )


def validate_generator_params(n, noise_sd):
    if not isinstance(n, Integral) or isinstance(n, bool) or n <= 0:
        raise InvalidParameter(f"n must be a positive integer, got {n!r}")
    if not isinstance(noise_sd, Real) or isinstance(noise_sd, bool):
        raise InvalidParameter(f"noise_sd must be a real number, got {noise_sd!r}")
    if not math.isfinite(noise_sd) or noise_sd < 0:
        raise InvalidParameter(f"noise_sd must be finite and non-negative, got {noise_sd!r}")
