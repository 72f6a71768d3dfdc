"""
ModelFamily — an ordered, named set of model specs fitted together on each
simulated dataset.
"""

import numpy as np

from bvlab.errors import InvalidParameter
from bvlab.models.expansion import FeatureExpansion
from bvlab.models.specs import (
    BoostingSpec,
    ForestSpec,
    LassoSpec,
    OLSSpec,
    TreeSpec,
    parse_spec,
)


class FittedModel:
    """
    A fitted regressor bound to the expansion of the spec that produced it.
    Callers pass raw feature columns; the expansion is replayed here.
    """

    def __init__(self, spec, model):
        self.spec = spec
        self.model = model

    @property
    def name(self):
        return self.spec.name

    def predict(self, features) -> np.ndarray:
        return self.model.predict(self.spec.expansion.transform(features))

    def path_predict(self, features):
        return self.model.path_predict(self.spec.expansion.transform(features))

    def n_nonzero(self):
        return self.model.n_nonzero()

    def __repr__(self):
        return f"FittedModel({self.spec.name}: {self.spec.describe()})"


class ModelFamily:
    def __init__(self, specs):
        self._specs = {}
        for spec in specs:
            spec = parse_spec(spec)
            if spec.name in self._specs:
                raise InvalidParameter(f"duplicate model name '{spec.name}' in family")
            self._specs[spec.name] = spec
        if not self._specs:
            raise InvalidParameter("a model family needs at least one spec")

    @property
    def specs(self):
        return list(self._specs.values())

    @property
    def names(self):
        return list(self._specs)

    def __getitem__(self, name):
        return self._specs[name]

    def __contains__(self, name):
        return name in self._specs

    def __len__(self):
        return len(self._specs)

    def __iter__(self):
        return iter(self._specs.values())

    def required_columns(self):
        cols = []
        for spec in self._specs.values():
            for c in spec.expansion.columns:
                if c not in cols:
                    cols.append(c)
        return cols

    def fit_one(self, name, dataset, random_state=None) -> FittedModel:
        """Fit a single spec.  Raises DegenerateFit for unresolvable designs."""
        spec = self._specs[name]
        X = spec.expansion.transform(dataset.features)
        model = spec.build(random_state=random_state)
        model.fit(X, dataset.target)
        return FittedModel(spec, model)

    def fit(self, dataset, rng=None) -> dict:
        """
        Fit every spec on `dataset`, in declaration order.

        One random state per spec is drawn from `rng` whether or not the
        spec uses it, so adding a deterministic model never shifts the
        seeds of the others.
        """
        states = draw_random_states(rng, len(self._specs))
        return {
            name: self.fit_one(name, dataset, random_state=state)
            for name, state in zip(self._specs, states)
        }

    def __repr__(self):
        inner = ", ".join(f"{s.name}={s.describe()}" for s in self._specs.values())
        return f"ModelFamily({inner})"


def draw_random_states(rng, k):
    if rng is None:
        return [None] * k
    return [int(s) for s in rng.integers(0, 2**31 - 1, size=k)]


def standard_family(lambda_grid=None, columns=("x1", "x2")) -> ModelFamily:
    """
    The underfit / true-form / overfit / regularized line-up of the labs:

      simple     y ~ x1
      true_form  y ~ x1 + x1²
      full       y ~ poly(x1, x2, degree=2)
      lasso      LASSO on poly(x1, x2, degree=2) over `lambda_grid`
      tree, forest, boosting on (x1, x2)
    """
    columns = tuple(columns)
    full = FeatureExpansion(columns=columns, degree=2)
    raw = FeatureExpansion(columns=columns)

    specs = [
        OLSSpec(name="simple", expansion=FeatureExpansion(columns=("x1",))),
        OLSSpec(name="true_form", expansion=FeatureExpansion(columns=("x1",), degree=2)),
        OLSSpec(name="full", expansion=full),
    ]
    if lambda_grid:
        specs.append(LassoSpec(name="lasso", expansion=full, lambdas=tuple(lambda_grid)))
    specs += [
        TreeSpec(name="tree", expansion=raw, max_depth=4),
        ForestSpec(name="forest", expansion=raw, n_estimators=50, max_features=0.5),
        BoostingSpec(name="boosting", expansion=raw, n_estimators=50, max_depth=2),
    ]
    return ModelFamily(specs)
