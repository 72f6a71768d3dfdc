"""
Model specs — immutable, named descriptions of how to fit one model variant.

A spec is one variant of a tagged union (discriminated on `kind`):

  ols       ordinary least squares on the expanded features
  lasso     L1-penalized regression over a lambda grid
  tree      single regression tree
  forest    random forest
  boosting  gradient boosting

Each spec carries its FeatureExpansion, so the basis used at fit time is
the basis used at predict time.
"""

import math
from abc import abstractmethod
from typing import Annotated, Literal, Optional, Tuple, Union

from pydantic import BaseModel, ConfigDict, Field, TypeAdapter, ValidationError, field_validator

from bvlab.errors import InvalidParameter
from bvlab.models.expansion import FeatureExpansion
from bvlab.models.linear import LassoPath, LinearRegressionOLS
from bvlab.models.trees import DecisionTreeModel, GradientBoostingModel, RandomForestModel

# lambdas are grouped on this many decimals
LAMBDA_DECIMALS = 8


def canonical_lambda(lam):
    """Round a penalty to the grouping precision; None stays None."""
    if lam is None:
        return None
    # + 0.0 folds -0.0 into 0.0
    return round(float(lam), LAMBDA_DECIMALS) + 0.0


def check_lambda(lam):
    """Raise ValueError for a penalty the lambda grid cannot represent."""
    if not math.isfinite(lam) or lam < 0:
        raise ValueError(f"lambda must be finite and non-negative, got {lam}")
    if lam > 0 and canonical_lambda(lam) == 0.0:
        raise ValueError(
            f"lambda {lam} is below the resolution 1e-{LAMBDA_DECIMALS} and would be fitted unpenalized"
        )


class _Spec(BaseModel):
    """
    The Contract: every model variant is named, carries its expansion and
    knows how to build a fresh regressor.
    """

    model_config = ConfigDict(frozen=True, extra="forbid")

    name: str = Field(min_length=1)
    expansion: FeatureExpansion

    @abstractmethod
    def build(self, random_state=None):
        """Return an unfitted BaseModel for one simulation run."""

    def path_lambdas(self):
        """Lambda keys this spec produces records for."""
        return (None,)

    def describe(self) -> str:
        return f"{self.kind}[{self.expansion.describe()}]"


class OLSSpec(_Spec):
    kind: Literal["ols"] = "ols"

    def build(self, random_state=None):
        return LinearRegressionOLS()


class LassoSpec(_Spec):
    kind: Literal["lasso"] = "lasso"
    lambdas: Tuple[float, ...] = (0.0,)
    standardize: bool = True
    max_iter: int = Field(default=10000, ge=1)
    tol: float = Field(default=1e-10, gt=0)

    @field_validator("lambdas", mode="before")
    @classmethod
    def _scalar_lambda(cls, value):
        if isinstance(value, (int, float)):
            return (value,)
        return value

    @field_validator("lambdas")
    @classmethod
    def _canonical_grid(cls, lambdas):
        if not lambdas:
            raise ValueError("lambda grid is empty")
        for lam in lambdas:
            check_lambda(lam)
        return tuple(sorted({canonical_lambda(lam) for lam in lambdas}))

    def build(self, random_state=None):
        return LassoPath(self.lambdas, standardize=self.standardize, max_iter=self.max_iter, tol=self.tol)

    def path_lambdas(self):
        return self.lambdas


class TreeSpec(_Spec):
    kind: Literal["tree"] = "tree"
    max_depth: Optional[int] = Field(default=None, ge=1)
    min_samples_leaf: int = Field(default=5, ge=1)

    def build(self, random_state=None):
        return DecisionTreeModel(
            max_depth=self.max_depth,
            min_samples_leaf=self.min_samples_leaf,
            random_state=random_state,
        )


class ForestSpec(_Spec):
    kind: Literal["forest"] = "forest"
    n_estimators: int = Field(default=100, ge=1)
    max_depth: Optional[int] = Field(default=None, ge=1)
    min_samples_leaf: int = Field(default=5, ge=1)
    max_features: Union[float, Literal["sqrt", "log2"]] = 1.0
    max_samples: Optional[float] = Field(default=None, gt=0, le=1)

    def build(self, random_state=None):
        return RandomForestModel(
            n_estimators=self.n_estimators,
            max_depth=self.max_depth,
            min_samples_leaf=self.min_samples_leaf,
            max_features=self.max_features,
            max_samples=self.max_samples,
            random_state=random_state,
        )


class BoostingSpec(_Spec):
    kind: Literal["boosting"] = "boosting"
    n_estimators: int = Field(default=100, ge=1)
    learning_rate: float = Field(default=0.1, gt=0)
    max_depth: int = Field(default=3, ge=1)
    subsample: float = Field(default=1.0, gt=0, le=1)

    def build(self, random_state=None):
        return GradientBoostingModel(
            n_estimators=self.n_estimators,
            learning_rate=self.learning_rate,
            max_depth=self.max_depth,
            subsample=self.subsample,
            random_state=random_state,
        )


ModelSpec = Annotated[
    Union[OLSSpec, LassoSpec, TreeSpec, ForestSpec, BoostingSpec],
    Field(discriminator="kind"),
]

_spec_adapter = TypeAdapter(ModelSpec)


def parse_spec(spec) -> _Spec:
    """Accept a spec instance or a plain dict such as {"kind": "ols", ...}."""
    if isinstance(spec, _Spec):
        return spec
    try:
        return _spec_adapter.validate_python(spec)
    except ValidationError as exc:
        raise InvalidParameter(f"invalid model spec {spec!r}: {exc}") from exc
