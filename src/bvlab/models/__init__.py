# Model specs, regressors and the model family used by a simulation study

from .base import BaseModel
from .expansion import FeatureExpansion
from .family import FittedModel, ModelFamily, standard_family
from .linear import LassoPath, LinearRegressionOLS
from .specs import (
    LAMBDA_DECIMALS,
    BoostingSpec,
    ForestSpec,
    LassoSpec,
    ModelSpec,
    OLSSpec,
    TreeSpec,
    canonical_lambda,
    check_lambda,
    parse_spec,
)
from .trees import DecisionTreeModel, GradientBoostingModel, RandomForestModel

__all__ = [
    "BaseModel",
    "FeatureExpansion",
    "FittedModel",
    "ModelFamily",
    "standard_family",

    "LinearRegressionOLS",
    "LassoPath",
    "DecisionTreeModel",
    "RandomForestModel",
    "GradientBoostingModel",

    "ModelSpec",
    "OLSSpec",
    "LassoSpec",
    "TreeSpec",
    "ForestSpec",
    "BoostingSpec",
    "parse_spec",
    "canonical_lambda",
    "check_lambda",
    "LAMBDA_DECIMALS",
]
