"""Pytest fixtures for bvlab tests."""

import pytest

from bvlab.data import DataGenerator
from bvlab.models import FeatureExpansion, LassoSpec, ModelFamily, OLSSpec

EVAL_ORIGIN = [{"x1": 0.0, "x2": 0.0}]


@pytest.fixture
def generator() -> DataGenerator:
    """Generator for y = x1² - 1.5·x1 with two uniform features."""
    return DataGenerator("quadratic_x1", n_features=2)


@pytest.fixture
def dataset(generator):
    return generator.generate(200, 0.5, seed=7)


@pytest.fixture
def simple_vs_full() -> ModelFamily:
    return ModelFamily(
        [
            OLSSpec(name="simple", expansion=FeatureExpansion(columns=("x1",))),
            OLSSpec(name="full", expansion=FeatureExpansion(columns=("x1", "x2"), degree=2)),
        ]
    )


@pytest.fixture
def lasso_family() -> ModelFamily:
    return ModelFamily(
        [
            LassoSpec(
                name="lasso",
                expansion=FeatureExpansion(columns=("x1", "x2"), degree=2),
                lambdas=(0.0, 0.05, 0.1, 0.2, 0.4),
            )
        ]
    )


@pytest.fixture
def origin():
    return list(EVAL_ORIGIN)
