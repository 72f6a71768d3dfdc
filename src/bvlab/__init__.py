"""
Bias–variance simulation lab.

Generate data from a known ground truth, fit a family of models of varying
flexibility, repeat, and decompose the error at fixed points into
bias², variance and MSE.
"""

from .config import StudyConfig
from .data import DataGenerator, Dataset, GroundTruth, get_ground_truth
from .errors import AggregationMismatch, BiasVarianceError, DegenerateFit, InvalidParameter
from .models import FeatureExpansion, ModelFamily, standard_family
from .simulation import (
    AggregateStatistic,
    BiasVarianceAggregator,
    NoData,
    SimulationRecord,
    SimulationRunner,
    StudyReport,
    aggregate,
    run_study,
)

__version__ = "0.1.0"

__all__ = [
    "StudyConfig",
    "DataGenerator",
    "Dataset",
    "GroundTruth",
    "get_ground_truth",
    "FeatureExpansion",
    "ModelFamily",
    "standard_family",
    "SimulationRecord",
    "SimulationRunner",
    "BiasVarianceAggregator",
    "AggregateStatistic",
    "NoData",
    "aggregate",
    "StudyReport",
    "run_study",
    "BiasVarianceError",
    "InvalidParameter",
    "DegenerateFit",
    "AggregationMismatch",
]
