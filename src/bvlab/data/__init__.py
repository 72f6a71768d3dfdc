from .generator import (
    GROUND_TRUTHS,
    DataGenerator,
    Dataset,
    GroundTruth,
    feature_columns,
    get_ground_truth,
)

__all__ = [
    "GROUND_TRUTHS",
    "DataGenerator",
    "Dataset",
    "GroundTruth",
    "feature_columns",
    "get_ground_truth",
]
