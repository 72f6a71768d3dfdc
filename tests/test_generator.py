"""Tests for synthetic data generation."""

import numpy as np
import pandas as pd
import pytest

from bvlab.data import DataGenerator, Dataset, GroundTruth, get_ground_truth
from bvlab.errors import InvalidParameter


class TestGroundTruth:
    def test_quadratic_x1_values(self) -> None:
        gt = get_ground_truth("quadratic_x1")
        frame = pd.DataFrame({"x1": [0.0, 1.0, 0.5], "x2": [0.3, 0.3, 0.3]})
        np.testing.assert_allclose(gt(frame), [0.0, -0.5, -0.5])

    def test_quadratic_x2_uses_second_feature(self) -> None:
        gt = get_ground_truth("quadratic_x2")
        assert gt.at({"x1": 1.0, "x2": 0.0}) == 1.0
        assert gt.at({"x1": 0.0, "x2": 1.0}) == -1.5

    def test_unknown_name(self) -> None:
        with pytest.raises(InvalidParameter):
            get_ground_truth("cubic")

    def test_missing_column(self) -> None:
        gt = get_ground_truth("quadratic_x2")
        with pytest.raises(InvalidParameter):
            gt(pd.DataFrame({"x1": [0.1]}))


class TestDataGenerator:
    def test_shape_and_schema(self, generator) -> None:
        ds = generator.generate(50, 1.0, seed=1)
        assert len(ds) == 50
        assert ds.feature_names == ["x1", "x2"]
        assert list(ds.frame.columns) == ["x1", "x2", "y"]

    def test_features_in_unit_interval(self, generator) -> None:
        ds = generator.generate(500, 1.0, seed=2)
        X = ds.features.to_numpy()
        assert X.min() >= 0.0
        assert X.max() <= 1.0

    def test_custom_range(self) -> None:
        gen = DataGenerator("quadratic_x1", n_features=1, low=-2.0, high=-1.0)
        X = gen.generate(100, 0.0, seed=3).features.to_numpy()
        assert X.min() >= -2.0 and X.max() <= -1.0

    def test_zero_noise_is_exact_ground_truth(self, generator) -> None:
        ds = generator.generate(100, 0.0, seed=4)
        expected = generator.ground_truth(ds.features)
        assert np.array_equal(ds.target, expected)

    def test_zero_noise_without_seed(self, generator) -> None:
        ds = generator.generate(30, 0, rng=np.random.default_rng())
        assert np.array_equal(ds.target, generator.ground_truth(ds.features))

    def test_same_seed_bit_identical(self, generator) -> None:
        a = generator.generate(100, 0.7, seed=123)
        b = generator.generate(100, 0.7, seed=123)
        assert a == b
        assert a.frame.to_numpy().tobytes() == b.frame.to_numpy().tobytes()

    def test_different_seeds_differ(self, generator) -> None:
        a = generator.generate(100, 0.7, seed=1)
        b = generator.generate(100, 0.7, seed=2)
        assert a != b

    def test_noise_scale(self, generator) -> None:
        ds = generator.generate(20000, 2.0, seed=5)
        residual = ds.target - generator.ground_truth(ds.features)
        assert abs(residual.std() - 2.0) < 0.05
        assert abs(residual.mean()) < 0.05

    @pytest.mark.parametrize("n", [0, -5, 2.5, True])
    def test_invalid_n(self, generator, n) -> None:
        with pytest.raises(InvalidParameter):
            generator.generate(n, 1.0, seed=0)

    @pytest.mark.parametrize("noise_sd", [-0.1, float("nan"), float("inf")])
    def test_invalid_noise(self, generator, noise_sd) -> None:
        with pytest.raises(InvalidParameter):
            generator.generate(10, noise_sd, seed=0)

    def test_ground_truth_needs_generated_columns(self) -> None:
        with pytest.raises(InvalidParameter):
            DataGenerator("quadratic_x2", n_features=1)

    def test_bad_range(self) -> None:
        with pytest.raises(InvalidParameter):
            DataGenerator("quadratic_x1", low=1.0, high=1.0)

    def test_custom_ground_truth(self) -> None:
        gt = GroundTruth("linear", lambda df: 2.0 * df["x1"].to_numpy() + 1.0, columns=("x1",))
        gen = DataGenerator(gt, n_features=1)
        ds = gen.generate(10, 0.0, seed=9)
        np.testing.assert_allclose(ds.target, 2.0 * ds.frame["x1"].to_numpy() + 1.0)


class TestDataset:
    def test_requires_target(self) -> None:
        with pytest.raises(InvalidParameter):
            Dataset(pd.DataFrame({"x1": [1.0]}), ["x1"])

    def test_requires_features(self) -> None:
        with pytest.raises(InvalidParameter):
            Dataset(pd.DataFrame({"x1": [1.0], "y": [2.0]}), ["x1", "x2"])

    def test_column_order_follows_feature_names(self) -> None:
        frame = pd.DataFrame({"y": [0.0], "x2": [2.0], "x1": [1.0]})
        ds = Dataset(frame, ["x1", "x2"])
        assert list(ds.frame.columns) == ["x1", "x2", "y"]
