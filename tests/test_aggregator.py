"""Tests for the bias–variance aggregation."""

import random

import numpy as np
import pytest

from bvlab.errors import AggregationMismatch
from bvlab.simulation import (
    AggregateStatistic,
    BiasVarianceAggregator,
    NoData,
    SimulationRecord,
    SimulationRunner,
    aggregate,
    excluded_counts,
)


def _records(model, preds, point=0, lam=None):
    return [SimulationRecord(run, model, point, p, lam=lam) for run, p in enumerate(preds)]


class TestStatistics:
    def test_hand_computed_values(self) -> None:
        records = _records("m", [1.0, 2.0, 3.0, 6.0])
        stat = aggregate(records, [2.0])[("m", None)]

        assert stat.retained == 4 and stat.excluded == 0
        assert stat.mean_prediction == pytest.approx(3.0)
        assert stat.bias_sq == pytest.approx(1.0)
        assert stat.variance == pytest.approx(3.5)
        assert stat.mse == pytest.approx(4.5)

    def test_identity_holds_on_simulated_records(self, generator, simple_vs_full, lasso_family) -> None:
        points = [{"x1": 0.0, "x2": 0.0}, {"x1": 0.3, "x2": 0.8}]
        runner = SimulationRunner(generator)
        records = runner.run(60, {"n": 40, "noise_sd": 1.0}, simple_vs_full, points, seed=21)
        records += runner.run(60, {"n": 40, "noise_sd": 1.0}, lasso_family, points, seed=21)
        truths = list(generator.ground_truth(runner.eval_frame(points)))

        for stats in (
            BiasVarianceAggregator().aggregate(records, truths),
            BiasVarianceAggregator().aggregate_by_point(records, truths),
        ):
            for s in stats.values():
                scale = max(1.0, s.mse)
                assert abs(s.mse - (s.bias_sq + s.variance)) < 1e-9 * scale

    def test_points_are_averaged(self) -> None:
        records = _records("m", [1.0, 3.0], point=0) + _records("m", [0.0, 0.0], point=1)
        by_point = BiasVarianceAggregator().aggregate_by_point(records, {0: 0.0, 1: 1.0})
        assert by_point[("m", None, 0)].mse == pytest.approx(5.0)
        assert by_point[("m", None, 1)].mse == pytest.approx(1.0)

        stat = aggregate(records, {0: 0.0, 1: 1.0})[("m", None)]
        assert stat.mse == pytest.approx(3.0)
        assert stat.retained == 2

    def test_truth_as_callable(self) -> None:
        records = _records("m", [1.0, 1.0])
        stat = aggregate(records, lambda point: 0.0)[("m", None)]
        assert stat.bias_sq == pytest.approx(1.0)
        assert stat.variance == 0.0

    def test_missing_truth(self) -> None:
        with pytest.raises(AggregationMismatch):
            aggregate(_records("m", [1.0], point=3), [0.0])

    def test_mean_nonzero(self) -> None:
        records = [
            SimulationRecord(0, "l", 0, 1.0, lam=0.1, n_nonzero=2),
            SimulationRecord(1, "l", 0, 1.0, lam=0.1, n_nonzero=4),
        ]
        assert aggregate(records, [0.0])[("l", 0.1)].mean_nonzero == pytest.approx(3.0)


class TestOrderIndependence:
    def test_permutation_invariant(self, generator, lasso_family, origin) -> None:
        records = SimulationRunner(generator).run(40, {"n": 30, "noise_sd": 1.0}, lasso_family, origin, seed=22)
        expected = aggregate(records, [0.0])

        shuffled = list(records)
        for seed in range(5):
            random.Random(seed).shuffle(shuffled)
            assert aggregate(shuffled, [0.0]) == expected

    def test_input_not_mutated(self) -> None:
        records = _records("m", [3.0, 1.0, 2.0])
        snapshot = list(records)
        aggregate(list(reversed(records)), [0.0])
        assert records == snapshot


class TestExclusion:
    def test_failed_runs_are_excluded_and_counted(self) -> None:
        records = _records("m", [1.0, 2.0, 3.0, 4.0, 5.0])
        records[1] = records[1]._replace(prediction=None, error="singular")
        records[3] = records[3]._replace(prediction=None, error="singular")

        stats = aggregate(records, [0.0])
        stat = stats[("m", None)]
        assert stat.retained == 3
        assert stat.excluded == 2
        assert stat.mean_prediction == pytest.approx(3.0)
        assert excluded_counts(stats) == {("m", None): 2}

    def test_all_excluded_is_no_data(self) -> None:
        records = [SimulationRecord(run, "m", 0, None, error="singular") for run in range(3)]
        stat = aggregate(records, [0.0])[("m", None)]
        assert isinstance(stat, NoData)
        assert stat.excluded == 3
        assert stat.retained == 0

    def test_empty_records(self) -> None:
        assert aggregate([], [0.0]) == {}

    def test_requested_keys_without_records_are_no_data(self) -> None:
        stats = aggregate([], [0.0], keys=[("m", None), ("l", 0.1 + 1e-12)])
        assert stats == {("m", None): NoData("m", None, excluded=0), ("l", 0.1): NoData("l", 0.1, excluded=0)}

    def test_requested_keys_keep_computed_statistics(self) -> None:
        records = _records("m", [1.0, 3.0])
        stats = aggregate(records, [0.0], keys=[("m", None)])
        assert isinstance(stats[("m", None)], AggregateStatistic)
        assert stats[("m", None)].retained == 2


class TestLambdaGrouping:
    def test_near_equal_lambdas_share_a_bucket(self) -> None:
        records = [
            SimulationRecord(0, "l", 0, 1.0, lam=0.1),
            SimulationRecord(1, "l", 0, 2.0, lam=0.1 + 1e-12),
            SimulationRecord(2, "l", 0, 3.0, lam=0.30000000000000004 - 0.2),
        ]
        stats = aggregate(records, [0.0])
        assert list(stats) == [("l", 0.1)]
        assert stats[("l", 0.1)].retained == 3

    def test_split_bucket_is_a_mismatch(self) -> None:
        records = [
            SimulationRecord(0, "l", 0, 1.0, lam=0.1),
            SimulationRecord(1, "l", 0, 2.0, lam=0.1001),
            SimulationRecord(0, "m", 0, 1.0),
            SimulationRecord(1, "m", 0, 2.0),
        ]
        with pytest.raises(AggregationMismatch):
            aggregate(records, [0.0])

    def test_duplicate_run_is_a_mismatch(self) -> None:
        records = [SimulationRecord(0, "l", 0, 1.0, lam=0.1), SimulationRecord(0, "l", 0, 1.0, lam=0.1 + 1e-12)]
        with pytest.raises(AggregationMismatch):
            aggregate(records, [0.0])


class TestIdentityCheck:
    def test_tolerance_violation_is_raised(self, monkeypatch) -> None:
        real_mean = np.mean
        calls = {"n": 0}

        def skewed_mean(values, *args, **kwargs):
            calls["n"] += 1
            result = real_mean(values, *args, **kwargs)
            # third mean in a bucket is the MSE
            return result + 1.0 if calls["n"] == 3 else result

        monkeypatch.setattr("bvlab.simulation.aggregator.np.mean", skewed_mean)
        with pytest.raises(AggregationMismatch):
            aggregate(_records("m", [1.0, 2.0]), [0.0])

    def test_statistics_are_plain_values(self) -> None:
        stat = aggregate(_records("m", [1.0, 2.0]), [0.0])[("m", None)]
        assert isinstance(stat, AggregateStatistic)
        assert all(isinstance(v, float) for v in (stat.bias_sq, stat.variance, stat.mse))
