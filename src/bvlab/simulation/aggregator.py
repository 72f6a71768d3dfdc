"""
Bias–Variance Aggregator — reduces simulation records into statistics.

At one evaluation point, over the R retained runs of a model:

  p̄         = (1/R) Σ p_i
  bias²     = (p̄ - t)²
  variance  = (1/R) Σ (p_i - p̄)²
  MSE       = (1/R) Σ (p_i - t)²       ( = bias² + variance )

Several evaluation points are averaged with equal weights.  Records are
sorted on (model, lambda, point, run) before any arithmetic, so the
result does not depend on the order the runs finished in.
"""

from itertools import groupby
from typing import NamedTuple, Optional

import numpy as np

from bvlab.errors import AggregationMismatch
from bvlab.models.specs import canonical_lambda


class AggregateStatistic(NamedTuple):
    model: str
    lam: Optional[float]
    retained: int
    excluded: int
    mean_prediction: float
    true_value: float
    bias_sq: float
    variance: float
    mse: float
    mean_nonzero: Optional[float] = None


class NoData(NamedTuple):
    """Every run of this model was excluded; there is nothing to report."""

    model: str
    lam: Optional[float]
    excluded: int
    retained: int = 0


def _lam_order(lam):
    return (lam is not None, lam if lam is not None else 0.0)


def _sort_key(record):
    return (record.model, _lam_order(record.lam), record.point, record.run)


class BiasVarianceAggregator:
    def __init__(self, tolerance: float = 1e-9):
        self.tolerance = tolerance

    # ------------------------------------------------------------------
    # helpers
    # ------------------------------------------------------------------
    @staticmethod
    def _truth_at(ground_truth_at_point, point):
        if callable(ground_truth_at_point):
            return float(ground_truth_at_point(point))
        try:
            return float(ground_truth_at_point[point])
        except (KeyError, IndexError):
            raise AggregationMismatch(f"no true value for evaluation point {point}") from None

    def _check_identity(self, key, mse, bias_sq, variance, scale):
        gap = abs(mse - (bias_sq + variance))
        if gap > self.tolerance * max(1.0, scale):
            raise AggregationMismatch(
                f"{key}: MSE {mse!r} != bias² {bias_sq!r} + variance {variance!r} (gap {gap:.3e})"
            )

    # ------------------------------------------------------------------
    # core API
    # ------------------------------------------------------------------
    def aggregate_by_point(self, records, ground_truth_at_point) -> dict:
        """
        {(model, lambda, point): AggregateStatistic | NoData}

        ground_truth_at_point: sequence / mapping indexed by point, or a
        callable point -> true value.
        """
        rows = [r._replace(lam=canonical_lambda(r.lam)) for r in records]
        rows.sort(key=_sort_key)
        n_collected = len({r.run for r in rows})

        out = {}
        for (model, lam_key, point), group in groupby(
            rows, key=lambda r: (r.model, _lam_order(r.lam), r.point)
        ):
            group = list(group)
            lam = group[0].lam
            key = (model, lam, point)

            runs = [r.run for r in group]
            if len(set(runs)) != len(runs):
                raise AggregationMismatch(f"{key}: the same run appears more than once")
            if len(group) != n_collected:
                raise AggregationMismatch(
                    f"{key}: {len(group)} records but {n_collected} runs were collected "
                    f"(inconsistent lambda grouping?)"
                )

            kept = [r for r in group if not r.failed]
            excluded = len(group) - len(kept)
            if not kept:
                out[key] = NoData(model, lam, excluded)
                continue

            t = self._truth_at(ground_truth_at_point, point)
            p = np.array([r.prediction for r in kept], dtype=np.float64)
            p_bar = float(np.mean(p))
            bias_sq = (p_bar - t) ** 2
            variance = float(np.mean((p - p_bar) ** 2))
            mse = float(np.mean((p - t) ** 2))
            self._check_identity(key, mse, bias_sq, variance, max(mse, p_bar * p_bar, t * t))

            nonzero = [r.n_nonzero for r in kept if r.n_nonzero is not None]
            out[key] = AggregateStatistic(
                model=model,
                lam=lam,
                retained=len(kept),
                excluded=excluded,
                mean_prediction=p_bar,
                true_value=t,
                bias_sq=bias_sq,
                variance=variance,
                mse=mse,
                mean_nonzero=float(np.mean(nonzero)) if nonzero else None,
            )
        return out

    def aggregate(self, records, ground_truth_at_point, keys=None) -> dict:
        """
        {(model, lambda): AggregateStatistic | NoData}, averaged over eval points.

        `keys` lists the (model, lambda) pairs the study asked for; any pair
        without records (no run collected) is reported as NoData.
        """
        per_point = self.aggregate_by_point(records, ground_truth_at_point)

        out = {}
        for (model, lam_key), items in groupby(
            per_point.items(), key=lambda kv: (kv[0][0], _lam_order(kv[0][1]))
        ):
            stats = [s for _, s in items]
            lam = stats[0].lam
            key = (model, lam)

            if len({(s.retained, s.excluded) for s in stats}) != 1:
                raise AggregationMismatch(f"{key}: retained/excluded counts differ across eval points")
            if isinstance(stats[0], NoData):
                out[key] = NoData(model, lam, stats[0].excluded)
                continue

            bias_sq = float(np.mean([s.bias_sq for s in stats]))
            variance = float(np.mean([s.variance for s in stats]))
            mse = float(np.mean([s.mse for s in stats]))
            scale = max(max(s.mse, s.mean_prediction ** 2, s.true_value ** 2) for s in stats)
            self._check_identity(key, mse, bias_sq, variance, scale)

            nonzero = [s.mean_nonzero for s in stats if s.mean_nonzero is not None]
            out[key] = AggregateStatistic(
                model=model,
                lam=lam,
                retained=stats[0].retained,
                excluded=stats[0].excluded,
                mean_prediction=float(np.mean([s.mean_prediction for s in stats])),
                true_value=float(np.mean([s.true_value for s in stats])),
                bias_sq=bias_sq,
                variance=variance,
                mse=mse,
                mean_nonzero=float(np.mean(nonzero)) if nonzero else None,
            )

        for model, lam in keys or ():
            key = (model, canonical_lambda(lam))
            if key not in out:
                out[key] = NoData(model, key[1], excluded=0)
        return out


def aggregate(records, ground_truth_at_point, tolerance: float = 1e-9, keys=None) -> dict:
    return BiasVarianceAggregator(tolerance).aggregate(records, ground_truth_at_point, keys=keys)


def excluded_counts(stats) -> dict:
    """{(model, lambda): excluded run count}"""
    return {key: s.excluded for key, s in stats.items()}
