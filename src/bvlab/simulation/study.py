"""
One-call study: DataGenerator → ModelFamily → SimulationRunner →
BiasVarianceAggregator, driven by a StudyConfig.
"""

from bvlab.config import StudyConfig
from bvlab.data.generator import DataGenerator
from bvlab.models.family import standard_family
from bvlab.simulation.aggregator import BiasVarianceAggregator
from bvlab.simulation.report import StudyReport
from bvlab.simulation.runner import SimulationRunner


def run_study(config: StudyConfig = None, family=None, verbose: bool = False, backend: str = "loky") -> StudyReport:
    config = config or StudyConfig.build()
    generator = DataGenerator(
        config.ground_truth,
        n_features=config.n_features,
        low=config.feature_low,
        high=config.feature_high,
    )
    if family is None:
        family = standard_family(config.lambda_grid)

    if verbose:
        print("=" * 60)
        print("  BIAS–VARIANCE SIMULATION STUDY")
        print(f"  {generator.ground_truth.formula}")
        print("=" * 60)
        for spec in family:
            print(f"   {spec.name:<12} {spec.describe()}")

    runner = SimulationRunner(generator, verbose=verbose, backend=backend)
    records = runner.run(
        config.n_runs,
        config.generator_params,
        family,
        config.eval_points,
        seed=config.seed,
        n_jobs=config.n_jobs,
        time_budget=config.time_budget,
    )

    eval_frame = runner.eval_frame(config.eval_points)
    true_values = list(generator.ground_truth(eval_frame))
    keys = [(spec.name, lam) for spec in family for lam in spec.path_lambdas()]
    stats = BiasVarianceAggregator().aggregate(records, true_values, keys=keys)

    return StudyReport(
        config,
        records,
        stats,
        true_values,
        model_order=family.names,
        stopped_early=runner.stopped_early,
    )
