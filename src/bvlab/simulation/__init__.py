from .aggregator import AggregateStatistic, BiasVarianceAggregator, NoData, aggregate, excluded_counts
from .records import SimulationRecord, records_to_frame
from .report import StudyReport
from .runner import SimulationRunner, simulate_run
from .study import run_study

__all__ = [
    "AggregateStatistic",
    "BiasVarianceAggregator",
    "NoData",
    "aggregate",
    "excluded_counts",
    "SimulationRecord",
    "records_to_frame",
    "StudyReport",
    "SimulationRunner",
    "simulate_run",
    "run_study",
]
