"""
Simulation Runner — repeated draws, one model-family fit per draw.

Every run gets its own child seed spawned from the study seed, so runs are
independent, reproducible, and can execute in any order on any worker.
Parallel execution uses joblib in batches; a time budget stops launching
new batches (or runs) and simply truncates the record sequence.
"""

import time
from numbers import Integral

import numpy as np
import pandas as pd
from joblib import Parallel, delayed

from bvlab.data.generator import validate_generator_params
from bvlab.errors import DegenerateFit, InvalidParameter
from bvlab.models.family import draw_random_states
from bvlab.models.specs import canonical_lambda
from bvlab.simulation.records import SimulationRecord


def simulate_run(run, seed_seq, generator, n, noise_sd, family, eval_frame):
    """
    One repetition: draw a dataset, fit every spec, predict at every point.
    Pure function of its arguments.
    """
    rng = np.random.default_rng(seed_seq)
    dataset = generator.generate(n, noise_sd, rng=rng)
    states = draw_random_states(rng, len(family))

    records = []
    for spec, state in zip(family.specs, states):
        try:
            fitted = family.fit_one(spec.name, dataset, random_state=state)
        except DegenerateFit as exc:
            for lam in spec.path_lambdas():
                for point in range(len(eval_frame)):
                    records.append(
                        SimulationRecord(run, spec.name, point, None, lam=lam, error=str(exc))
                    )
            continue

        for lam, preds, n_nonzero in fitted.path_predict(eval_frame):
            for point, value in enumerate(preds):
                records.append(
                    SimulationRecord(
                        run,
                        spec.name,
                        point,
                        float(value),
                        lam=canonical_lambda(lam),
                        n_nonzero=n_nonzero,
                    )
                )
    return records


class SimulationRunner:
    def __init__(self, generator, verbose: bool = False, batch_size: int = 50, backend: str = "loky"):
        if not isinstance(batch_size, Integral) or batch_size < 1:
            raise InvalidParameter(f"batch_size must be a positive integer, got {batch_size!r}")
        self.generator = generator
        self.verbose = verbose
        self.batch_size = int(batch_size)
        self.backend = backend
        self.stopped_early = False

    def _log(self, msg):
        if self.verbose:
            print(msg)

    def eval_frame(self, eval_points) -> pd.DataFrame:
        """Evaluation points as a frame with the generator's column order."""
        points = list(eval_points) if eval_points is not None else []
        if not points:
            raise InvalidParameter("at least one evaluation point is required")

        names = self.generator.feature_names
        rows = []
        for i, point in enumerate(points):
            if isinstance(point, dict):
                unknown = [k for k in point if k not in names]
                missing = [k for k in names if k not in point]
                if unknown or missing:
                    raise InvalidParameter(
                        f"eval point {i} must give exactly {names} "
                        f"(missing {missing}, unknown {unknown})"
                    )
                rows.append([float(point[k]) for k in names])
            else:
                values = [float(v) for v in point]
                if len(values) != len(names):
                    raise InvalidParameter(
                        f"eval point {i} has {len(values)} values, expected {len(names)}"
                    )
                rows.append(values)
        return pd.DataFrame(rows, columns=names)

    def run(
        self,
        n_runs,
        generator_params,
        family,
        eval_points,
        seed=None,
        n_jobs: int = 1,
        time_budget=None,
    ) -> list:
        """
        Run the study and return records ordered by run index.

        generator_params: {"n": sample size, "noise_sd": label noise}
        """
        if not isinstance(n_runs, Integral) or isinstance(n_runs, bool) or n_runs <= 0:
            raise InvalidParameter(f"n_runs must be a positive integer, got {n_runs!r}")
        try:
            n = generator_params["n"]
            noise_sd = generator_params["noise_sd"]
        except KeyError as exc:
            raise InvalidParameter(f"generator_params is missing {exc}") from None
        validate_generator_params(n, noise_sd)
        if n_jobs == 0:
            raise InvalidParameter("n_jobs must be non-zero (use -1 for all cores)")
        if time_budget is not None and time_budget < 0:
            raise InvalidParameter(f"time_budget must be non-negative, got {time_budget!r}")

        missing = [c for c in family.required_columns() if c not in self.generator.feature_names]
        if missing:
            raise InvalidParameter(f"family uses columns {missing} the generator does not produce")
        eval_frame = self.eval_frame(eval_points)

        children = np.random.SeedSequence(seed).spawn(int(n_runs))
        self.stopped_early = False
        start = time.monotonic()

        def out_of_time():
            return time_budget is not None and time.monotonic() - start >= time_budget

        self._log(
            f"   🚀 Simulating {n_runs} runs: n={n}, noise_sd={noise_sd}, "
            f"{len(family)} models, {len(eval_frame)} eval point(s), n_jobs={n_jobs}"
        )

        records = []
        runs_done = 0
        if n_jobs == 1:
            for run, child in enumerate(children):
                if out_of_time():
                    self.stopped_early = True
                    break
                records.extend(
                    simulate_run(run, child, self.generator, n, noise_sd, family, eval_frame)
                )
                runs_done += 1
                if run % max(1, n_runs // 5) == 0:
                    self._log(f"      Run {run:>5d}/{n_runs}")
        else:
            for batch_start in range(0, n_runs, self.batch_size):
                if out_of_time():
                    self.stopped_early = True
                    break
                batch = range(batch_start, min(batch_start + self.batch_size, n_runs))
                batch_records = Parallel(n_jobs=n_jobs, backend=self.backend, verbose=0)(
                    delayed(simulate_run)(
                        run, children[run], self.generator, n, noise_sd, family, eval_frame
                    )
                    for run in batch
                )
                for run_records in batch_records:
                    records.extend(run_records)
                runs_done += len(batch)
                self._log(f"      Runs {runs_done:>5d}/{n_runs} done")

        if self.stopped_early:
            self._log(f"   ⏱️  Time budget reached after {runs_done}/{n_runs} runs")
        n_failed = sum(1 for r in records if r.failed)
        if n_failed:
            self._log(f"   ⚠️  {n_failed} records from degenerate fits (excluded from aggregation)")
        self._log(f"   ✅ Simulation complete — {len(records):,} records")
        return records
