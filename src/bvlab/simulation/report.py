"""
Study report — the aggregate statistics as a comparison table, with
optional CSV export and MLflow logging.
"""

import os

import numpy as np
import pandas as pd

from bvlab.config import MLFLOW_EXPERIMENT, MLFLOW_URI
from bvlab.simulation.aggregator import NoData, excluded_counts
from bvlab.simulation.records import records_to_frame

REPORT_COLUMNS = [
    "model",
    "lambda",
    "retained",
    "excluded",
    "mean_prediction",
    "true_value",
    "bias_sq",
    "variance",
    "mse",
    "mean_nonzero",
]


class StudyReport:
    def __init__(self, config, records, stats, true_values, model_order=None, stopped_early=False):
        self.config = config
        self.records = records
        self.stats = stats
        self.true_values = list(true_values)
        self.model_order = list(model_order) if model_order else None
        self.stopped_early = stopped_early

    @property
    def n_runs_collected(self) -> int:
        return len({r.run for r in self.records})

    def __getitem__(self, key):
        """report["simple"] or report[("lasso", 0.1)]"""
        if not isinstance(key, tuple):
            key = (key, None)
        return self.stats[key]

    def excluded_counts(self) -> dict:
        return excluded_counts(self.stats)

    def no_data(self) -> list:
        return [key for key, s in self.stats.items() if isinstance(s, NoData)]

    def to_frame(self) -> pd.DataFrame:
        rows = []
        for (model, lam), s in self.stats.items():
            row = {"model": model, "lambda": lam, "retained": s.retained, "excluded": s.excluded}
            if isinstance(s, NoData):
                row.update({c: np.nan for c in REPORT_COLUMNS[4:]})
                row["status"] = "NoData"
            else:
                row.update(
                    {
                        "mean_prediction": s.mean_prediction,
                        "true_value": s.true_value,
                        "bias_sq": s.bias_sq,
                        "variance": s.variance,
                        "mse": s.mse,
                        "mean_nonzero": s.mean_nonzero,
                    }
                )
                row["status"] = "ok"
            rows.append(row)

        df = pd.DataFrame(rows, columns=REPORT_COLUMNS + ["status"])
        if self.model_order:
            rank = {m: i for i, m in enumerate(self.model_order)}
            df["_rank"] = df["model"].map(rank).fillna(len(rank))
            df = df.sort_values(["_rank", "lambda"], kind="mergesort").drop(columns="_rank")
        return df.reset_index(drop=True)

    def records_frame(self) -> pd.DataFrame:
        return records_to_frame(self.records)

    # ------------------------------------------------------------------
    # output
    # ------------------------------------------------------------------
    def print_table(self):
        print("\n" + "=" * 60)
        print("  📊 BIAS–VARIANCE RESULTS")
        print("=" * 60)

        table = []
        for _, r in self.to_frame().iterrows():
            if r["status"] == "NoData":
                bias_sq = variance = mse = "NoData"
            else:
                bias_sq, variance, mse = f"{r['bias_sq']:.5f}", f"{r['variance']:.5f}", f"{r['mse']:.5f}"
            table.append(
                {
                    "Model": r["model"],
                    "λ": "" if pd.isna(r["lambda"]) else f"{r['lambda']:g}",
                    "Runs": int(r["retained"]),
                    "Excluded": int(r["excluded"]),
                    "Bias²": bias_sq,
                    "Variance": variance,
                    "MSE": mse,
                }
            )
        print(pd.DataFrame(table).to_string(index=False))

        if self.stopped_early:
            print(f"\n⏱️  Stopped early: {self.n_runs_collected} runs collected")

        ok = [s for s in self.stats.values() if not isinstance(s, NoData)]
        if ok:
            best = min(ok, key=lambda s: s.mse)
            lam = "" if best.lam is None else f" (λ={best.lam:g})"
            print(f"\n🏆 Lowest MSE: {best.model}{lam} (MSE={best.mse:.5f})")

    def to_csv(self, path) -> str:
        directory = os.path.dirname(os.path.abspath(path))
        os.makedirs(directory, exist_ok=True)
        self.to_frame().to_csv(path, index=False)
        return path

    def log_to_mlflow(self, experiment=None, tracking_uri=None, run_name="bias_variance_study"):
        """Log the config as params and every statistic as a metric."""
        import mlflow

        tracking_uri = tracking_uri or MLFLOW_URI
        if tracking_uri:
            mlflow.set_tracking_uri(tracking_uri)
        mlflow.set_experiment(experiment or MLFLOW_EXPERIMENT)

        with mlflow.start_run(run_name=run_name):
            if self.config is not None:
                for key, value in self.config.model_dump().items():
                    mlflow.log_param(key, str(value))
            mlflow.log_param("runs_collected", self.n_runs_collected)

            for (model, lam), s in self.stats.items():
                name = model if lam is None else f"{model}_lambda_{lam:g}"
                mlflow.log_metric(f"{name}_excluded", s.excluded)
                if isinstance(s, NoData):
                    continue
                mlflow.log_metric(f"{name}_bias_sq", s.bias_sq)
                mlflow.log_metric(f"{name}_variance", s.variance)
                mlflow.log_metric(f"{name}_mse", s.mse)
