"""
Bias–variance study from the command line.

Usage:
    bvlab --n-runs 1000 --noise-sd 1.0 --eval-point x1=0,x2=0
    bvlab --lambda-grid 0,0.05,0.1,0.2,0.4 --output reports/bias_variance.csv
    bvlab --mlflow                      # logs to $MLFLOW_TRACKING_URI

Defaults come from BVLAB_* environment variables, flags override them.
"""

import argparse
import sys

from bvlab.config import StudyConfig
from bvlab.errors import BiasVarianceError, InvalidParameter
from bvlab.simulation.study import run_study


def _float_list(text):
    try:
        return tuple(float(v) for v in text.split(",") if v.strip())
    except ValueError:
        raise argparse.ArgumentTypeError(f"expected comma-separated numbers, got '{text}'")


def _eval_point(text):
    point = {}
    for part in text.split(","):
        name, sep, value = part.partition("=")
        if not sep:
            raise argparse.ArgumentTypeError(f"expected name=value pairs, got '{text}'")
        try:
            point[name.strip()] = float(value)
        except ValueError:
            raise argparse.ArgumentTypeError(f"not a number: '{value}'")
    return point


def build_parser():
    parser = argparse.ArgumentParser(
        prog="bvlab", description="Monte-Carlo bias–variance decomposition study"
    )
    parser.add_argument("--n", type=int, default=None, help="sample size per run")
    parser.add_argument("--n-runs", type=int, default=None, help="number of simulated datasets")
    parser.add_argument("--noise-sd", type=float, default=None, help="label noise standard deviation")
    parser.add_argument("--lambda-grid", type=_float_list, default=None,
                        help="comma-separated LASSO penalties (adds the lasso model)")
    parser.add_argument("--eval-point", type=_eval_point, action="append", default=None,
                        help="evaluation point as x1=0,x2=0 (repeatable)")
    parser.add_argument("--seed", type=int, default=None, help="study seed for reproducibility")
    parser.add_argument("--ground-truth", type=str, default=None,
                        help="ground truth name (quadratic_x1, quadratic_x2)")
    parser.add_argument("--n-jobs", type=int, default=None, help="parallel workers (-1 = all cores)")
    parser.add_argument("--time-budget", type=float, default=None,
                        help="stop launching runs after this many seconds")
    parser.add_argument("--output", type=str, default=None, help="write the result table to CSV")
    parser.add_argument("--mlflow", action="store_true", help="log the study to MLflow")
    parser.add_argument("--experiment", type=str, default=None, help="MLflow experiment name")
    parser.add_argument("--quiet", action="store_true", help="only print the result table")
    return parser


def main(argv=None) -> int:
    args = build_parser().parse_args(argv)

    try:
        config = StudyConfig.from_env(
            n=args.n,
            n_runs=args.n_runs,
            noise_sd=args.noise_sd,
            lambda_grid=args.lambda_grid,
            eval_points=tuple(args.eval_point) if args.eval_point else None,
            seed=args.seed,
            ground_truth=args.ground_truth,
            n_jobs=args.n_jobs,
            time_budget=args.time_budget,
        )
        report = run_study(config, verbose=not args.quiet)
    except InvalidParameter as exc:
        print(f"❌ Invalid parameter: {exc}", file=sys.stderr)
        return 2
    except BiasVarianceError as exc:
        print(f"❌ Study failed: {exc}", file=sys.stderr)
        return 1

    report.print_table()

    if args.output:
        report.to_csv(args.output)
        print(f"\n💾 Results saved to {args.output}")
    if args.mlflow:
        report.log_to_mlflow(experiment=args.experiment)
        print("📈 Logged to MLflow")
    return 0


if __name__ == "__main__":
    sys.exit(main())
