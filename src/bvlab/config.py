"""
Study configuration.

Defaults can be overridden from the environment (BVLAB_*), and explicit
keyword arguments override both:

    config = StudyConfig.from_env(n_runs=200, lambda_grid=(0.0, 0.1))
"""

import os
from typing import Dict, Optional, Tuple

from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator

from bvlab.errors import InvalidParameter
from bvlab.models.specs import check_lambda

# field name -> environment variable
ENV_VARS = {
    "n": "BVLAB_N",
    "n_runs": "BVLAB_N_RUNS",
    "noise_sd": "BVLAB_NOISE_SD",
    "seed": "BVLAB_SEED",
    "n_jobs": "BVLAB_N_JOBS",
    "ground_truth": "BVLAB_GROUND_TRUTH",
}

MLFLOW_URI = os.getenv("MLFLOW_TRACKING_URI")
MLFLOW_EXPERIMENT = os.getenv("MLFLOW_EXPERIMENT", "Bias_Variance_Study")


class StudyConfig(BaseModel):
    model_config = ConfigDict(frozen=True, extra="forbid")

    n: int = Field(default=100, gt=0)
    n_runs: int = Field(default=1000, gt=0)
    noise_sd: float = Field(default=1.0, ge=0, allow_inf_nan=False)
    lambda_grid: Optional[Tuple[float, ...]] = None
    eval_points: Tuple[Dict[str, float], ...] = ({"x1": 0.0, "x2": 0.0},)
    seed: Optional[int] = None

    ground_truth: str = "quadratic_x1"
    n_features: int = Field(default=2, ge=1)
    feature_low: float = 0.0
    feature_high: float = 1.0
    n_jobs: int = 1
    time_budget: Optional[float] = Field(default=None, ge=0)

    @field_validator("lambda_grid")
    @classmethod
    def _check_lambdas(cls, grid):
        if grid is not None:
            if not grid:
                raise ValueError("lambda_grid must not be empty")
            for lam in grid:
                check_lambda(lam)
        return grid

    @field_validator("eval_points")
    @classmethod
    def _check_points(cls, points):
        if not points:
            raise ValueError("at least one evaluation point is required")
        return points

    @field_validator("n_jobs")
    @classmethod
    def _check_jobs(cls, n_jobs):
        if n_jobs == 0:
            raise ValueError("n_jobs must be non-zero (use -1 for all cores)")
        return n_jobs

    @classmethod
    def build(cls, **kwargs) -> "StudyConfig":
        """Validate, reporting problems as InvalidParameter."""
        try:
            return cls(**kwargs)
        except ValidationError as exc:
            raise InvalidParameter(f"invalid study configuration: {exc}") from exc

    @classmethod
    def from_env(cls, environ=None, **overrides) -> "StudyConfig":
        environ = os.environ if environ is None else environ
        values = {}
        for field, var in ENV_VARS.items():
            raw = environ.get(var)
            if raw not in (None, ""):
                values[field] = raw
        values.update({k: v for k, v in overrides.items() if v is not None})
        return cls.build(**values)

    @property
    def generator_params(self) -> dict:
        return {"n": self.n, "noise_sd": self.noise_sd}
