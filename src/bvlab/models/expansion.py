"""
Feature expansion bound to a model spec.

A FeatureExpansion selects input columns in a fixed order and builds the
polynomial basis on top of them.  The same object expands the training
data and every later prediction input, so the basis and the column order
cannot drift between fit and predict.

For degree=2 with columns [x1, x2]:
  → [x1, x2, x1*x1, x1*x2, x2*x2]
With interaction_only=True:
  → [x1, x2, x1*x2]
"""

from itertools import combinations, combinations_with_replacement
from typing import Tuple

import numpy as np
import pandas as pd
from pydantic import BaseModel, ConfigDict, Field, field_validator

from bvlab.errors import InvalidParameter


class FeatureExpansion(BaseModel):
    model_config = ConfigDict(frozen=True, extra="forbid")

    columns: Tuple[str, ...] = Field(min_length=1)
    degree: int = Field(default=1, ge=1)
    interaction_only: bool = False

    @field_validator("columns")
    @classmethod
    def _unique_columns(cls, columns):
        if len(set(columns)) != len(columns):
            raise ValueError(f"duplicate columns in expansion: {list(columns)}")
        return columns

    def terms(self):
        """Column-name tuples, one per output feature, in output order."""
        combos = combinations if self.interaction_only else combinations_with_replacement
        out = [(c,) for c in self.columns]
        for deg in range(2, self.degree + 1):
            out.extend(combos(self.columns, deg))
        return out

    def feature_names(self):
        return ["*".join(term) for term in self.terms()]

    @property
    def n_features_out(self) -> int:
        return len(self.terms())

    def transform(self, features) -> np.ndarray:
        """Expand a DataFrame (or mapping of columns) into the design matrix."""
        frame = features if isinstance(features, pd.DataFrame) else pd.DataFrame(features)
        missing = [c for c in self.columns if c not in frame.columns]
        if missing:
            raise InvalidParameter(f"input is missing columns {missing} needed by {self.describe()}")

        base = {c: frame[c].to_numpy(dtype=np.float64) for c in self.columns}
        n = len(frame)
        cols = []
        for term in self.terms():
            col = np.ones(n, dtype=np.float64)
            for name in term:
                col = col * base[name]
            cols.append(col)
        return np.column_stack(cols) if cols else np.empty((n, 0))

    def describe(self) -> str:
        cols = ", ".join(self.columns)
        if self.degree == 1:
            return cols
        kind = "interactions" if self.interaction_only else "poly"
        return f"{kind}({cols}, degree={self.degree})"
