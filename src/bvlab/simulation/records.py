from typing import NamedTuple, Optional

import pandas as pd


class SimulationRecord(NamedTuple):
    """
    One model's output for one (run, eval point[, lambda]).

    A failed fit keeps its row with prediction None and the error message,
    so the aggregation can count it as excluded.
    """

    run: int
    model: str
    point: int
    prediction: Optional[float]
    lam: Optional[float] = None
    n_nonzero: Optional[int] = None
    error: Optional[str] = None

    @property
    def failed(self) -> bool:
        return self.error is not None


RECORD_COLUMNS = list(SimulationRecord._fields)


def records_to_frame(records) -> pd.DataFrame:
    """Tabular view of a record sequence (one row per record)."""
    return pd.DataFrame.from_records(list(records), columns=RECORD_COLUMNS)
