"""Data loading utilities for production tables.

Turns a production table into per-phase ``(t, value)`` series. Columns are
identified by simple substring heuristics on the header text:

- date column: "prod" + "date", "proddt", "proddttm", "date" or "datetime"
- phases: bopd/oil, bwpd/water, mcfd/gas, pip/pressure/psi
"""

import logging
from dataclasses import dataclass, field
from datetime import date
from pathlib import Path

import numpy as np
import pandas as pd

from decline_engine.data.schemas import (
    DEFAULT_DATE_COLUMN,
    PHASES,
    PhaseSeriesPoints,
    TimeSeriesPoint,
)

logger = logging.getLogger(__name__)


@dataclass
class PhaseSeries:
    """Per-phase observations sharing one calendar origin."""

    series: dict[str, PhaseSeriesPoints] = field(default_factory=dict)
    origin_date: pd.Timestamp | None = None
    last_date: pd.Timestamp | None = None

    @property
    def t_max(self) -> float:
        """Days from origin to the last observation."""
        if self.origin_date is None or self.last_date is None:
            return 0.0
        return (self.last_date - self.origin_date).total_seconds() / 86400.0


def detect_date_column(headers: list[str]) -> str:
    """Pick the production date column from table headers.

    Returns ``"Production_Date"`` when nothing matches.

    Example:
        >>> detect_date_column(["Well", "Prod_Date", "Oil_BOPD"])
        'Prod_Date'
    """
    for header in headers:
        lower = header.lower()
        if (
            ("prod" in lower and "date" in lower)
            or "proddt" in lower
            or lower in ("date", "datetime")
        ):
            return header
    return DEFAULT_DATE_COLUMN


def detect_phase_columns(headers: list[str]) -> dict[str, str]:
    """Map phase keys (oil, water, gas, pressure) to at most one header each.

    Explicit rate units (bopd, bwpd, mcfd) take precedence over a generic
    phase name seen earlier; otherwise the first match wins. Keys follow
    the order of ``PHASES``.

    Example:
        >>> detect_phase_columns(["Date", "Oil_BOPD", "Gas_MCFD", "PIP"])
        {'oil': 'Oil_BOPD', 'gas': 'Gas_MCFD', 'pressure': 'PIP'}
    """
    phases: dict[str, str] = {}
    rules = (
        ("oil", ("bopd",), ("oil",)),
        ("water", ("bwpd",), ("water",)),
        ("gas", ("mcfd",), ("gas",)),
        ("pressure", (), ("pip", "pressure", "psi")),
    )

    for header in headers:
        lower = header.lower()
        for phase, unit_tokens, name_tokens in rules:
            if any(token in lower for token in unit_tokens):
                phases[phase] = header
            elif phase not in phases and any(token in lower for token in name_tokens):
                phases[phase] = header

    return {phase: phases[phase] for phase in PHASES if phase in phases}


def load_phase_series(
    df: pd.DataFrame,
    start_date: date | str | None = None,
    end_date: date | str | None = None,
    date_column: str | None = None,
    phase_columns: dict[str, str] | None = None,
) -> PhaseSeries:
    """Convert a production table to per-phase time series.

    Rows with unparseable dates are dropped, the rest are sorted by date and
    restricted to ``[start_date, end_date]``. Time is expressed in days since
    the first remaining row. Non-numeric, non-finite and negative values are
    dropped per phase.

    Args:
        df: Production table
        start_date: Optional inclusive window start
        end_date: Optional inclusive window end
        date_column: Date column (detected from headers if not given)
        phase_columns: Mapping of phase to column (detected if not given)

    Returns:
        PhaseSeries with one list of points per phase column

    Example:
        >>> phase_series = load_phase_series(production_df, start_date="2023-01-01")
        >>> oil = phase_series.series["oil"]
    """
    if df.empty:
        return PhaseSeries()

    headers = [str(c) for c in df.columns]
    if date_column is None:
        date_column = detect_date_column(headers)
    if phase_columns is None:
        phase_columns = detect_phase_columns(headers)

    if date_column not in df.columns:
        logger.warning(f"Date column not found: {date_column}")
        return PhaseSeries()

    data = df.copy()
    data[date_column] = pd.to_datetime(data[date_column], errors="coerce")

    invalid_dates = int(data[date_column].isna().sum())
    if invalid_dates:
        logger.warning(f"Dropping {invalid_dates} rows with unparseable dates")

    data = data.dropna(subset=[date_column]).sort_values(date_column, kind="stable")

    if start_date is not None:
        data = data[data[date_column] >= pd.Timestamp(start_date)]
    if end_date is not None:
        data = data[data[date_column] <= pd.Timestamp(end_date)]

    if data.empty:
        return PhaseSeries(series={phase: [] for phase in phase_columns})

    origin = data[date_column].iloc[0]
    t = ((data[date_column] - origin).dt.total_seconds() / 86400.0).to_numpy()

    series: dict[str, PhaseSeriesPoints] = {}
    for phase, column in phase_columns.items():
        values = pd.to_numeric(data[column], errors="coerce").to_numpy(dtype=float)
        mask = np.isfinite(values) & (values >= 0)
        series[phase] = [
            TimeSeriesPoint(t=float(ti), value=float(v)) for ti, v in zip(t[mask], values[mask])
        ]
        logger.debug(f"Loaded {len(series[phase])} points for phase '{phase}' from {column}")

    return PhaseSeries(series=series, origin_date=origin, last_date=data[date_column].iloc[-1])


def load_production_csv(path: str | Path) -> pd.DataFrame:
    """Load a production table from CSV.

    A missing file logs a warning and yields an empty DataFrame.
    """
    path = Path(path)
    if not path.exists():
        logger.warning(f"File not found: {path}")
        return pd.DataFrame()

    return pd.read_csv(path, low_memory=False)
