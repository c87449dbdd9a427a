"""Data module - Production table loading and validation."""

from decline_engine.data.loaders import (
    PhaseSeries,
    detect_date_column,
    detect_phase_columns,
    load_phase_series,
    load_production_csv,
)
from decline_engine.data.schemas import DEFAULT_DATE_COLUMN, PHASES, TimeSeriesPoint

__all__ = [
    # Loaders
    "PhaseSeries",
    "detect_date_column",
    "detect_phase_columns",
    "load_phase_series",
    "load_production_csv",
    # Schemas
    "TimeSeriesPoint",
    "PHASES",
    "DEFAULT_DATE_COLUMN",
]
