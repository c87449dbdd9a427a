"""Type curve generation from multiple wells.

Each well is shifted so its own first observation sits at ``t = 0``; the
normalized points of all wells are pooled and fitted as a single series.
Every point carries equal weight regardless of which well it came from.
"""

import logging
from collections.abc import Mapping
from typing import Any

import pandas as pd

from decline_engine.config import FittingConfig
from decline_engine.dca.autofit import fit_decline_curve
from decline_engine.dca.models import FitResult, series_to_arrays

logger = logging.getLogger(__name__)

POOLED_COLUMNS = ["uwi", "t", "value"]


def align_wells(
    df: pd.DataFrame,
    uwi_column: str = "uwi",
    t_column: str = "t",
    value_column: str = "value",
) -> pd.DataFrame:
    """Align each well's time axis to its first observation.

    Args:
        df: DataFrame with one row per observation
        uwi_column: Name of well identifier column
        t_column: Name of time column (days)
        value_column: Name of rate column

    Returns:
        DataFrame with columns uwi, t, value where t starts at 0 per well

    Example:
        >>> aligned = align_wells(production_df, uwi_column="well")
    """
    if df.empty:
        return pd.DataFrame(columns=POOLED_COLUMNS)

    result = df[[uwi_column, t_column, value_column]].copy()
    result.columns = POOLED_COLUMNS
    result = result.sort_values(["uwi", "t"], kind="stable")
    result["t"] = result["t"] - result.groupby("uwi")["t"].transform("min")

    return result.reset_index(drop=True)


def normalize_well_series(points: Any) -> pd.DataFrame:
    """Sort one well's observations and shift them to start at t = 0."""
    t, values = series_to_arrays(points)
    if len(t) == 0:
        return pd.DataFrame(columns=["t", "value"])
    return pd.DataFrame({"t": t - t[0], "value": values})


def pool_wells(wells: Mapping[str, Any] | list[Any]) -> pd.DataFrame:
    """Concatenate time-normalized observations from several wells.

    Args:
        wells: Mapping of well id to observations, or a list of observations

    Returns:
        DataFrame with columns uwi, t, value. Wells without observations
        contribute nothing.
    """
    items = wells.items() if isinstance(wells, Mapping) else enumerate(wells)

    frames = []
    for uwi, points in items:
        normalized = normalize_well_series(points)
        if normalized.empty:
            logger.debug(f"Skipping well {uwi}: no observations")
            continue
        normalized.insert(0, "uwi", uwi)
        frames.append(normalized)

    if not frames:
        return pd.DataFrame(columns=POOLED_COLUMNS)

    return pd.concat(frames, ignore_index=True)


def generate_type_curve(
    wells: Mapping[str, Any] | list[Any],
    config: FittingConfig | None = None,
) -> FitResult:
    """Fit one representative decline curve to pooled, aligned wells.

    Example:
        >>> result = generate_type_curve({"WELL-001": pts1, "WELL-002": pts2})
        >>> print(result.params)
    """
    pooled = pool_wells(wells)
    logger.info(f"Fitting type curve to {len(pooled)} points from {pooled['uwi'].nunique()} wells")
    return fit_decline_curve(pooled, config=config)
