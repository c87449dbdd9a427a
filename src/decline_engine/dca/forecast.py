"""Production forecasting using decline curve models.

Generate forecast trajectories, EUR (Estimated Ultimate Recovery) and
60-day rolling averages from fitted decline parameters, and export the
per-phase results as CSV.
"""

from collections.abc import Mapping
from dataclasses import dataclass
from datetime import date

import numpy as np
import pandas as pd

from decline_engine.config import ForecastConfig
from decline_engine.dca.models import (
    NOT_APPLICABLE,
    DeclineParameters,
    arps_cumulative,
    arps_rate,
    rolling_average,
)

# Harmonic decline (b=1) has no finite EUR. Reports use qi * this multiplier
# as an engineering placeholder; it is an approximation, not a model result.
HARMONIC_EUR_MULTIPLIER = 10_000

FORECAST_COLUMNS = ["t", "days_ahead", "rate"]
EXPORT_COLUMNS = ["Phase", "Qi", "b", "D", "EUR", "60-Day Avg"]


@dataclass(frozen=True)
class ForecastSummary:
    """Derived reporting values for one phase."""

    calculated_eur: float | str
    rolling_60_day_average: float


def forecast_trajectory(
    params: DeclineParameters,
    t_max: float,
    forecast_days: float,
    steps: int = 50,
    origin_date: date | None = None,
) -> pd.DataFrame:
    """Generate the forecast rate trajectory after the last observation.

    Args:
        params: DeclineParameters with qi, b, d
        t_max: Time of the last observation (days since series origin)
        forecast_days: Forecast horizon in days
        steps: Number of equally spaced points after ``t_max``
        origin_date: Optional calendar date of ``t = 0``; adds a ``date`` column

    Returns:
        DataFrame with columns t, days_ahead, rate (and date), starting at
        ``t_max`` and ending at ``t_max + forecast_days``. Empty when the
        parameters cannot be forecast.

    Example:
        >>> params = DeclineParameters(qi=1000, b=0.5, d=0.05)
        >>> forecast = forecast_trajectory(params, t_max=365, forecast_days=90)
        >>> print(forecast.tail())
    """
    if steps <= 0:
        raise ValueError(f"steps must be positive, got {steps}")

    columns = FORECAST_COLUMNS + (["date"] if origin_date is not None else [])
    if not params.is_forecastable:
        return pd.DataFrame(columns=columns)

    days_ahead = np.linspace(0, forecast_days, steps + 1)
    t = t_max + days_ahead

    df = pd.DataFrame(
        {
            "t": t,
            "days_ahead": days_ahead,
            "rate": arps_rate(t, params),
        }
    )

    if origin_date is not None:
        df["date"] = pd.Timestamp(origin_date) + pd.to_timedelta(t, unit="D")

    return df


def calculate_eur(params: DeclineParameters) -> float | str:
    """Calculate infinite-horizon EUR for reporting.

    Returns ``NOT_APPLICABLE`` when qi is unset, d <= 0 or b lies outside
    [0, 1]. Harmonic decline returns ``qi * HARMONIC_EUR_MULTIPLIER``.

    Example:
        >>> calculate_eur(DeclineParameters(qi=1000, b=0, d=0.05))
        20000.0
    """
    if not params.is_forecastable:
        return NOT_APPLICABLE

    if params.b == 1:
        return params.qi * HARMONIC_EUR_MULTIPLIER

    return arps_cumulative(params)


def forecast_summary(
    params: DeclineParameters,
    t_max: float,
    config: ForecastConfig | None = None,
) -> ForecastSummary:
    """EUR and rolling average over the window right after ``t_max``."""
    if config is None:
        config = ForecastConfig()

    return ForecastSummary(
        calculated_eur=calculate_eur(params),
        rolling_60_day_average=rolling_average(
            params,
            t_max,
            window_days=config.average_window_days,
            steps=config.average_steps,
        ),
    )


def export_results_csv(
    phase_params: Mapping[str, DeclineParameters],
    calculated_eur: Mapping[str, float | str],
    forecast_average: Mapping[str, float],
) -> str:
    """Export per-phase results to CSV text.

    One row per phase: Qi to 2 decimals, b to 3, D to 5, EUR to 0 (or the
    literal ``N/A``) and the 60-day average to 2.

    Example:
        >>> csv_text = export_results_csv(params, eur, averages)
        >>> print(csv_text.splitlines()[0])
        Phase,Qi,b,D,EUR,60-Day Avg
    """
    rows = []
    for phase, params in phase_params.items():
        eur = calculated_eur.get(phase, NOT_APPLICABLE)
        rows.append(
            {
                "Phase": phase,
                "Qi": f"{params.qi:.2f}",
                "b": f"{params.b:.3f}",
                "D": f"{params.d:.5f}",
                "EUR": f"{eur:.0f}" if isinstance(eur, (int, float)) else str(eur),
                "60-Day Avg": f"{forecast_average.get(phase, 0.0):.2f}",
            }
        )

    df = pd.DataFrame(rows, columns=EXPORT_COLUMNS)
    return df.to_csv(index=False, lineterminator="\n")
