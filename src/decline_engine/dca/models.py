"""Arps decline curve models.

Implements the three classical Arps regimes on a daily time base:

    b = 0:      q(t) = qi * exp(-d * t)            (exponential)
    0 < b < 1:  q(t) = qi / (1 + b * d * t)^(1/b)  (hyperbolic)
    b = 1:      q(t) = qi / (1 + d * t)            (harmonic)

Everything here is a pure function of the parameters. Degenerate inputs
resolve to sentinels (0, ``NOT_APPLICABLE`` or ``inf``) instead of raising.
"""

import math
from collections.abc import Mapping, Sequence
from dataclasses import dataclass, replace
from typing import Any, Literal

import numpy as np
import pandas as pd
from scipy import integrate

# Reported in place of a number when a quantity is undefined for the parameters
NOT_APPLICABLE = "N/A"

DeclineType = Literal["exponential", "harmonic", "hyperbolic", "invalid"]


@dataclass(frozen=True)
class DeclineParameters:
    """Arps decline parameters for one phase.

    Attributes:
        qi: Initial rate at t=0
        b: Decline exponent (0 = exponential, 1 = harmonic)
        d: Initial nominal decline, fraction per day
    """

    qi: float
    b: float
    d: float

    @property
    def decline_type(self) -> DeclineType:
        """Arps regime selected by ``b``."""
        if self.b == 0:
            return "exponential"
        if self.b == 1:
            return "harmonic"
        if 0 < self.b < 1:
            return "hyperbolic"
        return "invalid"

    @property
    def is_forecastable(self) -> bool:
        """True when rate, EUR and averages are defined (qi set and d > 0)."""
        return bool(self.qi) and self.d > 0

    def with_changes(self, **changes: float) -> "DeclineParameters":
        return replace(self, **changes)


@dataclass(frozen=True)
class FitResult:
    """Fitted parameters and their mean squared residual.

    ``error == inf`` means the data could not be fitted.
    """

    params: DeclineParameters
    error: float

    @property
    def is_fitted(self) -> bool:
        return math.isfinite(self.error)


def series_to_arrays(points: Any) -> tuple[np.ndarray, np.ndarray]:
    """Convert observations to time-sorted ``(t, value)`` arrays.

    Accepts a DataFrame with ``t`` and ``value`` columns, or a sequence of
    objects (or mappings) exposing ``t`` and ``value``.
    """
    if points is None:
        return np.empty(0), np.empty(0)

    if isinstance(points, pd.DataFrame):
        if points.empty:
            return np.empty(0), np.empty(0)
        t = points["t"].to_numpy(dtype=float)
        values = points["value"].to_numpy(dtype=float)
    else:
        t = np.array([_field(p, "t") for p in points], dtype=float)
        values = np.array([_field(p, "value") for p in points], dtype=float)

    # Stable sort keeps ties in input order
    order = np.argsort(t, kind="stable")
    return t[order], values[order]


def _field(point: Any, name: str) -> float:
    if isinstance(point, Mapping):
        return point[name]
    return getattr(point, name)


def arps_rate(t: float | np.ndarray, params: DeclineParameters) -> float | np.ndarray:
    """Calculate production rate using the Arps decline equation.

    Args:
        t: Days since the series origin (scalar or array)
        params: DeclineParameters with qi, b, d

    Returns:
        Production rate at time t

    Example:
        >>> params = DeclineParameters(qi=1000, b=0.5, d=0.05)
        >>> rate = arps_rate(30, params)  # Rate at day 30
    """
    t = np.asarray(t, dtype=float)
    qi, b, d = params.qi, params.b, params.d

    if b == 0:
        rate = qi * np.exp(-d * t)
    else:
        rate = qi / np.power(1 + b * d * t, 1 / b)

    return float(rate) if rate.ndim == 0 else rate


def arps_cumulative(params: DeclineParameters, t_limit: float = math.inf) -> float | str:
    """Calculate cumulative production (EUR) up to ``t_limit`` days.

    Args:
        params: DeclineParameters with qi, b, d
        t_limit: Time horizon in days (default: infinite)

    Returns:
        Cumulative production, ``inf`` for infinite-horizon harmonic decline,
        0 when qi is unset or d <= 0, and ``NOT_APPLICABLE`` for b outside [0, 1]
    """
    qi, b, d = params.qi, params.b, params.d

    if not qi or d <= 0:
        return 0.0

    finite = t_limit < math.inf

    if b == 0:
        if finite:
            return float((qi / d) * (1 - np.exp(-d * t_limit)))
        return qi / d
    elif b == 1:
        if finite:
            return float((qi / d) * np.log1p(d * t_limit))
        return math.inf
    elif 0 < b < 1:
        if finite:
            return float((qi / (d * (1 - b))) * (1 - np.power(1 + b * d * t_limit, (b - 1) / b)))
        return qi / (d * (1 - b))

    return NOT_APPLICABLE


def rolling_average(
    params: DeclineParameters,
    t_start: float,
    window_days: float = 60.0,
    steps: int = 20,
) -> float:
    """Average rate over ``[t_start, t_start + window_days]``.

    Integrates the rate with the trapezoidal rule on ``steps`` equal
    subintervals and divides by the window length.
    """
    if window_days <= 0:
        raise ValueError(f"window_days must be positive, got {window_days}")
    if steps <= 0:
        raise ValueError(f"steps must be positive, got {steps}")

    if not params.is_forecastable:
        return 0.0

    t = np.linspace(t_start, t_start + window_days, steps + 1)
    rates = arps_rate(t, params)
    return float(integrate.trapezoid(rates, t) / window_days)


def mean_squared_error(points: Any, params: DeclineParameters) -> float:
    """Mean of squared residuals between the model and observed points.

    This is the fitting objective. Returns ``inf`` for empty input.
    """
    t, values = series_to_arrays(points)
    return _mse(t, values, params)


def _mse(t: np.ndarray, values: np.ndarray, params: DeclineParameters) -> float:
    if len(t) == 0:
        return math.inf
    with np.errstate(over="ignore", invalid="ignore", divide="ignore"):
        residuals = arps_rate(t, params) - values
        error = float(np.mean(residuals**2))
    return error if not math.isnan(error) else math.inf


def percentage_error(actuals: Sequence[float] | None, forecasts: Sequence[float] | None) -> float:
    """Mean absolute percentage error over pairs with a positive actual.

    Returns ``inf`` when lengths differ or no pair has a positive actual.

    Example:
        >>> percentage_error([100, 200], [110, 180])
        10.0
    """
    if actuals is None or forecasts is None:
        return math.inf

    actuals = np.asarray(actuals, dtype=float)
    forecasts = np.asarray(forecasts, dtype=float)
    if actuals.shape != forecasts.shape:
        return math.inf

    mask = actuals > 0
    if not mask.any():
        return math.inf

    errors = np.abs((forecasts[mask] - actuals[mask]) / actuals[mask]) * 100
    return float(np.mean(errors))


def volume_weighted_average(rates: Sequence[float] | None, volumes: Sequence[float] | None) -> float:
    """Volume-weighted average rate; 0 for mismatched input or zero volume."""
    if rates is None or volumes is None:
        return 0.0

    rates = np.asarray(rates, dtype=float)
    volumes = np.asarray(volumes, dtype=float)
    if rates.shape != volumes.shape:
        return 0.0

    total = float(np.sum(volumes))
    if total <= 0:
        return 0.0
    return float(np.sum(rates * volumes) / total)


# Horizons reported by decline_fractions, in days
DECLINE_HORIZONS = (30, 60, 90, 180)


def decline_fractions(params: DeclineParameters, start_time: float = 0.0) -> dict[str, float]:
    """Fractional drop in rate after 30, 60, 90 and 180 days.

    Returns a mapping like ``{"day30": 0.42, ...}``; all zeros when the
    parameters cannot be forecast.
    """
    if not params.is_forecastable:
        return {f"day{days}": 0.0 for days in DECLINE_HORIZONS}

    initial = arps_rate(start_time, params)
    return {
        f"day{days}": (initial - arps_rate(start_time + days, params)) / initial
        for days in DECLINE_HORIZONS
    }
