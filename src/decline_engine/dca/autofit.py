"""Automatic curve fitting for decline curve analysis.

Two fitting strategies:
- estimate_decline_params: closed-form two-point estimate used for auto-fit
- fit_decline_curve: bounded grid search minimizing mean squared error

The grid search is deterministic and never returns a worse fit than the
two-point estimate on the same data.
"""

import logging
import math
from collections.abc import Mapping
from dataclasses import asdict
from typing import Any

import numpy as np

from decline_engine.config import FittingConfig
from decline_engine.dca.models import DeclineParameters, FitResult, _mse, series_to_arrays

logger = logging.getLogger(__name__)


def estimate_decline_params(points: Any, config: FittingConfig | None = None) -> DeclineParameters:
    """Estimate decline parameters from the first and last observations.

    Args:
        points: Observations (sequence of points or DataFrame with t/value)
        config: Fitting configuration

    Returns:
        DeclineParameters with qi at the first observed rate, b fixed at
        ``config.default_b`` and d solved from the first/last decline ratio.
        Fewer than ``config.min_points`` observations return the fallback
        ``{qi: first value or 100, b: 0.5, d: 0.05}``.

    Example:
        >>> params = estimate_decline_params(points)
        >>> print(f"qi={params.qi:.1f}, d={params.d:.4f}")
    """
    if config is None:
        config = FittingConfig()

    t, values = series_to_arrays(points)
    return _estimate(t, values, config)


def _estimate(t: np.ndarray, values: np.ndarray, config: FittingConfig) -> DeclineParameters:
    b = config.default_b

    if len(t) < config.min_points:
        qi = float(values[0]) if len(values) and values[0] else config.fallback_qi
        logger.warning(f"Only {len(t)} points available; using fallback decline parameters")
        return DeclineParameters(qi=qi, b=b, d=config.fallback_d)

    qi = values[0]
    elapsed = t[-1] - t[0]

    with np.errstate(divide="ignore", invalid="ignore", over="ignore"):
        ratio = values[-1] / qi
        if b == 0:
            d = -np.log(ratio) / elapsed
        else:
            d = (np.power(1 / ratio, b) - 1) / (b * elapsed)

    lo, hi = config.d_bounds
    if np.isnan(d):
        # 0/0 ratios (zero first rate, or no elapsed time with no decline)
        logger.warning("Decline rate undefined for first/last points; using fallback d")
        d = config.fallback_d
    else:
        d = float(np.clip(d, lo, hi))

    params = DeclineParameters(qi=float(qi), b=b, d=d)
    logger.debug(f"Estimated decline parameters: {params}")
    return params


def fit_decline_curve(
    points: Any,
    initial_guess: DeclineParameters | Mapping[str, float] | None = None,
    config: FittingConfig | None = None,
) -> FitResult:
    """Fit Arps parameters by grid search over b, d and qi.

    Args:
        points: Observations (sequence of points or DataFrame with t/value)
        initial_guess: Optional full or partial guess with keys qi, b, d.
            Missing values default to the first observed rate, 0.5 and 0.05.
        config: Fitting configuration (grid definition)

    Returns:
        FitResult with the best parameters and their mean squared error.
        Fewer than ``config.min_points`` observations return the fallback
        parameters with ``error = inf``.

    Example:
        >>> result = fit_decline_curve(points)
        >>> print(f"b={result.params.b}, error={result.error:.2f}")
    """
    if config is None:
        config = FittingConfig()

    t, values = series_to_arrays(points)

    if len(t) < config.min_points:
        logger.warning(f"Cannot fit decline curve to {len(t)} points; returning fallback")
        fallback = DeclineParameters(qi=config.fallback_qi, b=config.default_b, d=config.fallback_d)
        return FitResult(params=fallback, error=math.inf)

    if isinstance(initial_guess, DeclineParameters):
        initial_guess = asdict(initial_guess)
    guess = dict(initial_guess or {})

    guess_qi = guess.get("qi") or float(values[0])
    guess_b = guess.get("b")
    guess_d = guess.get("d")
    best = DeclineParameters(
        qi=guess_qi,
        b=config.default_b if guess_b is None else guess_b,
        d=config.fallback_d if guess_d is None else guess_d,
    )
    best_error = _mse(t, values, best)

    lo, hi = config.d_bounds
    d_grid = np.linspace(lo, hi, config.d_steps)

    # Strict comparison: the first candidate reaching the minimum wins
    for b in config.b_candidates:
        for d in d_grid:
            for multiplier in config.qi_multipliers:
                candidate = DeclineParameters(qi=guess_qi * multiplier, b=float(b), d=float(d))
                error = _mse(t, values, candidate)
                if error < best_error:
                    best = candidate
                    best_error = error

    estimate = _estimate(t, values, config)
    estimate_error = _mse(t, values, estimate)
    if estimate_error < best_error:
        logger.debug("Two-point estimate beats grid search; keeping estimate")
        best = estimate
        best_error = estimate_error

    logger.debug(f"Grid search fit: {best} (mse={best_error:.4g})")
    return FitResult(params=best, error=best_error)
