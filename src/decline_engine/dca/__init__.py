"""DCA module - Arps decline curve analysis for production forecasting.

Includes:
- Arps rate, cumulative and averaging models
- Two-point estimation and grid-search fitting
- Forecast, EUR and CSV export
- Interactive drag adjustment of fitted parameters
"""

from decline_engine.dca.autofit import estimate_decline_params, fit_decline_curve
from decline_engine.dca.forecast import (
    HARMONIC_EUR_MULTIPLIER,
    ForecastSummary,
    calculate_eur,
    export_results_csv,
    forecast_summary,
    forecast_trajectory,
)
from decline_engine.dca.interactive import (
    AdjustmentEngine,
    DragSession,
    PhaseParameterStore,
    adjust_for_drag,
)
from decline_engine.dca.models import (
    NOT_APPLICABLE,
    DeclineParameters,
    FitResult,
    arps_cumulative,
    arps_rate,
    decline_fractions,
    mean_squared_error,
    percentage_error,
    rolling_average,
    series_to_arrays,
    volume_weighted_average,
)

__all__ = [
    # Models
    "NOT_APPLICABLE",
    "DeclineParameters",
    "FitResult",
    "arps_rate",
    "arps_cumulative",
    "rolling_average",
    "mean_squared_error",
    "percentage_error",
    "volume_weighted_average",
    "decline_fractions",
    "series_to_arrays",
    # Autofit
    "estimate_decline_params",
    "fit_decline_curve",
    # Forecast
    "HARMONIC_EUR_MULTIPLIER",
    "ForecastSummary",
    "forecast_trajectory",
    "calculate_eur",
    "forecast_summary",
    "export_results_csv",
    # Interactive
    "DragSession",
    "AdjustmentEngine",
    "PhaseParameterStore",
    "adjust_for_drag",
]
