"""Per-well decline analysis session.

Holds the phase series of one well, keeps each phase's decline parameters
up to date (auto-fit until a manual drag takes over) and recomputes the
reporting outputs synchronously after every change.
"""

from __future__ import annotations

import logging
from collections.abc import Callable, Mapping
from dataclasses import dataclass
from datetime import date
from typing import Any

import pandas as pd

from decline_engine.config import Config, get_config
from decline_engine.data.loaders import load_phase_series
from decline_engine.dca.autofit import estimate_decline_params, fit_decline_curve
from decline_engine.dca.forecast import (
    ForecastSummary,
    export_results_csv,
    forecast_summary,
    forecast_trajectory,
)
from decline_engine.dca.interactive import AdjustmentEngine, DragSession, PhaseParameterStore
from decline_engine.dca.models import DeclineParameters, decline_fractions, series_to_arrays

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class AnalysisOutputs:
    """Snapshot emitted to consumers (chart, summary panel, export)."""

    phase_params: dict[str, DeclineParameters]
    calculated_eur: dict[str, float | str]
    forecast_average: dict[str, float]


OutputListener = Callable[[AnalysisOutputs], None]


class DeclineAnalysis:
    """Decline curve analysis for the phases of one well.

    Example:
        >>> analysis = DeclineAnalysis.from_dataframe(production_df)
        >>> analysis.start_drag("oil", position=200, modifier="d")
        >>> analysis.update_drag("oil", position=180)
        >>> analysis.end_drag("oil")
        >>> print(analysis.export_csv())
    """

    def __init__(self, config: Config | None = None, forecast_days: float | None = None) -> None:
        self.config = config or get_config()
        self.forecast_days = (
            self.config.forecast.forecast_days if forecast_days is None else forecast_days
        )
        self.store = PhaseParameterStore()
        self.adjustments = AdjustmentEngine(self.store, self.config.drag)
        self.origin_date: pd.Timestamp | None = None
        self.t_max = 0.0

        self._series: dict[str, Any] = {}
        self._listeners: list[OutputListener] = []
        self._last_emitted: AnalysisOutputs | None = None

    @classmethod
    def from_dataframe(
        cls,
        df: pd.DataFrame,
        start_date: date | str | None = None,
        end_date: date | str | None = None,
        config: Config | None = None,
        forecast_days: float | None = None,
    ) -> DeclineAnalysis:
        """Build an analysis from a production table."""
        phase_series = load_phase_series(df, start_date=start_date, end_date=end_date)
        analysis = cls(config=config, forecast_days=forecast_days)
        analysis.set_series(phase_series.series, origin_date=phase_series.origin_date)
        return analysis

    # -- series -------------------------------------------------------------

    @property
    def phases(self) -> list[str]:
        return self.store.phases()

    def series(self, phase: str) -> Any:
        return self._series.get(phase)

    def set_series(self, series: Mapping[str, Any], origin_date: date | None = None) -> None:
        """Replace the phase series and refit every phase still in auto-fit mode.

        Phases missing from ``series`` lose their parameters and sessions. The
        calendar origin is kept unless a new ``origin_date`` is given.
        """
        for phase in set(self._series) - set(series):
            self.adjustments.end(phase)
            self.store.discard(phase)
            logger.info(f"Phase '{phase}' removed; parameters discarded")

        self._series = dict(series)
        if origin_date is not None:
            self.origin_date = pd.Timestamp(origin_date)

        t_max = 0.0
        for points in self._series.values():
            t, _ = series_to_arrays(points)
            if len(t):
                t_max = max(t_max, float(t[-1]))
        self.t_max = t_max

        self._auto_fit()
        self._emit()

    def reset(self) -> None:
        """Drop manual edits and sessions, then refit every phase."""
        logger.info("Resetting decline analysis to auto-fit")
        self.adjustments.cancel_all()
        self.store.clear()
        self._auto_fit()
        self._emit()

    def _auto_fit(self) -> None:
        fitting = self.config.fitting
        for phase, points in self._series.items():
            if not self.store.is_auto_fit(phase):
                continue
            if fitting.refine:
                params = fit_decline_curve(points, config=fitting).params
            else:
                params = estimate_decline_params(points, config=fitting)
            self.store.set(phase, params)

    # -- parameters ---------------------------------------------------------

    def parameters(self, phase: str) -> DeclineParameters | None:
        return self.store.get(phase)

    def set_parameters(self, phase: str, params: DeclineParameters) -> None:
        """Overwrite a phase's parameters manually; disables its auto-fit."""
        self.store.set(phase, params)
        self.store.disable_auto_fit(phase)
        self._emit()

    def set_forecast_days(self, forecast_days: float) -> None:
        self.forecast_days = forecast_days
        self._emit()

    # -- gestures -----------------------------------------------------------

    def start_drag(self, phase: str, position: float, modifier: str | None = None) -> DragSession | None:
        return self.adjustments.start(phase, position, modifier=modifier)

    def update_drag(self, phase: str, position: float) -> DeclineParameters | None:
        params = self.adjustments.update(phase, position)
        if params is not None:
            self._emit()
        return params

    def end_drag(self, phase: str) -> DeclineParameters | None:
        return self.adjustments.end(phase)

    def release_modifier(self, modifier: str | None = None) -> list[str]:
        return self.adjustments.release_modifier(modifier)

    # -- outputs ------------------------------------------------------------

    def summary(self, phase: str) -> ForecastSummary | None:
        params = self.store.get(phase)
        if params is None:
            return None
        return forecast_summary(params, self.t_max, self.config.forecast)

    def forecast(self, phase: str) -> pd.DataFrame | None:
        """Forecast trajectory for ``phase`` over the current horizon."""
        params = self.store.get(phase)
        if params is None:
            return None
        return forecast_trajectory(
            params,
            self.t_max,
            self.forecast_days,
            steps=self.config.forecast.forecast_steps,
            origin_date=self.origin_date,
        )

    def decline_fractions(self, phase: str, start_time: float = 0.0) -> dict[str, float] | None:
        params = self.store.get(phase)
        if params is None:
            return None
        return decline_fractions(params, start_time)

    def outputs(self) -> AnalysisOutputs:
        """Recompute EUR and rolling averages for every phase."""
        phase_params = self.store.as_dict()
        summaries = {
            phase: forecast_summary(params, self.t_max, self.config.forecast)
            for phase, params in phase_params.items()
        }
        return AnalysisOutputs(
            phase_params=phase_params,
            calculated_eur={phase: s.calculated_eur for phase, s in summaries.items()},
            forecast_average={phase: s.rolling_60_day_average for phase, s in summaries.items()},
        )

    def export_csv(self) -> str:
        outputs = self.outputs()
        return export_results_csv(
            outputs.phase_params, outputs.calculated_eur, outputs.forecast_average
        )

    def subscribe(self, listener: OutputListener) -> None:
        """Register a listener called with outputs whenever they change."""
        self._listeners.append(listener)

    def unsubscribe(self, listener: OutputListener) -> None:
        if listener in self._listeners:
            self._listeners.remove(listener)

    def _emit(self) -> None:
        outputs = self.outputs()
        if outputs == self._last_emitted:
            return
        for listener in list(self._listeners):
            listener(outputs)
        self._last_emitted = outputs
