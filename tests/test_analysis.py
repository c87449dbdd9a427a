"""Tests for the per-well decline analysis session."""

import pandas as pd
import pytest

from decline_engine.analysis import AnalysisOutputs, DeclineAnalysis
from decline_engine.config import Config, FittingConfig
from decline_engine.dca.autofit import estimate_decline_params, fit_decline_curve
from decline_engine.dca.models import DeclineParameters


@pytest.fixture
def analysis(sample_production_df):
    return DeclineAnalysis.from_dataframe(sample_production_df)


def _drag_oil(analysis, start=100, end=80, modifier="d"):
    analysis.start_drag("oil", start, modifier=modifier)
    params = analysis.update_drag("oil", end)
    analysis.end_drag("oil")
    return params


class TestAutoFit:
    """Tests for automatic fitting of phase series."""

    def test_all_phases_fitted(self, analysis):
        assert sorted(analysis.phases) == ["gas", "oil", "pressure", "water"]
        assert analysis.t_max == pytest.approx(115)

    def test_uses_estimate_by_default(self, analysis):
        oil = analysis.series("oil")
        assert analysis.parameters("oil") == estimate_decline_params(oil)

    def test_refine_uses_grid_search(self, sample_production_df):
        config = Config(fitting=FittingConfig(refine=True))
        analysis = DeclineAnalysis.from_dataframe(sample_production_df, config=config)
        oil = analysis.series("oil")
        assert analysis.parameters("oil") == fit_decline_curve(oil).params

    def test_manual_drag_survives_new_series(self, analysis):
        manual = _drag_oil(analysis)
        gas = analysis.series("gas")

        series = {phase: analysis.series(phase) for phase in analysis.phases}
        series["gas"] = gas[:10]
        analysis.set_series(series, origin_date=analysis.origin_date)

        assert analysis.parameters("oil") == manual
        assert analysis.parameters("gas") == estimate_decline_params(gas[:10])

    def test_removed_phase_discarded(self, analysis):
        series = {phase: analysis.series(phase) for phase in ("oil", "gas")}
        analysis.set_series(series)
        assert sorted(analysis.phases) == ["gas", "oil"]
        assert analysis.parameters("pressure") is None
        assert analysis.summary("pressure") is None

    def test_set_parameters_disables_auto_fit(self, analysis):
        manual = DeclineParameters(qi=900, b=0.7, d=0.01)
        analysis.set_parameters("water", manual)
        analysis.set_series({phase: analysis.series(phase) for phase in analysis.phases})
        assert analysis.parameters("water") == manual

    def test_reset_restores_auto_fit(self, analysis):
        _drag_oil(analysis)
        analysis.reset()
        assert analysis.parameters("oil") == estimate_decline_params(analysis.series("oil"))
        assert analysis.store.is_auto_fit("oil")


class TestDrag:
    """Tests for drag gestures routed through the analysis."""

    def test_drag_changes_only_target_phase(self, analysis):
        gas_before = analysis.parameters("gas")
        oil_before = analysis.parameters("oil")
        params = _drag_oil(analysis, modifier="q")

        assert params.qi == pytest.approx(oil_before.qi + 10)
        assert analysis.parameters("gas") == gas_before

    def test_release_modifier_ends_sessions(self, analysis):
        analysis.start_drag("oil", 0, modifier="b")
        analysis.start_drag("gas", 0, modifier="d")
        assert analysis.release_modifier("b") == ["oil"]
        assert analysis.adjustments.active_phases == ["gas"]

    def test_update_without_session(self, analysis):
        assert analysis.update_drag("oil", 50) is None


class TestOutputs:
    """Tests for EUR, averages, forecasts and export."""

    def test_outputs_cover_all_phases(self, analysis):
        outputs = analysis.outputs()
        assert isinstance(outputs, AnalysisOutputs)
        assert set(outputs.calculated_eur) == set(analysis.phases)
        assert set(outputs.forecast_average) == set(analysis.phases)

    def test_summary_matches_outputs(self, analysis):
        summary = analysis.summary("oil")
        outputs = analysis.outputs()
        assert summary.calculated_eur == outputs.calculated_eur["oil"]
        assert summary.rolling_60_day_average == outputs.forecast_average["oil"]

    def test_forecast_has_calendar_dates(self, analysis):
        forecast = analysis.forecast("oil")
        assert len(forecast) == 51
        assert forecast["t"].iloc[0] == pytest.approx(115)
        assert forecast["date"].iloc[0] == pd.Timestamp("2023-04-26")
        assert forecast["days_ahead"].iloc[-1] == pytest.approx(90)

    def test_origin_kept_when_series_replaced(self, analysis):
        analysis.set_series({phase: analysis.series(phase) for phase in analysis.phases})
        assert analysis.origin_date == pd.Timestamp("2023-01-01")
        assert "date" in analysis.forecast("oil").columns

    def test_new_origin_replaces_old(self, analysis):
        series = {phase: analysis.series(phase) for phase in analysis.phases}
        analysis.set_series(series, origin_date="2024-06-01")
        assert analysis.origin_date == pd.Timestamp("2024-06-01")

    def test_forecast_horizon(self, analysis):
        analysis.set_forecast_days(180)
        assert analysis.forecast("oil")["days_ahead"].iloc[-1] == pytest.approx(180)

    def test_forecast_unknown_phase(self, analysis):
        assert analysis.forecast("condensate") is None
        assert analysis.decline_fractions("condensate") is None

    def test_decline_fractions(self, analysis):
        fractions = analysis.decline_fractions("oil")
        assert 0 < fractions["day30"] < fractions["day180"] < 1

    def test_export_csv(self, analysis):
        lines = analysis.export_csv().strip().split("\n")
        assert lines[0] == "Phase,Qi,b,D,EUR,60-Day Avg"
        assert len(lines) == 5


class TestSubscriptions:
    """Tests for output change notifications."""

    def test_drag_notifies(self, analysis):
        received = []
        analysis.subscribe(received.append)
        _drag_oil(analysis)
        assert len(received) == 1
        assert received[0].phase_params["oil"] == analysis.parameters("oil")

    def test_unchanged_outputs_not_reemitted(self, analysis):
        received = []
        analysis.subscribe(received.append)
        analysis.set_forecast_days(120)
        assert received == []

        analysis.start_drag("oil", 100, modifier="b")
        analysis.update_drag("oil", 120)
        analysis.update_drag("oil", 120)
        assert len(received) == 1

    def test_failed_listener_does_not_block_redelivery(self, analysis):
        received = []
        failures = []

        def flaky(outputs):
            if not failures:
                failures.append(outputs)
                raise RuntimeError("listener failed")

        analysis.subscribe(flaky)
        analysis.subscribe(received.append)
        with pytest.raises(RuntimeError):
            _drag_oil(analysis)
        assert received == []

        analysis.set_forecast_days(120)
        assert len(received) == 1
        assert received[0] == failures[0]

    def test_unsubscribe(self, analysis):
        received = []
        analysis.subscribe(received.append)
        analysis.unsubscribe(received.append)
        _drag_oil(analysis)
        assert received == []
