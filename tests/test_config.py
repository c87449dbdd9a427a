"""Tests for configuration loading."""

import pytest
import yaml
from pydantic import ValidationError

from decline_engine.config import (
    Config,
    DragConfig,
    FittingConfig,
    ForecastConfig,
    get_config,
    load_config,
)


class TestDefaults:
    """Tests for default settings."""

    def test_fitting_defaults(self):
        fitting = get_config().fitting
        assert fitting.b_candidates == (0.0, 0.3, 0.5, 0.7, 0.9)
        assert fitting.d_bounds == (0.001, 0.5)
        assert fitting.d_steps == 11
        assert fitting.qi_multipliers == (0.90, 0.95, 1.00, 1.05, 1.10)
        assert fitting.default_b == 0.5
        assert not fitting.refine

    def test_drag_defaults(self):
        drag = get_config().drag
        assert drag.qi_per_pixel == 0.5
        assert drag.d_per_pixel == 0.0005
        assert drag.b_per_pixel == 0.002
        assert not drag.couple_b_and_d

    def test_forecast_defaults(self):
        forecast = get_config().forecast
        assert forecast.forecast_days == 90
        assert forecast.average_window_days == 60
        assert forecast.average_steps == 20

    def test_frozen(self):
        with pytest.raises(ValidationError):
            get_config().fitting.default_b = 0.7


class TestLoadConfig:
    """Tests for YAML loading."""

    def test_overrides(self, tmp_path):
        path = tmp_path / "settings.yaml"
        path.write_text(
            yaml.safe_dump(
                {
                    "fitting": {"refine": True, "b_candidates": [0.1, 0.2]},
                    "forecast": {"forecast_days": 365},
                }
            )
        )
        config = load_config(path)
        assert config.fitting.refine
        assert config.fitting.b_candidates == (0.1, 0.2)
        assert config.forecast.forecast_days == 365
        assert config.drag == DragConfig()

    def test_nested_under_package_key(self, tmp_path):
        path = tmp_path / "settings.yaml"
        path.write_text(yaml.safe_dump({"decline_engine": {"drag": {"couple_b_and_d": True}}}))
        assert load_config(path).drag.couple_b_and_d

    def test_missing_file_gives_defaults(self, tmp_path):
        assert load_config(tmp_path / "absent.yaml") == Config()

    def test_empty_file_gives_defaults(self, tmp_path):
        path = tmp_path / "empty.yaml"
        path.write_text("")
        assert Config.from_yaml(path) == Config()

    def test_non_mapping_rejected(self, tmp_path):
        path = tmp_path / "list.yaml"
        path.write_text(yaml.safe_dump([1, 2, 3]))
        with pytest.raises(ValidationError):
            load_config(path)

    def test_null_package_key_gives_defaults(self, tmp_path):
        path = tmp_path / "null.yaml"
        path.write_text("decline_engine:\n")
        assert load_config(path) == Config()

    def test_invalid_values_rejected(self, tmp_path):
        path = tmp_path / "bad.yaml"
        path.write_text(yaml.safe_dump({"fitting": {"d_bounds": [0.5, 0.1]}}))
        with pytest.raises(ValidationError):
            load_config(path)


class TestValidation:
    """Tests for setting validation."""

    def test_bad_d_bounds(self):
        with pytest.raises(ValidationError):
            FittingConfig(d_bounds=(0.0, 0.5))

    def test_empty_grid(self):
        with pytest.raises(ValidationError):
            FittingConfig(b_candidates=())

    def test_drag_bounds_order(self):
        with pytest.raises(ValidationError):
            DragConfig(b_bounds=(1.0, 0.0))

    def test_drag_d_floor_positive(self):
        with pytest.raises(ValidationError):
            DragConfig(d_bounds=(0.0, 0.5))

    def test_average_window_positive(self):
        with pytest.raises(ValidationError):
            ForecastConfig(average_window_days=0)
