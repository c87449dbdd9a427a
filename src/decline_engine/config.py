"""Configuration management for Decline Engine.

Fitting grids, drag sensitivities and forecast defaults live here as named
settings. Defaults can be overridden from a YAML file.
"""

from pathlib import Path
from typing import Optional

import yaml
from pydantic import BaseModel, ConfigDict, Field, model_validator


class FittingConfig(BaseModel):
    """Parameter estimation and grid search settings."""

    model_config = ConfigDict(frozen=True, extra="ignore")

    # Grid search lattice (b outer, D middle, Qi inner)
    b_candidates: tuple[float, ...] = (0.0, 0.3, 0.5, 0.7, 0.9)
    d_bounds: tuple[float, float] = (0.001, 0.5)
    d_steps: int = Field(11, ge=2)
    qi_multipliers: tuple[float, ...] = (0.90, 0.95, 1.00, 1.05, 1.10)

    # Estimator and fallback values
    default_b: float = Field(0.5, ge=0, le=1)
    fallback_qi: float = Field(100.0, gt=0)
    fallback_d: float = Field(0.05, gt=0)
    min_points: int = Field(3, ge=1)

    # Use the grid search instead of the two-point estimate when auto-fitting
    refine: bool = False

    @model_validator(mode="after")
    def _check_bounds(self) -> "FittingConfig":
        lo, hi = self.d_bounds
        if not 0 < lo < hi:
            raise ValueError(f"d_bounds must satisfy 0 < low < high, got {self.d_bounds}")
        if not self.b_candidates or not self.qi_multipliers:
            raise ValueError("b_candidates and qi_multipliers must not be empty")
        return self


class DragConfig(BaseModel):
    """Sensitivity and clamping for pointer-drag adjustments (per pixel)."""

    model_config = ConfigDict(frozen=True, extra="ignore")

    qi_per_pixel: float = 0.5
    qi_min: float = Field(1.0, gt=0)

    d_per_pixel: float = 0.0005
    d_bounds: tuple[float, float] = (0.0001, 0.5)

    b_per_pixel: float = 0.002
    b_bounds: tuple[float, float] = (0.0, 1.0)

    # Rescale D while dragging b so infinite-horizon EUR stays constant
    couple_b_and_d: bool = False

    @model_validator(mode="after")
    def _check_bounds(self) -> "DragConfig":
        for name in ("d_bounds", "b_bounds"):
            lo, hi = getattr(self, name)
            if lo > hi:
                raise ValueError(f"{name} low must not exceed high, got {(lo, hi)}")
        if self.d_bounds[0] <= 0:
            raise ValueError(f"d_bounds low must be positive, got {self.d_bounds}")
        return self


class ForecastConfig(BaseModel):
    """Forecast horizon and averaging window."""

    model_config = ConfigDict(frozen=True, extra="ignore")

    forecast_days: float = Field(90.0, ge=0)
    forecast_steps: int = Field(50, ge=1)
    average_window_days: float = Field(60.0, gt=0)
    average_steps: int = Field(20, ge=1)


class Config(BaseModel):
    """Main configuration container."""

    model_config = ConfigDict(frozen=True, extra="ignore")

    fitting: FittingConfig = Field(default_factory=FittingConfig)
    drag: DragConfig = Field(default_factory=DragConfig)
    forecast: ForecastConfig = Field(default_factory=ForecastConfig)

    @classmethod
    def from_yaml(cls, config_path: Optional[str | Path] = None) -> "Config":
        """Load from a YAML file with ``fitting``, ``drag`` and ``forecast`` sections.

        A missing or empty file yields the default configuration; content that
        is not a mapping fails validation.
        """
        if config_path is None:
            config_path = Path.cwd() / "decline_engine.yaml"
        else:
            config_path = Path(config_path)

        if not config_path.exists():
            return cls()

        with open(config_path, "r") as f:
            data = yaml.safe_load(f) or {}

        # Allow the settings to sit under a top-level "decline_engine" key
        if isinstance(data, dict) and "decline_engine" in data:
            data = data["decline_engine"] or {}

        return cls.model_validate(data)


def get_config() -> Config:
    """Get the default configuration."""
    return Config()


def load_config(config_path: Optional[str | Path] = None) -> Config:
    """Load configuration from YAML, falling back to defaults."""
    return Config.from_yaml(config_path)
