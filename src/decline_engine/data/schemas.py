"""Data schemas for production time series.

Uses Pydantic for validation at the data boundary so the decline models
only ever see clean, non-negative, finite observations.
"""

from typing import Annotated

from pydantic import BaseModel, ConfigDict, Field

# Phase keys recognised by the column classifier
PHASES = ("oil", "water", "gas", "pressure")

DEFAULT_DATE_COLUMN = "Production_Date"


class TimeSeriesPoint(BaseModel):
    """Single observation of a phase rate.

    ``t`` is measured in days since the series origin.
    """

    model_config = ConfigDict(frozen=True)

    t: Annotated[float, Field(ge=0, allow_inf_nan=False)] = Field(
        ..., description="Days since series origin"
    )
    value: Annotated[float, Field(ge=0, allow_inf_nan=False)] = Field(
        ..., description="Observed rate"
    )


# Type alias for a phase's ordered observations
PhaseSeriesPoints = list[TimeSeriesPoint]
