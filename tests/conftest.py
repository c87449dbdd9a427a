"""Shared test fixtures for Decline Engine.

Provides reusable decline parameters, synthetic phase series and a raw
production table with the header conventions seen in field exports.
"""

from datetime import date, timedelta

import numpy as np
import pandas as pd
import pytest


@pytest.fixture
def decline_params():
    """Create sample hyperbolic decline parameters for testing."""
    from decline_engine.dca.models import DeclineParameters

    return DeclineParameters(qi=1000, b=0.5, d=0.05)


@pytest.fixture
def synthetic_points(decline_params):
    """Noise-free observations every 10 days generated from decline_params."""
    from decline_engine.data.schemas import TimeSeriesPoint
    from decline_engine.dca.models import arps_rate

    t = np.arange(0, 200, 10, dtype=float)
    rates = arps_rate(t, decline_params)
    return [TimeSeriesPoint(t=ti, value=q) for ti, q in zip(t, rates)]


@pytest.fixture
def sample_production_df() -> pd.DataFrame:
    """Create a daily-rate production table for one well.

    120 days of hyperbolic decline on oil, water and gas plus a flat
    pressure column, with a couple of malformed rows mixed in.
    """
    np.random.seed(42)

    records = []
    start = date(2023, 1, 1)
    for day in range(0, 120, 5):
        oil = 800 / (1 + 0.5 * 0.02 * day) ** 2
        records.append(
            {
                "Well_Name": "WELL-001",
                "Production_Date": (start + timedelta(days=day)).isoformat(),
                "Oil_BOPD": oil * np.random.uniform(0.97, 1.03),
                "Water_BWPD": oil * 0.4,
                "Gas_MCFD": oil * 1.8,
                "PIP_psi": 1500.0,
            }
        )

    # Malformed rows are dropped by the loader
    records.append(
        {
            "Well_Name": "WELL-001",
            "Production_Date": "not a date",
            "Oil_BOPD": 500.0,
            "Water_BWPD": 100.0,
            "Gas_MCFD": 900.0,
            "PIP_psi": 1500.0,
        }
    )
    records.append(
        {
            "Well_Name": "WELL-001",
            "Production_Date": (start + timedelta(days=2)).isoformat(),
            "Oil_BOPD": "n/a",
            "Water_BWPD": 320.0,
            "Gas_MCFD": 1440.0,
            "PIP_psi": 1500.0,
        }
    )

    return pd.DataFrame(records)


@pytest.fixture
def multi_well_series():
    """Three wells with different start times and one empty well."""
    from decline_engine.data.schemas import TimeSeriesPoint
    from decline_engine.dca.models import DeclineParameters, arps_rate

    params = DeclineParameters(qi=500, b=0.3, d=0.0509)
    wells = {}
    for uwi, offset in [("WELL-001", 0.0), ("WELL-002", 30.0), ("WELL-003", 365.0)]:
        t = np.arange(0, 120, 10, dtype=float)
        wells[uwi] = [
            TimeSeriesPoint(t=ti + offset, value=q) for ti, q in zip(t, arps_rate(t, params))
        ]
    wells["WELL-004"] = []
    return wells
