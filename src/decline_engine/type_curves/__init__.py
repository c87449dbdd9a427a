"""Type Curves module - Representative decline curves from pooled wells."""

from decline_engine.type_curves.aggregation import (
    align_wells,
    generate_type_curve,
    normalize_well_series,
    pool_wells,
)

__all__ = [
    "align_wells",
    "normalize_well_series",
    "pool_wells",
    "generate_type_curve",
]
