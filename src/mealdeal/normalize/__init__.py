"""Unit price normalization and unit conversion."""

from mealdeal.normalize.units import (
    UNIT_PRICE_EPSILON,
    convert,
    identify_unit_type,
    normalize_unit,
    offer_unit_price,
    unit_price,
)

__all__ = [
    "UNIT_PRICE_EPSILON",
    "convert",
    "identify_unit_type",
    "normalize_unit",
    "offer_unit_price",
    "unit_price",
]
