"""Unit price normalization and unit conversion utilities."""

from typing import Protocol

from mealdeal.logging_config import get_logger

logger = get_logger(__name__)


# =============================================================================
# Unit Conversion Tables
# =============================================================================

# Mass (base unit: g)
MASS_UNITS: dict[str, float] = {
    "g": 1.0,
    "kg": 1000.0,
}

# Volume (base unit: ml)
VOLUME_UNITS: dict[str, float] = {
    "ml": 1.0,
    "l": 1000.0,
}

# Count units are only interchangeable with each other
COUNT_UNITS: dict[str, float] = {
    "stück": 1.0,
    "st": 1.0,
}

UNIT_FAMILIES: dict[str, dict[str, float]] = {
    "mass": MASS_UNITS,
    "volume": VOLUME_UNITS,
    "count": COUNT_UNITS,
}

# Guards the divisor of a unit price; pack sizes are defaulted to 1.0 on import.
UNIT_PRICE_EPSILON = 1e-9


class PricedPack(Protocol):
    price_total: float
    pack_size: float


def normalize_unit(unit: str | None) -> str:
    """Lowercase and trim a unit string."""
    return (unit or "").strip().lower()


def identify_unit_type(unit: str | None) -> tuple[str, float]:
    """
    Identify the unit family and its factor to the family's base unit.

    Returns:
        Tuple of (unit_type, conversion_factor); ("unknown", 1.0) if unrecognized.
    """
    key = normalize_unit(unit)
    for unit_type, table in UNIT_FAMILIES.items():
        if key in table:
            return unit_type, table[key]
    return "unknown", 1.0


def convert(qty: float, from_unit: str | None, to_unit: str | None) -> float | None:
    """
    Convert a quantity between two units of the same family.

    Identical units (after normalization) convert to themselves. Cross-family
    pairs and unrecognized units return None, meaning "not convertible".
    """
    source = normalize_unit(from_unit)
    target = normalize_unit(to_unit)

    if source == target:
        return qty

    source_type, source_factor = identify_unit_type(source)
    target_type, target_factor = identify_unit_type(target)

    if source_type == "unknown" or source_type != target_type:
        logger.debug(f"Cannot convert {from_unit!r} to {to_unit!r}")
        return None

    return qty * source_factor / target_factor


def unit_price(price_total: float, pack_size: float) -> float:
    """Price per base unit of a pack."""
    return price_total / max(pack_size, UNIT_PRICE_EPSILON)


def offer_unit_price(offer: PricedPack) -> float:
    """Per-unit price of an offer: price_total / pack_size."""
    return unit_price(offer.price_total, offer.pack_size)
