"""Typed rows handed out by the store adapter.

Rows are converted from ORM/driver types (Decimal, nullable numerics) once, in
the repository, so the pricing code only ever sees these frozen records.
"""

from dataclasses import dataclass
from datetime import date


@dataclass(frozen=True)
class DishRecord:
    """A dish as stored."""

    dish_id: str
    name: str
    category: str
    is_quick: bool = False
    is_meal_prep: bool = False
    season: str | None = None
    cuisine: str | None = None
    notes: str | None = None


@dataclass(frozen=True)
class DishIngredientLink:
    """Dish-ingredient assignment. qty/unit are informational only."""

    dish_id: str
    ingredient_id: str
    qty: float | None = None
    unit: str | None = None
    optional: bool = False
    role: str | None = None


@dataclass(frozen=True)
class IngredientBaseline:
    """Ingredient reference data with its non-discounted unit price."""

    ingredient_id: str
    name: str
    unit_default: str | None = None
    price_baseline_per_unit: float | None = None


@dataclass(frozen=True)
class OfferRecord:
    """A promotional offer enriched with its chain's display name."""

    offer_id: int
    ingredient_id: str
    region_id: str
    chain_id: str | None
    price_total: float
    pack_size: float
    unit_base: str
    valid_from: date
    valid_to: date
    chain_name: str | None = None
    source: str | None = None
    source_ref_id: str | None = None

    def is_valid_on(self, day: date) -> bool:
        """Inclusive validity window check."""
        return self.valid_from <= day <= self.valid_to


@dataclass(frozen=True)
class ChainRecord:
    """Supermarket chain."""

    chain_id: str
    chain_name: str
