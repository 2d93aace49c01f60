"""Pydantic output contracts consumed by the API and rendering layer."""

from datetime import date

from pydantic import BaseModel, Field


class RankedOffer(BaseModel):
    """An offer as displayed for an ingredient, with its computed unit price."""

    offer_id: int
    price_total: float
    pack_size: float
    unit_base: str
    source: str | None = None
    source_ref_id: str | None = None
    valid_from: date | None = None
    valid_to: date | None = None
    chain_id: str | None = None
    chain_name: str | None = None
    price_per_unit: float
    is_lowest_price: bool = Field(
        default=False,
        description="Display hint: offer from the selected chain, or the overall best offer",
    )


class DishIngredient(BaseModel):
    """Ingredient of a dish with per-unit baseline/offer pricing and all valid offers."""

    dish_id: str
    ingredient_id: str
    ingredient_name: str
    qty: float | None = None
    unit: str | None = None
    unit_default: str | None = None
    optional: bool = False
    role: str | None = None
    price_baseline_per_unit: float | None = None
    offer_price_per_unit: float | None = None
    savings_per_unit: float | None = None
    has_offer: bool = False
    all_offers: list[RankedOffer] = Field(default_factory=list)


class DishPricing(BaseModel):
    """Dish-level savings aggregate. Derived on every request, never persisted."""

    dish_id: str
    total_aggregated_savings: float = 0.0
    ingredients_with_offers_count: int = 0
    available_offers_count: int = 0


class Dish(BaseModel):
    """Dish catalogue entry."""

    dish_id: str
    name: str
    category: str
    is_quick: bool = False
    is_meal_prep: bool = False
    season: str | None = None
    cuisine: str | None = None
    notes: str | None = None


class DishSummary(Dish):
    """Dish with its pricing aggregate, as returned by listings."""

    total_aggregated_savings: float = 0.0
    ingredients_with_offers_count: int = 0
    available_offers_count: int = 0


class DishFilters(BaseModel):
    """Filters for dish listings."""

    category: str | None = None
    chain: str | None = Field(default=None, description="Chain display name, 'all' for none")
    plz: str | None = None
    is_quick: bool | None = None
    is_meal_prep: bool | None = None
    limit: int = Field(default=50, ge=1, le=200)


class ChainInfo(BaseModel):
    """Supermarket chain."""

    chain_id: str
    chain_name: str


class IngredientSavings(BaseModel):
    """Per-unit savings for a single ingredient in a location."""

    ingredient_id: str
    ingredient_name: str
    base_price_per_unit: float
    offer_price_per_unit: float
    savings_per_unit: float
    unit: str | None = None
    has_offer: bool = False
