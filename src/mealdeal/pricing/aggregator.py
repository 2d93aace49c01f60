"""Per-ingredient savings resolution and dish-level aggregation."""

from collections.abc import Mapping, Sequence

from mealdeal.pricing.entities import DishIngredientLink, IngredientBaseline, OfferRecord
from mealdeal.pricing.selector import select
from mealdeal.schemas import DishIngredient, DishPricing


def savings_per_unit(baseline: float | None, offer_price: float | None) -> float | None:
    """Baseline minus offer unit price, clamped at zero. None if either side is missing."""
    if baseline is None or offer_price is None:
        return None
    return max(0.0, baseline - offer_price)


def resolve_ingredient(
    link: DishIngredientLink,
    baseline: IngredientBaseline | None,
    offers: Sequence[OfferRecord],
    preferred_chain_id: str | None = None,
) -> DishIngredient:
    """Combine a dish-ingredient link with its baseline and valid offers."""
    selection = select(offers, preferred_chain_id)
    baseline_price = baseline.price_baseline_per_unit if baseline else None
    offer_price = selection.winner_unit_price

    return DishIngredient(
        dish_id=link.dish_id,
        ingredient_id=link.ingredient_id,
        ingredient_name=baseline.name if baseline else "",
        qty=link.qty,
        unit=link.unit,
        unit_default=baseline.unit_default if baseline else None,
        optional=link.optional,
        role=link.role,
        price_baseline_per_unit=baseline_price,
        offer_price_per_unit=offer_price,
        savings_per_unit=savings_per_unit(baseline_price, offer_price),
        has_offer=selection.winner is not None,
        all_offers=selection.ranked,
    )


def resolve_dish_ingredients(
    links: Sequence[DishIngredientLink],
    baselines: Mapping[str, IngredientBaseline],
    offers_by_ingredient: Mapping[str, Sequence[OfferRecord]],
    preferred_chain_id: str | None = None,
) -> list[DishIngredient]:
    """Resolve every ingredient of one dish."""
    return [
        resolve_ingredient(
            link,
            baselines.get(link.ingredient_id),
            offers_by_ingredient.get(link.ingredient_id, ()),
            preferred_chain_id,
        )
        for link in links
    ]


def aggregate(dish_id: str, ingredients: Sequence[DishIngredient]) -> DishPricing:
    """
    Sum per-unit savings into a dish aggregate.

    Required and optional ingredients both count. Only positive savings are
    summed and counted as "with offers"; available_offers_count counts every
    ingredient that has a winning offer, whether or not it beats the baseline.
    Savings are per base unit and never scaled by recipe quantity.
    """
    total = 0.0
    with_savings = 0
    available = 0

    for ingredient in ingredients:
        if not ingredient.has_offer:
            continue
        available += 1
        if ingredient.savings_per_unit is not None and ingredient.savings_per_unit > 0:
            total += ingredient.savings_per_unit
            with_savings += 1

    return DishPricing(
        dish_id=dish_id,
        total_aggregated_savings=total,
        ingredients_with_offers_count=with_savings,
        available_offers_count=available,
    )
