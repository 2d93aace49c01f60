"""API routes for dishes, their pricing and ingredient savings."""

from fastapi import APIRouter, Depends, HTTPException, Query, status
from pydantic import BaseModel

from mealdeal.config import settings
from mealdeal.logging_config import get_logger
from mealdeal.pricing import DishPricingService
from mealdeal.routers.dependencies import PLZ_PATTERN, get_pricing_service
from mealdeal.schemas import (
    Dish,
    DishFilters,
    DishIngredient,
    DishPricing,
    DishSummary,
    IngredientSavings,
)

logger = get_logger(__name__)

router = APIRouter(prefix="/api/v1/dishes", tags=["dishes"])
ingredients_router = APIRouter(prefix="/api/v1/ingredients", tags=["ingredients"])


class DishListResponse(BaseModel):
    """Dishes with offers for a location."""

    dishes: list[DishSummary]
    total: int


class ChainOffersResponse(BaseModel):
    """Whether a chain has offers for a dish."""

    dish_id: str
    chain_id: str
    has_offers: bool


def _not_found(dish_id: str) -> HTTPException:
    return HTTPException(
        status_code=status.HTTP_404_NOT_FOUND,
        detail=f"Dish {dish_id} not found",
    )


@router.get("", response_model=DishListResponse)
async def list_dishes(
    plz: str | None = Query(default=None, pattern=PLZ_PATTERN, description="German postal code"),
    chain: str | None = Query(default=None, description="Chain name, or 'all'"),
    category: str | None = Query(default=None, description="Category, or 'all'"),
    is_quick: bool | None = Query(default=None),
    is_meal_prep: bool | None = Query(default=None),
    limit: int | None = Query(default=None, ge=1, le=200),
    service: DishPricingService = Depends(get_pricing_service),
) -> DishListResponse:
    """
    List dishes that have current offers near a PLZ.

    Without a PLZ the list is empty. Dishes are ordered by name.
    """
    filters = DishFilters(
        plz=plz,
        chain=chain,
        category=category,
        is_quick=is_quick,
        is_meal_prep=is_meal_prep,
        limit=limit or settings.listing_default_limit,
    )
    dishes = await service.list_dishes(filters)
    return DishListResponse(dishes=dishes, total=len(dishes))


@router.get("/{dish_id}", response_model=Dish)
async def get_dish(
    dish_id: str,
    service: DishPricingService = Depends(get_pricing_service),
) -> Dish:
    """Get a dish by id."""
    dish = await service.get_dish(dish_id)
    if dish is None:
        raise _not_found(dish_id)
    return dish


@router.get("/{dish_id}/pricing", response_model=DishPricing)
async def get_dish_pricing(
    dish_id: str,
    plz: str | None = Query(default=None, pattern=PLZ_PATTERN),
    chain_id: str | None = Query(default=None),
    service: DishPricingService = Depends(get_pricing_service),
) -> DishPricing:
    """Aggregated per-unit savings of a dish in a location."""
    pricing = await service.get_dish_pricing(dish_id, plz=plz, chain_id=chain_id)
    if pricing is None:
        raise _not_found(dish_id)
    return pricing


@router.get("/{dish_id}/ingredients", response_model=list[DishIngredient])
async def get_dish_ingredients(
    dish_id: str,
    plz: str | None = Query(default=None, pattern=PLZ_PATTERN),
    chain_id: str | None = Query(default=None),
    service: DishPricingService = Depends(get_pricing_service),
) -> list[DishIngredient]:
    """
    Ingredients of a dish with baseline and offer prices.

    Each ingredient lists all valid offers in the location. With chain_id,
    that chain's offers are listed first and preferred for savings.
    """
    ingredients = await service.get_dish_ingredients_view(dish_id, plz=plz, chain_id=chain_id)
    if ingredients is None:
        raise _not_found(dish_id)
    return ingredients


@router.get("/{dish_id}/chains/{chain_id}/has-offers", response_model=ChainOffersResponse)
async def dish_has_chain_offers(
    dish_id: str,
    chain_id: str,
    plz: str | None = Query(default=None, pattern=PLZ_PATTERN),
    service: DishPricingService = Depends(get_pricing_service),
) -> ChainOffersResponse:
    """Whether a chain currently has offers for any required ingredient of the dish."""
    has_offers = await service.dish_has_chain_offers(dish_id, chain_id, plz=plz)
    return ChainOffersResponse(dish_id=dish_id, chain_id=chain_id, has_offers=has_offers)


@ingredients_router.get("/{ingredient_id}/savings", response_model=IngredientSavings)
async def get_ingredient_savings(
    ingredient_id: str,
    plz: str | None = Query(default=None, pattern=PLZ_PATTERN),
    chain_id: str | None = Query(default=None),
    unit: str | None = Query(default=None, description="Unit the recipe uses"),
    service: DishPricingService = Depends(get_pricing_service),
) -> IngredientSavings:
    """Baseline vs. lowest offer price per unit for one ingredient."""
    savings = await service.get_ingredient_savings(
        ingredient_id, plz=plz, chain_id=chain_id, unit=unit
    )
    if savings is None:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=f"No baseline price for ingredient {ingredient_id} in unit {unit or 'default'}",
        )
    return savings
