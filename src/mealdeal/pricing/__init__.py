"""Dish pricing and savings aggregation."""

from mealdeal.pricing.aggregator import aggregate, resolve_dish_ingredients, resolve_ingredient
from mealdeal.pricing.display import should_display_dish
from mealdeal.pricing.offers import OfferLookup
from mealdeal.pricing.regions import RegionResolver
from mealdeal.pricing.repository import PricingRepository, StoreUnavailableError
from mealdeal.pricing.selector import OfferSelection, pick_winner, rank_offers, select
from mealdeal.pricing.service import DishPricingService

__all__ = [
    "DishPricingService",
    "OfferLookup",
    "OfferSelection",
    "PricingRepository",
    "RegionResolver",
    "StoreUnavailableError",
    "aggregate",
    "pick_winner",
    "rank_offers",
    "resolve_dish_ingredients",
    "resolve_ingredient",
    "select",
    "should_display_dish",
]
