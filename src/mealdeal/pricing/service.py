"""Dish pricing facade: orchestrates region, offer, selection and aggregation steps."""

from collections.abc import Callable, Collection
from datetime import date, datetime

from mealdeal.config import settings
from mealdeal.logging_config import LoggingContext, get_logger
from mealdeal.normalize.units import convert, normalize_unit, offer_unit_price
from mealdeal.pricing.aggregator import aggregate, resolve_dish_ingredients, savings_per_unit
from mealdeal.pricing.display import should_display_dish
from mealdeal.pricing.entities import DishIngredientLink, DishRecord, OfferRecord
from mealdeal.pricing.offers import OfferLookup, as_date
from mealdeal.pricing.regions import RegionResolver
from mealdeal.pricing.repository import PricingRepository
from mealdeal.schemas import (
    ChainInfo,
    Dish,
    DishFilters,
    DishIngredient,
    DishPricing,
    DishSummary,
    IngredientSavings,
)

logger = get_logger(__name__)

ALL = "all"


class DishPricingService:
    """High-level pricing operations used by the API."""

    def __init__(
        self,
        repository: PricingRepository,
        today: Callable[[], date] = settings.today,
    ):
        self.repository = repository
        self.regions = RegionResolver(repository)
        self.offers = OfferLookup(repository)
        self._today = today

    def _as_of(self, as_of: date | datetime | None) -> date:
        return as_date(as_of) if as_of is not None else self._today()

    async def _price_dishes(
        self,
        dish_ids: Collection[str],
        region_ids: Collection[str],
        chain_id: str | None,
        as_of: date,
    ) -> tuple[
        dict[str, list[DishIngredientLink]],
        dict[str, list[OfferRecord]],
        dict[str, list[DishIngredient]],
    ]:
        """Batch-fetch links, baselines and offers for a set of dishes."""
        links = await self.repository.fetch_dish_ingredients(dish_ids)
        ingredient_ids = {
            link.ingredient_id for dish_links in links.values() for link in dish_links
        }

        baselines = await self.repository.fetch_ingredient_baselines(ingredient_ids)
        offers = await self.offers.find_valid_offers(ingredient_ids, region_ids, as_of)

        resolved = {
            dish_id: resolve_dish_ingredients(
                links.get(dish_id, []), baselines, offers, preferred_chain_id=chain_id
            )
            for dish_id in dish_ids
        }
        return links, offers, resolved

    # =========================================================================
    # Single dish
    # =========================================================================

    async def get_dish(self, dish_id: str) -> Dish | None:
        record = await self.repository.get_dish(dish_id)
        return _dish_model(record) if record else None

    async def get_dish_ingredients_view(
        self,
        dish_id: str,
        plz: str | None = None,
        chain_id: str | None = None,
        as_of: date | datetime | None = None,
    ) -> list[DishIngredient] | None:
        """
        Ingredients of a dish with per-unit pricing and ranked offers.

        Returns None if the dish does not exist.
        """
        with LoggingContext(plz=plz, dish_id=dish_id):
            if await self.repository.get_dish(dish_id) is None:
                logger.info(f"Dish {dish_id} not found")
                return None

            day = self._as_of(as_of)
            region_ids = await self.regions.resolve(plz)
            _, _, resolved = await self._price_dishes([dish_id], region_ids, chain_id, day)
            return resolved[dish_id]

    async def get_dish_pricing(
        self,
        dish_id: str,
        plz: str | None = None,
        chain_id: str | None = None,
        as_of: date | datetime | None = None,
    ) -> DishPricing | None:
        """Dish-level savings aggregate, or None if the dish does not exist."""
        ingredients = await self.get_dish_ingredients_view(dish_id, plz, chain_id, as_of)
        if ingredients is None:
            return None

        pricing = aggregate(dish_id, ingredients)
        logger.debug(
            f"Priced dish {dish_id}: savings={pricing.total_aggregated_savings:.2f}, "
            f"with_offers={pricing.ingredients_with_offers_count}, "
            f"available={pricing.available_offers_count}"
        )
        return pricing

    async def dish_has_chain_offers(
        self,
        dish_id: str,
        chain_id: str,
        plz: str | None = None,
        as_of: date | datetime | None = None,
    ) -> bool:
        """
        Whether any required ingredient of the dish has a valid offer from a chain.

        Uses the PLZ's regions, or all of the chain's regions when the PLZ is
        absent or unmapped.
        """
        region_ids: Collection[str] = await self.regions.resolve(plz)
        if not region_ids:
            region_ids = await self.repository.regions_for_chain(chain_id)
        if not region_ids:
            return False

        links = await self.repository.fetch_dish_ingredients([dish_id], required_only=True)
        ingredient_ids = {link.ingredient_id for link in links.get(dish_id, [])}
        offers = await self.offers.find_valid_offers(
            ingredient_ids, region_ids, self._as_of(as_of), chain_id=chain_id
        )
        return any(offers.values())

    async def get_ingredient_savings(
        self,
        ingredient_id: str,
        plz: str | None,
        chain_id: str | None = None,
        unit: str | None = None,
        as_of: date | datetime | None = None,
    ) -> IngredientSavings | None:
        """
        Baseline vs. lowest offer unit price for one ingredient.

        Returns None when the ingredient or its baseline is unknown, or when
        ``unit`` cannot be converted to the ingredient's default unit.
        """
        baselines = await self.repository.fetch_ingredient_baselines([ingredient_id])
        baseline = baselines.get(ingredient_id)
        if baseline is None or baseline.price_baseline_per_unit is None:
            return None

        if unit and normalize_unit(unit) != normalize_unit(baseline.unit_default):
            if convert(1.0, unit, baseline.unit_default) is None:
                logger.info(
                    f"Unit {unit!r} not comparable with {baseline.unit_default!r} "
                    f"for ingredient {ingredient_id}"
                )
                return None

        region_ids = await self.regions.resolve(plz)
        offers = await self.offers.find_valid_offers(
            [ingredient_id], region_ids, self._as_of(as_of), chain_id=chain_id
        )
        candidates = offers.get(ingredient_id, [])
        base_price = baseline.price_baseline_per_unit
        lowest = min((offer_unit_price(o) for o in candidates), default=None)

        return IngredientSavings(
            ingredient_id=ingredient_id,
            ingredient_name=baseline.name,
            base_price_per_unit=base_price,
            offer_price_per_unit=lowest if lowest is not None else base_price,
            savings_per_unit=savings_per_unit(base_price, lowest) or 0.0,
            unit=baseline.unit_default,
            has_offer=lowest is not None,
        )

    # =========================================================================
    # Listings
    # =========================================================================

    async def list_dishes(
        self,
        filters: DishFilters,
        as_of: date | datetime | None = None,
    ) -> list[DishSummary]:
        """
        Dishes with offers worth showing for a location, with their aggregates.

        A PLZ is required: without one, or with one mapped to no region, the
        list is empty. An unknown chain name also yields an empty list.
        """
        with LoggingContext(plz=filters.plz):
            region_ids = await self.regions.resolve(filters.plz)
            if not region_ids:
                return []

            chain_id: str | None = None
            if filters.chain and filters.chain != ALL:
                chain = await self.repository.get_chain_by_name(filters.chain)
                if chain is None:
                    logger.info(f"Unknown chain filter {filters.chain!r}")
                    return []
                chain_id = chain.chain_id

            category = filters.category if filters.category != ALL else None
            dishes = await self.repository.list_dishes(
                category=category,
                is_quick=filters.is_quick,
                is_meal_prep=filters.is_meal_prep,
                limit=filters.limit,
            )
            if not dishes:
                return []

            day = self._as_of(as_of)
            links, offers, resolved = await self._price_dishes(
                [d.dish_id for d in dishes], region_ids, chain_id, day
            )

            summaries = []
            for dish in dishes:
                if not should_display_dish(links.get(dish.dish_id, []), offers, chain_id):
                    continue
                pricing = aggregate(dish.dish_id, resolved[dish.dish_id])
                summaries.append(
                    DishSummary(
                        **_dish_model(dish).model_dump(),
                        total_aggregated_savings=pricing.total_aggregated_savings,
                        ingredients_with_offers_count=pricing.ingredients_with_offers_count,
                        available_offers_count=pricing.available_offers_count,
                    )
                )

            logger.info(f"Listing: {len(summaries)} of {len(dishes)} dishes have offers")
            return summaries

    async def get_chains(
        self,
        plz: str | None = None,
        as_of: date | datetime | None = None,
    ) -> list[ChainInfo]:
        """Chains with currently valid offers, in the PLZ's regions if given."""
        region_ids: Collection[str] | None = None
        if plz:
            region_ids = await self.regions.resolve(plz)
            if not region_ids:
                return []

        chains = await self.repository.chains_with_active_offers(region_ids, self._as_of(as_of))
        return [ChainInfo(chain_id=c.chain_id, chain_name=c.chain_name) for c in chains]

    async def get_categories(self) -> list[str]:
        return await self.repository.list_categories()

    async def validate_plz(self, plz: str) -> bool:
        """Whether a PLZ exists in the mapping table."""
        return await self.repository.plz_exists(plz)


def _dish_model(record: DishRecord) -> Dish:
    return Dish(
        dish_id=record.dish_id,
        name=record.name,
        category=record.category,
        is_quick=record.is_quick,
        is_meal_prep=record.is_meal_prep,
        season=record.season,
        cuisine=record.cuisine,
        notes=record.notes,
    )
