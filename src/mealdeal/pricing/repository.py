"""Read-only store adapter for the pricing core.

Every query returns typed records from ``mealdeal.pricing.entities``. Driver or
connection failures surface as ``StoreUnavailableError`` so callers can tell
"no data" apart from "could not fetch data".
"""

from collections import defaultdict
from collections.abc import Collection
from datetime import date
from decimal import Decimal
from typing import Any

from sqlalchemy import Select, select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from mealdeal.logging_config import get_logger
from mealdeal.models import (
    AdRegion,
    Chain,
    Dish,
    DishIngredient,
    Ingredient,
    LookupCategory,
    Offer,
    PostalCode,
)
from mealdeal.pricing.entities import (
    ChainRecord,
    DishIngredientLink,
    DishRecord,
    IngredientBaseline,
    OfferRecord,
)

logger = get_logger(__name__)


class StoreUnavailableError(Exception):
    """The relational store could not be queried (connection or query failure)."""

    def __init__(self, operation: str, cause: BaseException | None = None):
        self.operation = operation
        self.cause = cause
        message = f"Store query failed: {operation}"
        if cause is not None:
            message += f" ({type(cause).__name__}: {cause})"
        super().__init__(message)


def _to_float(value: Decimal | float | int | None) -> float | None:
    return float(value) if value is not None else None


class PricingRepository:
    """Repository for the read queries behind dish pricing."""

    def __init__(self, session: AsyncSession):
        self.session = session

    async def _execute(self, operation: str, stmt: Select) -> Any:
        try:
            return await self.session.execute(stmt)
        except (SQLAlchemyError, OSError) as e:
            logger.error(f"{operation} failed: {e}")
            raise StoreUnavailableError(operation, e) from e

    # =========================================================================
    # Regions
    # =========================================================================

    async def resolve_regions(self, plz: str) -> set[str]:
        """All region ids mapped to a postal code (possibly none)."""
        result = await self._execute(
            "resolve_regions",
            select(PostalCode.region_id).where(PostalCode.plz == plz),
        )
        return set(result.scalars().all())

    async def regions_for_chain(self, chain_id: str) -> set[str]:
        """All region ids a chain advertises in."""
        result = await self._execute(
            "regions_for_chain",
            select(AdRegion.region_id).where(AdRegion.chain_id == chain_id),
        )
        return set(result.scalars().all())

    async def plz_exists(self, plz: str) -> bool:
        result = await self._execute(
            "plz_exists",
            select(PostalCode.plz).where(PostalCode.plz == plz).limit(1),
        )
        return result.scalar_one_or_none() is not None

    # =========================================================================
    # Dishes and ingredients
    # =========================================================================

    @staticmethod
    def _to_dish(row: Dish) -> DishRecord:
        return DishRecord(
            dish_id=row.dish_id,
            name=row.name,
            category=row.category,
            is_quick=bool(row.is_quick),
            is_meal_prep=bool(row.is_meal_prep),
            season=row.season,
            cuisine=row.cuisine,
            notes=row.notes,
        )

    async def get_dish(self, dish_id: str) -> DishRecord | None:
        result = await self._execute("get_dish", select(Dish).where(Dish.dish_id == dish_id))
        row = result.scalar_one_or_none()
        return self._to_dish(row) if row else None

    async def list_dishes(
        self,
        category: str | None = None,
        is_quick: bool | None = None,
        is_meal_prep: bool | None = None,
        limit: int = 50,
    ) -> list[DishRecord]:
        """Dishes ordered by name, optionally filtered."""
        query = select(Dish)
        if category:
            query = query.where(Dish.category == category)
        if is_quick is not None:
            query = query.where(Dish.is_quick == is_quick)
        if is_meal_prep is not None:
            query = query.where(Dish.is_meal_prep == is_meal_prep)
        query = query.order_by(Dish.name, Dish.dish_id).limit(limit)

        result = await self._execute("list_dishes", query)
        return [self._to_dish(row) for row in result.scalars().all()]

    async def fetch_dish_ingredients(
        self,
        dish_ids: Collection[str],
        required_only: bool = False,
    ) -> dict[str, list[DishIngredientLink]]:
        """Ingredient links for a set of dishes in one round trip, required ones first."""
        if not dish_ids:
            return {}

        query = select(DishIngredient).where(DishIngredient.dish_id.in_(list(dish_ids)))
        if required_only:
            query = query.where(DishIngredient.optional.is_(False))
        query = query.order_by(
            DishIngredient.dish_id,
            DishIngredient.optional,
            DishIngredient.ingredient_id,
        )

        result = await self._execute("fetch_dish_ingredients", query)
        links: dict[str, list[DishIngredientLink]] = defaultdict(list)
        for row in result.scalars().all():
            links[row.dish_id].append(
                DishIngredientLink(
                    dish_id=row.dish_id,
                    ingredient_id=row.ingredient_id,
                    qty=_to_float(row.qty),
                    unit=row.unit,
                    optional=bool(row.optional),
                    role=row.role,
                )
            )
        return dict(links)

    async def fetch_ingredient_baselines(
        self,
        ingredient_ids: Collection[str],
    ) -> dict[str, IngredientBaseline]:
        if not ingredient_ids:
            return {}

        result = await self._execute(
            "fetch_ingredient_baselines",
            select(Ingredient).where(Ingredient.ingredient_id.in_(list(ingredient_ids))),
        )
        return {
            row.ingredient_id: IngredientBaseline(
                ingredient_id=row.ingredient_id,
                name=row.name_canonical,
                unit_default=row.unit_default,
                price_baseline_per_unit=_to_float(row.price_baseline_per_unit),
            )
            for row in result.scalars().all()
        }

    # =========================================================================
    # Offers and chains
    # =========================================================================

    async def fetch_valid_offers(
        self,
        ingredient_ids: Collection[str],
        region_ids: Collection[str],
        as_of: date,
        chain_id: str | None = None,
    ) -> list[OfferRecord]:
        """Offers valid on ``as_of`` (inclusive) in the given regions, cheapest total first."""
        query = (
            select(Offer, Chain.chain_name)
            .outerjoin(Chain, Chain.chain_id == Offer.chain_id)
            .where(
                Offer.ingredient_id.in_(list(ingredient_ids)),
                Offer.region_id.in_(list(region_ids)),
                Offer.valid_from <= as_of,
                Offer.valid_to >= as_of,
            )
        )
        if chain_id is not None:
            query = query.where(Offer.chain_id == chain_id)
        query = query.order_by(Offer.price_total, Offer.offer_id)

        result = await self._execute("fetch_valid_offers", query)
        return [
            OfferRecord(
                offer_id=offer.offer_id,
                ingredient_id=offer.ingredient_id,
                region_id=offer.region_id,
                chain_id=offer.chain_id,
                chain_name=chain_name,
                price_total=float(offer.price_total),
                pack_size=float(offer.pack_size),
                unit_base=offer.unit_base,
                valid_from=offer.valid_from,
                valid_to=offer.valid_to,
                source=offer.source,
                source_ref_id=offer.source_ref_id,
            )
            for offer, chain_name in result.all()
        ]

    async def get_chain_by_name(self, chain_name: str) -> ChainRecord | None:
        result = await self._execute(
            "get_chain_by_name",
            select(Chain).where(Chain.chain_name == chain_name),
        )
        row = result.scalar_one_or_none()
        return ChainRecord(chain_id=row.chain_id, chain_name=row.chain_name) if row else None

    async def chains_with_active_offers(
        self,
        region_ids: Collection[str] | None,
        as_of: date,
    ) -> list[ChainRecord]:
        """Chains with at least one valid offer, optionally restricted to regions."""
        active = select(Offer.chain_id).where(
            Offer.valid_from <= as_of,
            Offer.valid_to >= as_of,
        )
        if region_ids is not None:
            active = active.where(Offer.region_id.in_(list(region_ids)))

        result = await self._execute(
            "chains_with_active_offers",
            select(Chain).where(Chain.chain_id.in_(active)).order_by(Chain.chain_name),
        )
        return [
            ChainRecord(chain_id=row.chain_id, chain_name=row.chain_name)
            for row in result.scalars().all()
        ]

    async def list_categories(self) -> list[str]:
        result = await self._execute(
            "list_categories",
            select(LookupCategory.category).order_by(LookupCategory.category),
        )
        return list(result.scalars().all())
