"""Lookup of currently valid offers per ingredient."""

from collections import defaultdict
from collections.abc import Collection
from datetime import date, datetime

from mealdeal.logging_config import get_logger
from mealdeal.pricing.entities import OfferRecord
from mealdeal.pricing.repository import PricingRepository

logger = get_logger(__name__)


def as_date(value: date | datetime) -> date:
    """Drop any time-of-day component."""
    if isinstance(value, datetime):
        return value.date()
    return value


class OfferLookup:
    """Finds date-valid offers for a set of ingredients within a set of regions."""

    def __init__(self, repository: PricingRepository):
        self.repository = repository

    async def find_valid_offers(
        self,
        ingredient_ids: Collection[str],
        region_ids: Collection[str],
        as_of: date | datetime,
        chain_id: str | None = None,
    ) -> dict[str, list[OfferRecord]]:
        """
        Group valid offers by ingredient id.

        Returns an empty map without querying when either id set is empty.
        Within each ingredient offers keep the store order (ascending
        price_total); the selector applies the definitive ordering.
        """
        if not ingredient_ids or not region_ids:
            return {}

        day = as_date(as_of)
        offers = await self.repository.fetch_valid_offers(
            set(ingredient_ids),
            set(region_ids),
            day,
            chain_id=chain_id,
        )

        grouped: dict[str, list[OfferRecord]] = defaultdict(list)
        for offer in offers:
            if offer.is_valid_on(day):
                grouped[offer.ingredient_id].append(offer)

        logger.debug(
            f"Found {sum(len(v) for v in grouped.values())} valid offers "
            f"for {len(grouped)}/{len(ingredient_ids)} ingredients on {day}"
        )
        return dict(grouped)
