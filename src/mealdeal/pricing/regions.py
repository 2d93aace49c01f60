"""Postal code to pricing region resolution."""

from mealdeal.logging_config import get_logger
from mealdeal.pricing.repository import PricingRepository

logger = get_logger(__name__)


class RegionResolver:
    """Maps a PLZ to the set of chain regions covering it."""

    def __init__(self, repository: PricingRepository):
        self.repository = repository

    async def resolve(self, plz: str | None) -> frozenset[str]:
        """
        Resolve a postal code to region ids.

        An absent or unmapped PLZ yields an empty set: no regional offers are
        known for it. Store failures propagate.
        """
        if not plz:
            return frozenset()

        regions = frozenset(await self.repository.resolve_regions(plz))
        if not regions:
            logger.info(f"PLZ {plz} is not mapped to any region")
        else:
            logger.debug(f"PLZ {plz} resolved to regions {sorted(regions)}")
        return regions
