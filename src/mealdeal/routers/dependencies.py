"""Shared FastAPI dependencies."""

from fastapi import Depends
from sqlalchemy.ext.asyncio import AsyncSession

from mealdeal.database import get_db
from mealdeal.pricing import DishPricingService, PricingRepository

PLZ_PATTERN = r"^\d{5}$"


async def get_pricing_service(db: AsyncSession = Depends(get_db)) -> DishPricingService:
    """Pricing service bound to the request's database session."""
    return DishPricingService(PricingRepository(db))
