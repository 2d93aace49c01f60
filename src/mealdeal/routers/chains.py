"""API routes for chains, categories and postal codes."""

from fastapi import APIRouter, Depends, Path, Query
from pydantic import BaseModel

from mealdeal.pricing import DishPricingService
from mealdeal.routers.dependencies import PLZ_PATTERN, get_pricing_service
from mealdeal.schemas import ChainInfo

router = APIRouter(prefix="/api/v1", tags=["reference"])


class PostalCodeResponse(BaseModel):
    plz: str
    valid: bool


@router.get("/chains", response_model=list[ChainInfo])
async def list_chains(
    plz: str | None = Query(default=None, pattern=PLZ_PATTERN),
    service: DishPricingService = Depends(get_pricing_service),
) -> list[ChainInfo]:
    """Chains with currently valid offers, optionally near a PLZ."""
    return await service.get_chains(plz)


@router.get("/categories", response_model=list[str])
async def list_categories(
    service: DishPricingService = Depends(get_pricing_service),
) -> list[str]:
    return await service.get_categories()


@router.get("/postal-codes/{plz}", response_model=PostalCodeResponse)
async def validate_postal_code(
    plz: str = Path(pattern=PLZ_PATTERN),
    service: DishPricingService = Depends(get_pricing_service),
) -> PostalCodeResponse:
    """Check whether a PLZ is covered by any advertising region."""
    return PostalCodeResponse(plz=plz, valid=await service.validate_plz(plz))
