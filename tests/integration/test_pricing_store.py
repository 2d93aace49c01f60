"""End-to-end tests: CSV import into PostgreSQL, then pricing through the repository.

Run with:
    pytest -m integration tests/integration/test_pricing_store.py -v

Requirements:
    - PostgreSQL database (TEST_DATABASE_URL)
"""

from datetime import date

import pytest
import pytest_asyncio
from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession, create_async_engine

from mealdeal.ingest import export_table, import_csv
from mealdeal.models import Offer
from mealdeal.pricing import DishPricingService, PricingRepository
from mealdeal.schemas import DishFilters

TODAY = date(2025, 3, 12)

FIXTURE_TABLES = [
    ("lookups_categories", "category\nPasta\n"),
    ("lookups_units", "unit,description\nkg,Kilogramm\nStück,Stück\n"),
    ("chains", "chain_id,chain_name\nC1,Aldi\nC2,Rewe\n"),
    ("ad_regions", "region_id,chain_id,label\nR1,C1,Berlin Mitte\nR2,C2,Berlin\n"),
    ("postal_codes", "plz,region_id,city\n10115,R1,Berlin\n10115,R2,Berlin\n"),
    (
        "ingredients",
        "ingredient_id,name_canonical,unit_default,price_baseline_per_unit\n"
        "I001,Tomaten,kg,\"2,00\"\nI002,Nudeln,kg,1.50\n",
    ),
    ("dishes", "dish_id,name,category,is_quick\nD001,Pasta Pomodoro,Pasta,ja\n"),
    (
        "dish_ingredients",
        "dish_id,ingredient_id,qty,unit,optional,role\n"
        "D001,I001,0.5,kg,false,main\nD001,I002,0.25,kg,false,side\n",
    ),
    (
        "offers",
        "region_id,chain_id,ingredient_id,price_total,pack_size,unit_base,"
        "valid_from,valid_to,source,source_ref_id\n"
        "R1,C1,I001,3.00,2,kg,2025-03-10,2025-03-15,flyer,KW11\n"
        "R2,C2,I001,1.60,1,kg,2025-03-12,2025-03-12,flyer,KW11\n"
        "R1,C1,I002,0.99,1,kg,2025-03-01,2025-03-11,flyer,KW10\n",
    ),
]


@pytest.fixture
def seeded_engine(test_db_engine):
    for table, content in FIXTURE_TABLES:
        result = import_csv(table, content, dry_run=False, engine=test_db_engine)
        assert result.errors == [], f"{table}: {result.errors}"
    return test_db_engine


@pytest_asyncio.fixture
async def repository(seeded_engine):
    engine = create_async_engine(seeded_engine.url.set(drivername="postgresql+asyncpg"))
    async with AsyncSession(engine) as session:
        yield PricingRepository(session)
    await engine.dispose()


@pytest.mark.integration
class TestCSVImport:
    """Tests for importing into a real database."""

    def test_reimport_does_not_duplicate_offers(self, seeded_engine):
        _, offers_csv = FIXTURE_TABLES[-1]

        result = import_csv("offers", offers_csv, dry_run=False, engine=seeded_engine)

        assert result.imported == 3
        with seeded_engine.connect() as conn:
            assert conn.execute(select(func.count(Offer.offer_id))).scalar() == 3

    def test_unknown_region_rolls_back(self, seeded_engine):
        content = (
            "region_id,chain_id,ingredient_id,price_total,pack_size,unit_base,"
            "valid_from,valid_to,source\n"
            "R9,C1,I001,1.00,1,kg,2025-03-10,2025-03-15,flyer\n"
        )

        result = import_csv("offers", content, dry_run=False, engine=seeded_engine)

        assert result.imported == 0
        assert result.errors[0].startswith("Import rejected")

    def test_export_uses_import_layout(self, seeded_engine):
        content = export_table("chains", engine=seeded_engine)
        assert content.splitlines() == ["chain_id,chain_name", "C1,Aldi", "C2,Rewe"]


@pytest.mark.integration
class TestPricingRepository:
    """Tests for pricing against imported data."""

    @pytest.mark.asyncio
    async def test_plz_resolves_to_both_regions(self, repository):
        assert await repository.resolve_regions("10115") == {"R1", "R2"}

    @pytest.mark.asyncio
    async def test_only_valid_offers_returned(self, repository):
        offers = await repository.fetch_valid_offers(["I001", "I002"], ["R1", "R2"], TODAY)

        assert sorted(o.price_total for o in offers) == [1.60, 3.00]
        assert {o.chain_name for o in offers} == {"Aldi", "Rewe"}

    @pytest.mark.asyncio
    async def test_dish_pricing(self, repository):
        service = DishPricingService(repository, today=lambda: TODAY)

        pricing = await service.get_dish_pricing("D001", plz="10115")

        assert pricing.total_aggregated_savings == pytest.approx(0.50)
        assert pricing.ingredients_with_offers_count == 1
        assert pricing.available_offers_count == 1

    @pytest.mark.asyncio
    async def test_listing_with_chain_filter(self, repository):
        service = DishPricingService(repository, today=lambda: TODAY)

        dishes = await service.list_dishes(DishFilters(plz="10115", chain="Rewe"))

        assert [d.dish_id for d in dishes] == ["D001"]
        assert dishes[0].total_aggregated_savings == pytest.approx(0.40)
