"""SQLAlchemy database models."""

from datetime import date, datetime
from decimal import Decimal

from sqlalchemy import (
    Boolean,
    Date,
    DateTime,
    ForeignKey,
    ForeignKeyConstraint,
    Index,
    Integer,
    Numeric,
    String,
    Text,
    func,
)
from sqlalchemy.orm import Mapped, mapped_column, relationship

from mealdeal.database import Base


class LookupCategory(Base):
    """Dish category lookup."""

    __tablename__ = "lookups_categories"

    category: Mapped[str] = mapped_column(String, primary_key=True)


class LookupUnit(Base):
    """Unit lookup (kg, l, Stück, ...)."""

    __tablename__ = "lookups_units"

    unit: Mapped[str] = mapped_column(String, primary_key=True)
    description: Mapped[str | None] = mapped_column(Text, nullable=True)


class Chain(Base):
    """Supermarket chain."""

    __tablename__ = "chains"

    chain_id: Mapped[str] = mapped_column(String, primary_key=True)
    chain_name: Mapped[str] = mapped_column(String, nullable=False, unique=True)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), server_default=func.now())
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now(), onupdate=func.now()
    )

    regions: Mapped[list["AdRegion"]] = relationship("AdRegion", back_populates="chain")


class AdRegion(Base):
    """Chain-specific advertising region; the same region_id may exist for several chains."""

    __tablename__ = "ad_regions"

    region_id: Mapped[str] = mapped_column(String, primary_key=True)
    chain_id: Mapped[str] = mapped_column(
        String, ForeignKey("chains.chain_id", ondelete="CASCADE"), primary_key=True
    )
    label: Mapped[str] = mapped_column(String, nullable=False)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), server_default=func.now())
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now(), onupdate=func.now()
    )

    chain: Mapped["Chain"] = relationship("Chain", back_populates="regions")

    __table_args__ = (Index("idx_ad_regions_chain_id", "chain_id"),)


class PostalCode(Base):
    """PLZ to region mapping. One PLZ may resolve to several regions."""

    __tablename__ = "postal_codes"

    plz: Mapped[str] = mapped_column(String(5), primary_key=True)
    region_id: Mapped[str] = mapped_column(String, primary_key=True)
    city: Mapped[str | None] = mapped_column(String, nullable=True)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), server_default=func.now())

    __table_args__ = (Index("idx_postal_codes_plz", "plz"),)


class Ingredient(Base):
    """Canonical ingredient with its baseline unit price."""

    __tablename__ = "ingredients"

    ingredient_id: Mapped[str] = mapped_column(String, primary_key=True)
    name_canonical: Mapped[str] = mapped_column(String, nullable=False)
    unit_default: Mapped[str] = mapped_column(
        String, ForeignKey("lookups_units.unit", onupdate="CASCADE"), nullable=False
    )
    price_baseline_per_unit: Mapped[Decimal | None] = mapped_column(Numeric(10, 2), nullable=True)
    allergen_tags: Mapped[str | None] = mapped_column(Text, nullable=True)  # comma separated
    notes: Mapped[str | None] = mapped_column(Text, nullable=True)


class Dish(Base):
    """Dish (recipe) shown to users."""

    __tablename__ = "dishes"

    dish_id: Mapped[str] = mapped_column(String, primary_key=True)
    name: Mapped[str] = mapped_column(String, nullable=False)
    category: Mapped[str] = mapped_column(
        String, ForeignKey("lookups_categories.category", onupdate="CASCADE"), nullable=False
    )
    is_quick: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)
    is_meal_prep: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)
    season: Mapped[str | None] = mapped_column(String, nullable=True)
    cuisine: Mapped[str | None] = mapped_column(String, nullable=True)
    notes: Mapped[str | None] = mapped_column(Text, nullable=True)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), server_default=func.now())
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now(), onupdate=func.now()
    )

    ingredients: Mapped[list["DishIngredient"]] = relationship(
        "DishIngredient", back_populates="dish", cascade="all, delete-orphan"
    )

    __table_args__ = (Index("idx_dishes_category", "category"),)


class DishIngredient(Base):
    """Dish-ingredient link. qty/unit are informational and not used in price math."""

    __tablename__ = "dish_ingredients"

    dish_id: Mapped[str] = mapped_column(
        String, ForeignKey("dishes.dish_id", ondelete="CASCADE"), primary_key=True
    )
    ingredient_id: Mapped[str] = mapped_column(
        String, ForeignKey("ingredients.ingredient_id", ondelete="CASCADE"), primary_key=True
    )
    qty: Mapped[Decimal | None] = mapped_column(Numeric(10, 3), nullable=True)
    unit: Mapped[str | None] = mapped_column(String, nullable=True)
    optional: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)
    role: Mapped[str | None] = mapped_column(String, nullable=True)  # main, side, Hauptzutat, ...

    dish: Mapped["Dish"] = relationship("Dish", back_populates="ingredients")

    __table_args__ = (
        Index("idx_dish_ingredients_dish", "dish_id"),
        Index("idx_dish_ingredients_ingredient", "ingredient_id"),
    )


class Offer(Base):
    """Time-bounded promotional price for an ingredient at a chain in a region."""

    __tablename__ = "offers"

    offer_id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    region_id: Mapped[str] = mapped_column(String, nullable=False)
    chain_id: Mapped[str] = mapped_column(String, nullable=False)
    ingredient_id: Mapped[str] = mapped_column(
        String, ForeignKey("ingredients.ingredient_id", ondelete="CASCADE"), nullable=False
    )
    price_total: Mapped[Decimal] = mapped_column(Numeric(10, 2), nullable=False)
    pack_size: Mapped[Decimal] = mapped_column(Numeric(10, 3), nullable=False, default=1)
    unit_base: Mapped[str] = mapped_column(String, nullable=False)
    valid_from: Mapped[date] = mapped_column(Date, nullable=False)
    valid_to: Mapped[date] = mapped_column(Date, nullable=False)
    source: Mapped[str | None] = mapped_column(String, nullable=True)
    source_ref_id: Mapped[str | None] = mapped_column(String, nullable=True)
    offer_hash: Mapped[str | None] = mapped_column(String(64), nullable=True, unique=True)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), server_default=func.now())
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now(), onupdate=func.now()
    )

    __table_args__ = (
        ForeignKeyConstraint(
            ["region_id", "chain_id"],
            ["ad_regions.region_id", "ad_regions.chain_id"],
            ondelete="CASCADE",
            onupdate="CASCADE",
        ),
        Index("idx_offers_region", "region_id"),
        Index("idx_offers_ingredient", "ingredient_id"),
        Index("idx_offers_valid_dates", "valid_from", "valid_to"),
        Index("idx_offers_chain_id", "chain_id"),
    )
