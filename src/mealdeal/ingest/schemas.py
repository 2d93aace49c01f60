"""Pydantic schemas for validating CSV import rows."""

import hashlib
import re
from datetime import date
from typing import Any

from pydantic import BaseModel, Field, field_validator, model_validator

NULL_MARKERS = {"", "null", "none"}
TRUE_VALUES = {"true", "1", "yes", "ja", "y", "t"}
FALSE_VALUES = {"false", "0", "no", "nein", "n", "f"}
DATE_PATTERN = re.compile(r"^\d{4}-\d{2}-\d{2}$")


def is_empty(value: Any) -> bool:
    """Empty cells and NULL markers count as missing."""
    return value is None or (isinstance(value, str) and value.strip().lower() in NULL_MARKERS)


def parse_number(value: Any) -> float | None:
    """Parse a number that may use a decimal comma (1,99)."""
    if is_empty(value):
        return None
    if isinstance(value, str):
        value = value.strip().replace(",", ".")
    try:
        number = float(value)
    except (TypeError, ValueError):
        raise ValueError(f'"{value}" is not a number (use e.g. 1.99 or 1,99)') from None
    if number < 0:
        raise ValueError(f'"{value}" is negative')
    return number


def parse_bool(value: Any) -> bool:
    if isinstance(value, bool):
        return value
    if is_empty(value):
        return False
    text = str(value).strip().lower()
    if text in TRUE_VALUES:
        return True
    if text in FALSE_VALUES:
        return False
    raise ValueError(f'"{value}" is not a boolean (use true/false)')


class CSVRow(BaseModel):
    """Base row: blank cells become None before field validation."""

    @model_validator(mode="before")
    @classmethod
    def blank_to_none(cls, data: Any) -> Any:
        if isinstance(data, dict):
            return {
                k: (None if is_empty(v) else v.strip() if isinstance(v, str) else v)
                for k, v in data.items()
            }
        return data


class ChainRow(CSVRow):
    chain_id: str
    chain_name: str


class AdRegionRow(CSVRow):
    region_id: str
    chain_id: str
    label: str


class PostalCodeRow(CSVRow):
    plz: str = Field(pattern=r"^\d{5}$")
    region_id: str
    city: str | None = None


class LookupCategoryRow(CSVRow):
    category: str


class LookupUnitRow(CSVRow):
    unit: str
    description: str | None = None


class IngredientRow(CSVRow):
    """Ingredient reference data; the baseline price is mandatory."""

    ingredient_id: str
    name_canonical: str
    unit_default: str
    price_baseline_per_unit: float
    allergen_tags: str | None = None
    notes: str | None = None

    @field_validator("price_baseline_per_unit", mode="before")
    @classmethod
    def coerce_price(cls, v: Any) -> float | None:
        return parse_number(v)


class DishRow(CSVRow):
    dish_id: str
    name: str
    category: str
    is_quick: bool = False
    is_meal_prep: bool = False
    season: str | None = None
    cuisine: str | None = None
    notes: str | None = None

    @field_validator("is_quick", "is_meal_prep", mode="before")
    @classmethod
    def coerce_bool(cls, v: Any) -> bool:
        return parse_bool(v)


class DishIngredientRow(CSVRow):
    """Dish-ingredient assignment; qty and unit may be left empty."""

    dish_id: str
    ingredient_id: str
    qty: float | None = None
    unit: str | None = None
    optional: bool = False
    role: str

    @field_validator("qty", mode="before")
    @classmethod
    def coerce_qty(cls, v: Any) -> float | None:
        qty = parse_number(v)
        if qty is not None and qty <= 0:
            raise ValueError("quantity must be greater than 0, or left empty")
        return qty

    @field_validator("optional", mode="before")
    @classmethod
    def coerce_optional(cls, v: Any) -> bool:
        return parse_bool(v)


class OfferRow(CSVRow):
    """
    A supermarket offer.

    pack_size is normalized here, once, at ingestion: empty or zero becomes 1.0
    so the read path can always divide by it.
    """

    region_id: str
    chain_id: str
    ingredient_id: str
    price_total: float
    pack_size: float = 1.0
    unit_base: str
    valid_from: date
    valid_to: date
    source: str
    source_ref_id: str | None = None

    @field_validator("ingredient_id", mode="before")
    @classmethod
    def format_ingredient_id(cls, v: Any) -> Any:
        """Numeric ids are written as I001, I002, ..."""
        if isinstance(v, (int, str)) and str(v).isdigit():
            return f"I{int(v):03d}"
        return v

    @field_validator("price_total", mode="before")
    @classmethod
    def coerce_price(cls, v: Any) -> float | None:
        return parse_number(v)

    @field_validator("pack_size", mode="before")
    @classmethod
    def default_pack_size(cls, v: Any) -> float:
        size = parse_number(v)
        if not size:
            return 1.0
        return size

    @field_validator("valid_from", "valid_to", mode="before")
    @classmethod
    def check_date_format(cls, v: Any) -> Any:
        if isinstance(v, str) and not DATE_PATTERN.match(v):
            raise ValueError(f'"{v}" is not a date in YYYY-MM-DD format')
        return v

    @model_validator(mode="after")
    def check_window(self) -> "OfferRow":
        if self.valid_to < self.valid_from:
            raise ValueError(f"valid_to {self.valid_to} is before valid_from {self.valid_from}")
        return self

    @property
    def offer_hash(self) -> str:
        """Deterministic identity used to de-duplicate re-imported offers."""
        parts = [
            self.region_id,
            self.chain_id,
            self.ingredient_id,
            f"{self.price_total:.2f}",
            f"{self.pack_size:.3f}",
            self.valid_from.isoformat(),
            self.valid_to.isoformat(),
            self.source_ref_id or "",
        ]
        return hashlib.sha256("|".join(parts).encode("utf-8")).hexdigest()
