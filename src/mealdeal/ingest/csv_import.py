"""CSV import and export of the reference and offer tables."""

import csv
import io
from dataclasses import dataclass
from datetime import date
from decimal import Decimal
from typing import Any

from pydantic import BaseModel, ValidationError
from sqlalchemy import Engine, select
from sqlalchemy.dialects.postgresql import insert
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from mealdeal.config import settings
from mealdeal.database import Base, sync_engine
from mealdeal.ingest.schemas import (
    AdRegionRow,
    ChainRow,
    DishIngredientRow,
    DishRow,
    IngredientRow,
    LookupCategoryRow,
    LookupUnitRow,
    OfferRow,
    PostalCodeRow,
)
from mealdeal.logging_config import get_logger
from mealdeal.models import (
    AdRegion,
    Chain,
    Dish,
    DishIngredient,
    Ingredient,
    LookupCategory,
    LookupUnit,
    Offer,
    PostalCode,
)

logger = get_logger(__name__)


class CSVImportError(Exception):
    """The CSV file as a whole cannot be imported."""


@dataclass(frozen=True)
class TableLayout:
    """How one table is read from and written to CSV."""

    name: str
    row_model: type[BaseModel]
    orm_model: type[Base]
    columns: tuple[str, ...]
    conflict_keys: tuple[str, ...]

    @property
    def required_columns(self) -> list[str]:
        return [
            name
            for name, field in self.row_model.model_fields.items()
            if field.is_required()
        ]


# Listed in dependency order: referenced tables come first.
TABLES: dict[str, TableLayout] = {
    layout.name: layout
    for layout in (
        TableLayout(
            "lookups_categories", LookupCategoryRow, LookupCategory, ("category",), ("category",)
        ),
        TableLayout("lookups_units", LookupUnitRow, LookupUnit, ("unit", "description"), ("unit",)),
        TableLayout("chains", ChainRow, Chain, ("chain_id", "chain_name"), ("chain_id",)),
        TableLayout(
            "ad_regions",
            AdRegionRow,
            AdRegion,
            ("region_id", "chain_id", "label"),
            ("region_id", "chain_id"),
        ),
        TableLayout(
            "postal_codes",
            PostalCodeRow,
            PostalCode,
            ("plz", "region_id", "city"),
            ("plz", "region_id"),
        ),
        TableLayout(
            "ingredients",
            IngredientRow,
            Ingredient,
            (
                "ingredient_id",
                "name_canonical",
                "unit_default",
                "price_baseline_per_unit",
                "allergen_tags",
                "notes",
            ),
            ("ingredient_id",),
        ),
        TableLayout(
            "dishes",
            DishRow,
            Dish,
            (
                "dish_id",
                "name",
                "category",
                "is_quick",
                "is_meal_prep",
                "season",
                "cuisine",
                "notes",
            ),
            ("dish_id",),
        ),
        TableLayout(
            "dish_ingredients",
            DishIngredientRow,
            DishIngredient,
            ("dish_id", "ingredient_id", "qty", "unit", "optional", "role"),
            ("dish_id", "ingredient_id"),
        ),
        TableLayout(
            "offers",
            OfferRow,
            Offer,
            (
                "region_id",
                "ingredient_id",
                "price_total",
                "pack_size",
                "unit_base",
                "valid_from",
                "valid_to",
                "source",
                "source_ref_id",
                "chain_id",
            ),
            ("offer_hash",),
        ),
    )
}


def get_table_layout(table: str) -> TableLayout:
    try:
        return TABLES[table]
    except KeyError:
        raise CSVImportError(
            f"Unknown table '{table}'. Supported tables: {', '.join(TABLES)}"
        ) from None


class ImportResult:
    """Result of a CSV import or dry run."""

    def __init__(self, table: str, dry_run: bool) -> None:
        self.table = table
        self.dry_run = dry_run
        self.valid_rows: int = 0
        self.imported: int | None = None if dry_run else 0
        self.errors: list[str] = []
        self.rows: list[BaseModel] = []

    def add_error(self, message: str, max_errors: int) -> None:
        if len(self.errors) < max_errors:
            self.errors.append(message)
        elif len(self.errors) == max_errors:
            self.errors.append("Too many errors, further errors are not reported.")

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for serialization."""
        return {
            "table": self.table,
            "dry_run": self.dry_run,
            "valid_rows": self.valid_rows,
            "imported": self.imported,
            "errors": self.errors,
        }


# =============================================================================
# Parsing and validation
# =============================================================================


def parse_csv(content: str) -> tuple[list[str], list[list[str]]]:
    """Split CSV text into trimmed headers and data rows, skipping blank lines."""
    content = content.lstrip("\ufeff")
    reader = csv.reader(io.StringIO(content))
    rows = [row for row in reader if any(cell.strip() for cell in row)]
    if not rows:
        raise CSVImportError("CSV file is empty")

    headers = [h.strip() for h in rows[0]]
    return headers, rows[1:]


def _format_validation_error(error: ValidationError) -> str:
    messages = []
    for detail in error.errors():
        field = ".".join(str(p) for p in detail["loc"]) or "row"
        messages.append(f"{field}: {detail['msg']}")
    return "; ".join(messages)


def validate_csv(table: str, content: str, max_errors: int | None = None) -> ImportResult:
    """Validate every row of a CSV file without writing anything."""
    layout = get_table_layout(table)
    max_errors = max_errors if max_errors is not None else settings.import_max_errors
    headers, rows = parse_csv(content)

    missing = [col for col in layout.required_columns if col not in headers]
    if missing:
        raise CSVImportError(
            f"Missing required columns for {table}: {', '.join(missing)}. "
            f"Expected columns: {', '.join(layout.columns)}"
        )

    result = ImportResult(table, dry_run=True)
    for index, row in enumerate(rows, start=2):  # header is line 1
        if len(row) > len(headers):
            result.add_error(
                f"Row {index}: wrong number of columns: found {len(row)}, "
                f"expected {len(headers)}. Check for extra commas.",
                max_errors,
            )
            continue

        data = dict(zip(headers, row))
        try:
            parsed = layout.row_model.model_validate(data)
        except ValidationError as e:
            result.add_error(f"Row {index}: {_format_validation_error(e)}", max_errors)
            continue

        result.rows.append(parsed)

    result.valid_rows = len(result.rows)
    logger.info(
        f"Validated {table} CSV: {result.valid_rows} valid rows, "
        f"{len(rows) - result.valid_rows} invalid"
    )
    return result


# =============================================================================
# Import
# =============================================================================


def _row_values(layout: TableLayout, row: BaseModel) -> dict[str, Any]:
    values = row.model_dump(include=set(layout.columns))
    if isinstance(row, OfferRow):
        values["offer_hash"] = row.offer_hash
    return values


def _dedupe(layout: TableLayout, values: list[dict[str, Any]]) -> list[dict[str, Any]]:
    """Keep the last row per conflict key; an upsert cannot touch a row twice."""
    by_key: dict[tuple, dict[str, Any]] = {}
    for item in values:
        by_key[tuple(item[k] for k in layout.conflict_keys)] = item
    return list(by_key.values())


def _upsert(session: Session, layout: TableLayout, values: list[dict[str, Any]]) -> int:
    stmt = insert(layout.orm_model).values(values)
    update_columns = {
        col: stmt.excluded[col] for col in values[0] if col not in layout.conflict_keys
    }
    if update_columns:
        stmt = stmt.on_conflict_do_update(
            index_elements=list(layout.conflict_keys), set_=update_columns
        )
    else:
        stmt = stmt.on_conflict_do_nothing(index_elements=list(layout.conflict_keys))
    session.execute(stmt)
    return len(values)


def import_csv(
    table: str,
    content: str,
    dry_run: bool = True,
    engine: Engine | None = None,
    max_errors: int | None = None,
) -> ImportResult:
    """
    Validate a CSV file and, unless dry_run, upsert its valid rows in one transaction.

    Invalid rows are reported and skipped. A referential failure (e.g. offers
    for an unknown region) rolls back the whole batch and is reported as an error.
    """
    result = validate_csv(table, content, max_errors=max_errors)
    result.dry_run = dry_run
    if dry_run:
        return result

    result.imported = 0
    if not result.rows:
        result.errors.append("No valid rows to import.")
        return result

    layout = get_table_layout(table)
    values = _dedupe(layout, [_row_values(layout, row) for row in result.rows])

    with Session(engine or sync_engine) as session:
        try:
            result.imported = _upsert(session, layout, values)
            session.commit()
        except IntegrityError as e:
            session.rollback()
            logger.warning(f"Import of {table} rejected by the database: {e.orig}")
            result.imported = 0
            result.errors.append(
                f"Import rejected: referenced data is missing ({e.orig}). "
                "Import referenced tables first."
            )
            return result

    logger.info(f"Imported {result.imported} rows into {table}")
    return result


# =============================================================================
# Export
# =============================================================================


def _format_cell(value: Any) -> str:
    if value is None:
        return ""
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, date):
        return value.isoformat()
    if isinstance(value, Decimal):
        return format(value.normalize(), "f")
    return str(value)


def export_table(table: str, engine: Engine | None = None) -> str:
    """Dump a table as CSV using the import column layout."""
    layout = get_table_layout(table)
    order_by = [
        getattr(layout.orm_model, key)
        for key in (layout.conflict_keys if table != "offers" else ("offer_id",))
    ]

    buffer = io.StringIO()
    writer = csv.writer(buffer)
    writer.writerow(layout.columns)

    with Session(engine or sync_engine) as session:
        rows = session.execute(select(layout.orm_model).order_by(*order_by)).scalars().all()
        for row in rows:
            writer.writerow([_format_cell(getattr(row, col)) for col in layout.columns])

    logger.info(f"Exported {len(rows)} rows from {table}")
    return buffer.getvalue()
