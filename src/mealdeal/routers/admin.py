"""Admin API routes for CSV import and export."""

import secrets
from typing import Annotated, Any

from fastapi import APIRouter, Depends, File, Header, HTTPException, Query, UploadFile, status
from fastapi.responses import Response
from pydantic import BaseModel
from sqlalchemy.exc import SQLAlchemyError

from mealdeal.config import Settings, get_settings
from mealdeal.ingest import TABLES, CSVImportError, export_table, import_csv
from mealdeal.logging_config import get_logger

logger = get_logger(__name__)

router = APIRouter(prefix="/api/v1/admin", tags=["admin"])


class ImportResponse(BaseModel):
    """Result of a synchronous CSV import or dry run."""

    table: str
    dry_run: bool
    valid_rows: int
    imported: int | None = None
    errors: list[str]


class ImportQueuedResponse(BaseModel):
    """Response when the import was queued as a background task."""

    task_id: str
    status: str
    message: str


def require_admin(
    x_admin_token: Annotated[str | None, Header()] = None,
    settings: Settings = Depends(get_settings),
) -> None:
    """Check the X-Admin-Token header. An unset admin token disables the admin API."""
    if not settings.admin_api_token:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Admin API is disabled (ADMIN_API_TOKEN not set)",
        )
    if not x_admin_token or not secrets.compare_digest(x_admin_token, settings.admin_api_token):
        logger.warning("Rejected admin request with missing or invalid token")
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid admin token",
        )


def _check_table(table: str) -> None:
    if table not in TABLES:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=f"Unknown table '{table}'. Supported tables: {', '.join(TABLES)}",
        )


def _decode(raw: bytes) -> str:
    try:
        return raw.decode("utf-8-sig")
    except UnicodeDecodeError:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="CSV file must be UTF-8 encoded",
        ) from None


# Sync handlers: the import runs on the sync engine in FastAPI's threadpool.
@router.post(
    "/import/{table}",
    response_model=ImportResponse | ImportQueuedResponse,
    dependencies=[Depends(require_admin)],
)
def import_table(
    table: str,
    file: UploadFile = File(...),
    dry_run: bool = Query(default=True, description="Validate only"),
    background: bool = Query(default=False, description="Queue as a Celery task"),
) -> Any:
    """
    Import a CSV file into a table.

    Defaults to a dry run that only validates. With background=true the import
    is queued and the task id is returned.
    """
    _check_table(table)
    content = _decode(file.file.read())
    logger.info(
        f"CSV import request: table={table}, file={file.filename}, "
        f"dry_run={dry_run}, background={background}"
    )

    if background:
        from mealdeal.tasks.imports import import_csv_task

        try:
            task = import_csv_task.delay(table, content, dry_run=dry_run)
        except Exception as e:
            logger.error(f"Failed to queue CSV import task: {e}")
            raise HTTPException(
                status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
                detail=f"Failed to queue import task: {e}",
            )
        return ImportQueuedResponse(
            task_id=task.id,
            status="queued",
            message=f"Import of {table} queued.",
        )

    try:
        result = import_csv(table, content, dry_run=dry_run)
    except CSVImportError as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))
    except SQLAlchemyError as e:
        logger.error(f"CSV import into {table} failed: {e}")
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail="Database unavailable",
        )

    return ImportResponse(**result.to_dict())


@router.get("/export/{table}", dependencies=[Depends(require_admin)])
def export(table: str) -> Response:
    """Download a table as CSV in the import column layout."""
    _check_table(table)
    try:
        content = export_table(table)
    except SQLAlchemyError as e:
        logger.error(f"CSV export of {table} failed: {e}")
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail="Database unavailable",
        )
    return Response(
        content=content,
        media_type="text/csv",
        headers={"Content-Disposition": f'attachment; filename="{table}.csv"'},
    )
