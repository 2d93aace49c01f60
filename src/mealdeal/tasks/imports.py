"""Celery tasks for CSV imports."""

from typing import Any

from mealdeal.celery_app import celery_app
from mealdeal.config import settings
from mealdeal.logging_config import LoggingContext, configure_logging, get_logger

# Configure logging for Celery workers
configure_logging(log_level=settings.log_level)
logger = get_logger(__name__)


@celery_app.task(
    bind=True,
    name="mealdeal.tasks.imports.import_csv_task",
    acks_late=True,
    reject_on_worker_lost=True,
)
def import_csv_task(self, table: str, content: str, dry_run: bool = False) -> dict[str, Any]:
    """
    Import a CSV file in the background.

    Validation problems are part of the returned result, not failures, so the
    task is not retried for them. Database errors propagate.

    Args:
        table: Target table name (see mealdeal.ingest.TABLES).
        content: Decoded CSV text.
        dry_run: Validate only.

    Returns:
        dict with valid_rows, errors and imported.
    """
    from mealdeal.ingest.csv_import import CSVImportError, import_csv

    task_id = self.request.id

    with LoggingContext(task_id=task_id):
        logger.info(f"Starting CSV import task {task_id} (table={table}, dry_run={dry_run})")

        try:
            result = import_csv(table, content, dry_run=dry_run).to_dict()
        except CSVImportError as e:
            logger.warning(f"CSV import task {task_id} rejected file: {e}")
            return {
                "table": table,
                "dry_run": dry_run,
                "valid_rows": 0,
                "imported": 0 if not dry_run else None,
                "errors": [str(e)],
            }
        except Exception as e:
            logger.exception(f"CSV import task {task_id} failed with error: {e}")
            raise

        logger.info(
            f"CSV import task {task_id} finished: {result['valid_rows']} valid, "
            f"{result['imported']} imported, {len(result['errors'])} errors"
        )
        return result
