"""Celery tasks for background job processing."""

from mealdeal.tasks.imports import import_csv_task

__all__ = ["import_csv_task"]
