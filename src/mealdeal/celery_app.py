"""Celery application configuration for background task processing."""

import os

from celery import Celery

from mealdeal.config import settings

# Database URL for result backend (use sync driver)
RESULT_BACKEND_URL = f"db+{settings.sync_database_url}"

celery_app = Celery(
    "mealdeal",
    broker=settings.redis_url,
    backend=RESULT_BACKEND_URL,
    include=["mealdeal.tasks.imports"],
)

celery_app.conf.update(
    # Task settings
    task_serializer="json",
    accept_content=["json"],
    result_serializer="json",
    timezone=settings.pricing_timezone,
    enable_utc=True,
    # Task execution settings
    task_acks_late=True,
    task_reject_on_worker_lost=True,
    worker_prefetch_multiplier=1,
    # Result settings
    result_expires=86400 * 7,  # 7 days
    # Queue routing
    task_routes={
        "mealdeal.tasks.imports.*": {"queue": "imports"},
    },
    worker_hijack_root_logger=False,
)

if os.name == "nt":
    celery_app.conf.update(worker_pool="solo")
