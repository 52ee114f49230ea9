"""Celery application for background document processing.

Broker and result backend come from settings. With CELERY_TASK_ALWAYS_EAGER
tasks run inline in the calling process (tests, local development).
"""

from celery import Celery

from config import get_settings

settings = get_settings()

celery_app = Celery(
    "kmf_documents",
    broker=settings.CELERY_BROKER_URL,
    backend=settings.CELERY_RESULT_BACKEND,
    include=["workers.document_worker"],
)

celery_app.conf.update(
    task_serializer="json",
    accept_content=["json"],
    result_serializer="json",
    timezone="UTC",
    enable_utc=True,
    task_always_eager=settings.CELERY_TASK_ALWAYS_EAGER,
    task_eager_propagates=False,
    task_acks_late=True,
    worker_prefetch_multiplier=1,
)
