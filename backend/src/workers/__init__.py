"""Background workers for asynchronous document processing.

Tasks receive the owning org_id explicitly and record their outcome on the
write's Transaction.
"""

from .base import validate_org_id, BaseTask
from .celery_app import celery_app

__all__ = [
    "validate_org_id",
    "BaseTask",
    "celery_app",
]
