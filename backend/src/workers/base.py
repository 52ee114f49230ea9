"""Base utilities for organization-scoped background tasks.

Every task that touches documents receives the owning org_id explicitly
from the API layer (taken from the bearer token, never from the request
body) and must check it against the rows it loads.

Task Signature Pattern:
======================

@celery_app.task(base=BaseTask, bind=True)
def my_task(self, document_id: str, org_id: str) -> Dict[str, Any]:
    org_id = validate_org_id(org_id)
    session = SessionLocal()
    try:
        document = session.query(Document).filter(
            Document.id == document_id,
            Document.organization_id == org_id,
        ).first()
        ...
        session.commit()
    finally:
        session.close()
"""

from celery import Task


def validate_org_id(org_id: str) -> str:
    """Validate an org_id task argument.

    Raises:
        ValueError: If org_id is missing or not a non-empty string
    """
    if not isinstance(org_id, str) or not org_id.strip():
        raise ValueError(f"Invalid org_id '{org_id}': expected a non-empty string")
    return org_id


class BaseTask(Task):
    """Base Celery task class requiring an org_id keyword argument."""

    def __call__(self, *args, **kwargs):
        """Validate org_id before running task.

        Raises:
            ValueError: If org_id parameter is missing or invalid
        """
        org_id = kwargs.get('org_id')

        if not org_id:
            raise ValueError(
                "org_id parameter is required for document tasks. "
                "Pass org_id=... as a keyword argument when enqueuing the task."
            )

        validate_org_id(org_id)
        return super().__call__(*args, **kwargs)
