"""SQL-backed org traceable-element index.

Reads OrgTraceableElement rows; used by the access resolver for documents
in linked mode.
"""

import logging
from typing import AbstractSet, Iterable

from sqlalchemy import select
from sqlalchemy.orm import Session

from domain.documents.models import TraceableCategory
from domain.documents.ports.traceable_element_index import TraceableElementIndexPort
from models.org_traceable_element import OrgTraceableElement

logger = logging.getLogger(__name__)


class SqlTraceableElementIndex(TraceableElementIndexPort):
    """Traceable-element index over the org_traceable_element table.

    Lookups are cached per instance; create one per request/session.
    """

    def __init__(self, session: Session):
        self.session = session
        self._cache: dict[tuple[str, TraceableCategory], frozenset[str]] = {}

    def elements_for(self, org_id: str, category: TraceableCategory) -> AbstractSet[str]:
        key = (org_id, category)
        if key not in self._cache:
            stmt = select(OrgTraceableElement.element_id).where(
                OrgTraceableElement.organization_id == org_id,
                OrgTraceableElement.category == category,
            )
            self._cache[key] = frozenset(self.session.execute(stmt).scalars().all())
            logger.debug(
                f"Loaded {len(self._cache[key])} {category.value} elements for org {org_id}"
            )
        return self._cache[key]

    def grant(self, org_id: str, category: TraceableCategory, element_ids: Iterable[str]) -> int:
        """Record access of an organization to elements (skips existing rows).

        Flushes but does not commit; returns the number of rows added.
        """
        existing = self.elements_for(org_id, category)
        added = 0
        for element_id in dict.fromkeys(element_ids):
            if element_id in existing:
                continue
            self.session.add(OrgTraceableElement(
                organization_id=org_id,
                category=category,
                element_id=element_id,
            ))
            added += 1
        self.session.flush()
        self._cache.pop((org_id, category), None)
        return added
