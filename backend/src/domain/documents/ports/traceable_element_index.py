"""Traceable Element Index Port - which elements an organization has access to.

Backed by whatever store tracks facility, product, organization and EPC
relationships. The access resolver only reads from it.
"""

from abc import ABC, abstractmethod
from typing import AbstractSet

from ..models import TraceableCategory


class TraceableElementIndexPort(ABC):
    """Port interface for the org traceable-element index."""

    @abstractmethod
    def elements_for(self, org_id: str, category: TraceableCategory) -> AbstractSet[str]:
        """Return the element identifiers of a category the organization has access to.

        Args:
            org_id: Organization identifier
            category: Traceable-element category (location, product, organization, epc)

        Returns:
            Set of element identifiers (empty if none)
        """
        pass
