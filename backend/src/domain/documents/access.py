"""Access resolution for documents.

Decides whether a requesting organization may read a document, from the
document's owner, entitlement and traceable-element link. Pure: the
traceable-element index is only read.
"""

from typing import Any

from .errors import AccessDenied
from .models import EntitlementMode
from .ports.traceable_element_index import TraceableElementIndexPort


def is_owner(document: Any, requesting_org_id: str) -> bool:
    """True if the organization owns the document"""
    return requesting_org_id == document.organization_id


def can_access(
    document: Any,
    requesting_org_id: str,
    index: TraceableElementIndexPort,
) -> bool:
    """Decide whether an organization may read a document.

    Rules, first match wins:
    1. The owning organization always has access.
    2. Organizations listed in entitledOrgIds have access in any mode.
    3. In linked mode, an organization with access to at least one element
       of the document's traceable link has access. Event and transaction
       references never grant access.
    4. Everyone else is denied.

    Args:
        document: Anything exposing organization_id, entitlement
            (DocumentEntitlement) and associations (DocumentAssociations)
        requesting_org_id: Authenticated organization of the caller
        index: Org traceable-element index

    Returns:
        True if access is allowed
    """
    if is_owner(document, requesting_org_id):
        return True

    entitlement = document.entitlement
    if requesting_org_id in entitlement.entitled_org_ids:
        return True

    if entitlement.mode == EntitlementMode.LINKED:
        link = document.associations.traceable_link
        if link is not None and link.elements:
            accessible = index.elements_for(requesting_org_id, link.category)
            if not accessible.isdisjoint(link.elements):
                return True

    return False


def ensure_access(
    document: Any,
    requesting_org_id: str,
    index: TraceableElementIndexPort,
) -> None:
    """Like can_access, but raises AccessDenied instead of returning False"""
    if not can_access(document, requesting_org_id, index):
        raise AccessDenied(str(document.id), requesting_org_id)
