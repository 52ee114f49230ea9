"""SQLAlchemy Models for the documents API"""

from .base import Base
from .document import Document, Attachment
from .transaction import Transaction, InvalidTransactionTransition
from .org_traceable_element import OrgTraceableElement

__all__ = [
    "Base",
    "Document",
    "Attachment",
    "Transaction",
    "InvalidTransactionTransition",
    "OrgTraceableElement",
]
