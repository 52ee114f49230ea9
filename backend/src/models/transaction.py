"""Transaction SQLAlchemy model

One row per write operation, keyed by its correlation ID, so clients can poll
the outcome of asynchronous writes.
"""

import enum
from typing import Optional

from sqlalchemy import Column, DateTime, Enum as SQLEnum, Index, String, Text

from domain.documents.transactions import TransactionStatus, can_transition
from .base import Base, utcnow


class InvalidTransactionTransition(ValueError):
    """Raised when a terminal transaction state would be overwritten."""
    pass


class Transaction(Base):
    """Outcome of one write operation."""
    __tablename__ = "document_transaction"
    __table_args__ = (
        Index("ix_document_transaction_organization_id", "organization_id"),
    )

    correlation_id = Column(String(255), primary_key=True)
    organization_id = Column(String(255), nullable=False)
    status = Column(
        SQLEnum(
            TransactionStatus,
            name="transactionstatus",
            values_callable=lambda statuses: [s.value for s in statuses],
        ),
        nullable=False,
        default=TransactionStatus.PENDING,
    )
    document_id = Column(String(36), nullable=True)
    error = Column(Text, nullable=True)
    created_at = Column(DateTime(timezone=True), nullable=False, default=utcnow)
    updated_at = Column(DateTime(timezone=True), nullable=False, default=utcnow, onupdate=utcnow)

    def transition_to(self, status: TransactionStatus, error: Optional[str] = None) -> None:
        """Move to a terminal state.

        Raises:
            InvalidTransactionTransition: If the transaction already finished
        """
        current = TransactionStatus(self.status) if self.status is not None else None
        if not can_transition(current, status):
            raise InvalidTransactionTransition(
                f"Transaction {self.correlation_id}: cannot go from "
                f"{current.value if current else None} to {status.value}"
            )
        self.status = status
        self.error = error
        self.updated_at = utcnow()

    def to_dict(self):
        data = {
            "correlationId": self.correlation_id,
            "status": self.status.value if isinstance(self.status, enum.Enum) else self.status,
        }
        if self.document_id:
            data["documentId"] = self.document_id
        if self.error:
            data["error"] = self.error
        return data
