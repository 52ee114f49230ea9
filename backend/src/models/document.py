"""Document and Attachment SQLAlchemy models

A Document is a catalogued supply-chain document owned by one organization.
Properties, associations and entitlement are stored as JSON; the domain
objects are rebuilt from them on access so the access resolver can work on
the ORM row directly.
"""

from sqlalchemy import Column, DateTime, ForeignKey, Index, Integer, String, Text
from sqlalchemy.orm import relationship

from domain.documents.models import DocumentAssociations, DocumentEntitlement
from .base import Base, PortableJSONB, new_id, utcnow


class Document(Base):
    """Document model.

    version starts at 1 and is incremented whenever content or entitlement
    change. content_file is empty while an asynchronous upload is pending.
    """
    __tablename__ = "document"
    __table_args__ = (
        Index("ix_document_organization_id", "organization_id"),
        Index("ix_document_type", "type"),
    )

    id = Column(String(36), primary_key=True, default=new_id)
    type = Column(String(255), nullable=False)
    properties_json = Column(PortableJSONB, nullable=False)
    content_file = Column(Text, nullable=False, default="")
    file_name = Column(Text, nullable=True)
    mime_type = Column(Text, nullable=True)
    associations_json = Column(PortableJSONB, nullable=False, default=dict)
    entitlement_json = Column(PortableJSONB, nullable=False, default=dict)
    version = Column(Integer, nullable=False, default=1)
    created_by = Column(String(255), nullable=False)
    organization_id = Column(String(255), nullable=False)
    created_at = Column(DateTime(timezone=True), nullable=False, default=utcnow)
    updated_at = Column(DateTime(timezone=True), nullable=False, default=utcnow, onupdate=utcnow)

    # Relationships
    attachments = relationship(
        "Attachment",
        back_populates="document",
        cascade="all, delete-orphan",
        order_by="Attachment.created_at",
    )

    @property
    def associations(self) -> DocumentAssociations:
        return DocumentAssociations.from_dict(self.associations_json)

    @property
    def entitlement(self) -> DocumentEntitlement:
        return DocumentEntitlement.from_dict(self.entitlement_json)

    def bump_version(self) -> None:
        """Record a content or metadata change"""
        self.version = (self.version or 1) + 1
        self.updated_at = utcnow()

    def to_dict(self):
        """Convert document to its wire representation"""
        return {
            "id": self.id,
            "type": self.type,
            "properties": self.properties_json,
            "contentFile": self.content_file or "",
            "mimeType": self.mime_type,
            "attachments": [attachment.id for attachment in self.attachments],
            "associations": self.associations_json,
            "entitlement": self.entitlement_json,
            "version": self.version,
            "createdAt": self.created_at.isoformat() if self.created_at else None,
            "updatedAt": self.updated_at.isoformat() if self.updated_at else None,
            "createdBy": self.created_by,
            "organizationId": self.organization_id,
        }

    def __repr__(self):
        return f"<Document(id={self.id}, type='{self.type}', org='{self.organization_id}', v{self.version})>"


class Attachment(Base):
    """File attached to a document; deleted together with its document."""
    __tablename__ = "attachment"
    __table_args__ = (
        Index("ix_attachment_document_id", "document_id"),
    )

    id = Column(String(36), primary_key=True, default=new_id)
    document_id = Column(String(36), ForeignKey("document.id", ondelete="CASCADE"), nullable=False)
    type = Column(String(255), nullable=False)
    content_file = Column(Text, nullable=False)
    file_name = Column(Text, nullable=True)
    mime_type = Column(Text, nullable=False)
    created_at = Column(DateTime(timezone=True), nullable=False, default=utcnow)
    updated_at = Column(DateTime(timezone=True), nullable=False, default=utcnow, onupdate=utcnow)

    # Relationships
    document = relationship("Document", back_populates="attachments")

    def to_dict(self):
        return {
            "id": self.id,
            "documentId": self.document_id,
            "type": self.type,
            "contentFile": self.content_file,
            "fileName": self.file_name,
            "mimeType": self.mime_type,
            "createdAt": self.created_at.isoformat() if self.created_at else None,
            "updatedAt": self.updated_at.isoformat() if self.updated_at else None,
        }
