"""OrgTraceableElement SQLAlchemy model

Records which facilities, products, organizations and EPCs an organization
has access to. Read by the access resolver for linked documents.
"""

from sqlalchemy import Column, Enum as SQLEnum, Integer, String, UniqueConstraint, Index

from domain.documents.models import TraceableCategory
from .base import Base


class OrgTraceableElement(Base):
    """One (organization, category, element) access relationship."""
    __tablename__ = "org_traceable_element"
    __table_args__ = (
        UniqueConstraint("organization_id", "category", "element_id", name="uq_org_traceable_element"),
        Index("ix_org_traceable_element_lookup", "organization_id", "category"),
    )

    id = Column(Integer, primary_key=True, autoincrement=True)
    organization_id = Column(String(255), nullable=False)
    category = Column(
        SQLEnum(
            TraceableCategory,
            name="traceablecategory",
            values_callable=lambda categories: [c.value for c in categories],
        ),
        nullable=False,
    )
    element_id = Column(String(255), nullable=False)

    def __repr__(self):
        return f"<OrgTraceableElement(org='{self.organization_id}', {self.category.value}='{self.element_id}')>"
