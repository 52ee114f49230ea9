"""Documents API response schemas.

Field names follow the wire format (camelCase).
"""

from typing import List, Optional

from pydantic import BaseModel, Field


class CategoriesResponse(BaseModel):
    """Available document types"""
    categories: List[str]


class TemplateResponse(BaseModel):
    """Required properties and allowed content types of a document type"""
    type: str
    requiredProperties: List[str]
    allowedFileTypes: List[str]


class AcceptedResponse(BaseModel):
    """Returned with 202 when content is stored in the background"""
    correlationId: str = Field(..., description="Poll GET /transactions with this ID")
    documentId: str
    message: str


class TransactionResponse(BaseModel):
    correlationId: str
    status: str = Field(..., description="pending, completed or failed")
    documentId: Optional[str] = None
    error: Optional[str] = None


class TransactionListResponse(BaseModel):
    transactions: List[TransactionResponse]
