"""Transactions API endpoint.

Clients poll the outcome of writes by correlation ID.
"""

import logging
from typing import List, Optional

from fastapi import APIRouter, Depends, HTTPException, Query, status
from sqlalchemy.orm import Session

from auth.dependencies import CurrentAuth
from database import get_db
from domain.documents.transactions import TransactionStatus
from models import Transaction
from api.v1.documents.schemas import TransactionListResponse

logger = logging.getLogger(__name__)

router = APIRouter(tags=["transactions"])


@router.get("/transactions", response_model=TransactionListResponse, response_model_exclude_none=True)
def get_transactions(
    auth: CurrentAuth,
    correlation_ids: Optional[List[str]] = Query(None, alias="correlationIds"),
    correlation_ids_bracketed: Optional[List[str]] = Query(None, alias="correlationIds[]"),
    db: Session = Depends(get_db),
):
    """Get the status of transactions by correlation ID.

    Accepts both ?correlationIds=a&correlationIds=b and ?correlationIds[]=a.
    Only transactions of the caller's organization are visible; unknown IDs
    (including other organizations') report pending.
    """
    requested = list(dict.fromkeys((correlation_ids or []) + (correlation_ids_bracketed or [])))
    if not requested:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="correlationIds is required",
        )

    found = {
        transaction.correlation_id: transaction
        for transaction in db.query(Transaction).filter(
            Transaction.correlation_id.in_(requested),
            Transaction.organization_id == auth.org_id,
        )
    }

    transactions = [
        found[correlation_id].to_dict() if correlation_id in found
        else {"correlationId": correlation_id, "status": TransactionStatus.PENDING.value}
        for correlation_id in requested
    ]

    logger.info(f"Transactions polled: requested={len(requested)}, found={len(found)}")
    return {"transactions": transactions}
