"""TransactionStatus state machine for asynchronous write tracking

A transaction is created pending when a write starts and receives exactly
one terminal state when the write finishes.
"""

from enum import Enum
from typing import Optional, Dict, List


class TransactionStatus(str, Enum):
    """Transaction status enum

    State flow:
    PENDING → COMPLETED or FAILED (both terminal)
    """
    PENDING = "pending"      # Write accepted, outcome unknown
    COMPLETED = "completed"  # Write persisted (terminal success)
    FAILED = "failed"        # Write failed (terminal)


# State transition rules
ALLOWED_TRANSITIONS: Dict[Optional[TransactionStatus], List[TransactionStatus]] = {
    None: [TransactionStatus.PENDING],
    TransactionStatus.PENDING: [TransactionStatus.COMPLETED, TransactionStatus.FAILED],
    TransactionStatus.COMPLETED: [],
    TransactionStatus.FAILED: [],
}


def can_transition(from_status: Optional[TransactionStatus], to_status: TransactionStatus) -> bool:
    """Validate if status transition is allowed

    Args:
        from_status: Current status (None for new transactions)
        to_status: Target status

    Returns:
        True if transition is allowed, False otherwise

    Example:
        >>> can_transition(TransactionStatus.PENDING, TransactionStatus.COMPLETED)
        True
        >>> can_transition(TransactionStatus.FAILED, TransactionStatus.COMPLETED)
        False
    """
    allowed = ALLOWED_TRANSITIONS.get(from_status, [])
    return to_status in allowed


def is_terminal(status: TransactionStatus) -> bool:
    """True if no further transition is possible from this status"""
    return not ALLOWED_TRANSITIONS.get(status)
