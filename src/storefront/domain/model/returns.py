"""ReturnRequest — a customer's request to send back a physical item."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from enum import Enum

from storefront.domain.exceptions import InvalidTransition


class ReturnReason(Enum):
    DOES_NOT_MEET_EXPECTATIONS = "DOES_NOT_MEET_EXPECTATIONS"
    DAMAGED_OR_DEFECTIVE = "DAMAGED_OR_DEFECTIVE"
    WRONG_ITEM_SHIPPED = "WRONG_ITEM_SHIPPED"
    CHANGED_MIND = "CHANGED_MIND"
    ORDERED_WRONG_PRODUCT = "ORDERED_WRONG_PRODUCT"
    OTHER = "OTHER"

    @property
    def label(self) -> str:
        return _REASON_LABELS[self]


_REASON_LABELS = {
    ReturnReason.DOES_NOT_MEET_EXPECTATIONS: "Does not meet expectations",
    ReturnReason.DAMAGED_OR_DEFECTIVE: "Damaged or defective",
    ReturnReason.WRONG_ITEM_SHIPPED: "Wrong item shipped",
    ReturnReason.CHANGED_MIND: "Changed my mind",
    ReturnReason.ORDERED_WRONG_PRODUCT: "Ordered wrong product",
    ReturnReason.OTHER: "Other reason",
}


class ReturnStatus(Enum):
    PENDING = "PENDING"
    APPROVED = "APPROVED"
    REJECTED = "REJECTED"
    RECEIVED = "RECEIVED"
    REFUNDED = "REFUNDED"


# Only a request that has not yet been received can still be rejected.
RETURN_TRANSITIONS: dict[ReturnStatus, frozenset[ReturnStatus]] = {
    ReturnStatus.PENDING: frozenset({ReturnStatus.APPROVED, ReturnStatus.REJECTED}),
    ReturnStatus.APPROVED: frozenset({ReturnStatus.RECEIVED, ReturnStatus.REJECTED}),
    ReturnStatus.RECEIVED: frozenset({ReturnStatus.REFUNDED}),
    ReturnStatus.REFUNDED: frozenset(),
    ReturnStatus.REJECTED: frozenset(),
}

# A rejected request no longer blocks the item from being returned.
VOIDED_STATUSES = frozenset({ReturnStatus.REJECTED})


@dataclass
class ReturnRequest:

    id: int | None
    order_id: int
    order_item_id: int
    reason: ReturnReason
    created_at: datetime
    details: str | None = None
    status: ReturnStatus = ReturnStatus.PENDING

    @property
    def is_voided(self) -> bool:
        return self.status in VOIDED_STATUSES

    def can_move_to(self, status: ReturnStatus) -> bool:
        return status in RETURN_TRANSITIONS[self.status]

    def move_to(self, status: ReturnStatus) -> ReturnStatus:
        """Change status through the transition table; return the previous one."""
        if not self.can_move_to(status):
            raise InvalidTransition(
                f"Cannot move return #{self.id} from {self.status.value} to {status.value}"
            )
        previous = self.status
        self.status = status
        return previous
