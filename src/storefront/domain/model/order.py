"""Order aggregate — the core of the domain.

The Order is an aggregate root that owns its line items and its
activity log.  Status changes go through ``transition_to`` which
consults an explicit transition table, so an illegal move is rejected
structurally instead of by scattered status comparisons.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from decimal import Decimal
from enum import Enum

from storefront.domain.exceptions import (
    EntityNotFoundError,
    InvalidTransition,
    ValidationError,
)
from storefront.domain.model.value_objects import Money


class OrderStatus(Enum):
    PENDING = "PENDING"
    PROCESSING = "PROCESSING"
    SHIPPED = "SHIPPED"
    DELIVERED = "DELIVERED"
    COMPLETED = "COMPLETED"
    CANCELLED = "CANCELLED"


# ---------------------------------------------------------------------------
# Transition table
# ---------------------------------------------------------------------------
ALLOWED_TRANSITIONS: dict[OrderStatus, frozenset[OrderStatus]] = {
    OrderStatus.PENDING: frozenset({OrderStatus.PROCESSING, OrderStatus.CANCELLED}),
    OrderStatus.PROCESSING: frozenset({OrderStatus.SHIPPED, OrderStatus.CANCELLED}),
    OrderStatus.SHIPPED: frozenset({OrderStatus.DELIVERED, OrderStatus.CANCELLED}),
    OrderStatus.DELIVERED: frozenset({OrderStatus.COMPLETED, OrderStatus.CANCELLED}),
    OrderStatus.COMPLETED: frozenset(),
    OrderStatus.CANCELLED: frozenset(),
}

# Statuses that mean "administratively closed": closed_at is set.
CLOSED_STATUSES = frozenset({OrderStatus.COMPLETED, OrderStatus.CANCELLED})

# Where an administrative reopen puts a closed order.
REOPEN_TARGETS: dict[OrderStatus, OrderStatus] = {
    OrderStatus.CANCELLED: OrderStatus.PROCESSING,
    OrderStatus.COMPLETED: OrderStatus.DELIVERED,
}


@dataclass(frozen=True)
class ActivityNote:
    """One immutable entry in an order's activity log."""

    created_at: datetime
    actor: str
    message: str


@dataclass
class OrderItem:
    """A purchased line.

    ``download_count`` is only ever advanced by the download token
    repository's atomic redeem path; nothing in the domain mutates it.
    """

    id: int | None
    product_id: str
    name: str
    quantity: int
    price: Money
    is_digital: bool = False
    download_count: int = 0
    max_downloads: int = 0
    digital_file_id: int | None = None

    @property
    def line_total(self) -> Money:
        return self.price * self.quantity

    @property
    def downloads_remaining(self) -> int:
        return max(self.max_downloads - self.download_count, 0)


@dataclass
class Order:
    """Aggregate root for customer orders.

    Use the ``Order.create()`` factory for new orders — it enforces the
    creation rules.  The ``__init__`` stays simple so the repository can
    reconstitute persisted orders without re-validating.
    """

    id: int | None
    order_number: str
    items: list[OrderItem]
    created_at: datetime
    status: OrderStatus = OrderStatus.PENDING
    delivered_at: datetime | None = None
    closed_at: datetime | None = None
    reopened_at: datetime | None = None
    activity: list[ActivityNote] = field(default_factory=list)

    @staticmethod
    def create(order_number: str, items: list[OrderItem], now: datetime) -> Order:
        """Create a new order, enforcing all invariants."""
        if not order_number or not order_number.strip():
            raise ValidationError("Order number is required")
        if not items:
            raise ValidationError("Order must contain at least one item")
        for item in items:
            if item.quantity <= 0:
                raise ValidationError(f"Quantity for '{item.name}' must be positive")
            if item.max_downloads < 0:
                raise ValidationError(
                    f"Download ceiling for '{item.name}' cannot be negative"
                )
        return Order(
            id=None,
            order_number=order_number.strip(),
            items=list(items),
            created_at=now,
        )

    # --- State transitions ----------------------------------------------------

    def can_transition_to(self, new_status: OrderStatus) -> bool:
        return new_status in ALLOWED_TRANSITIONS[self.status]

    def transition_to(
        self,
        new_status: OrderStatus,
        actor: str,
        now: datetime,
        note: str | None = None,
    ) -> OrderStatus:
        """Move the order to ``new_status`` and return the previous status.

        Entering DELIVERED stamps ``delivered_at`` the first time.
        """
        if not self.can_transition_to(new_status):
            raise InvalidTransition(
                f"Cannot move order {self.order_number} from "
                f"{self.status.value} to {new_status.value}"
            )
        previous = self._apply_status(new_status, actor, now, note)
        if new_status == OrderStatus.DELIVERED and self.delivered_at is None:
            self.delivered_at = now
        return previous

    def reopen(self, actor: str, now: datetime, note: str | None = None) -> OrderStatus:
        """Administratively reopen a closed order.

        Never used by automatic processes.  ``reopened_at`` restarts the
        auto-complete delay for an order put back into DELIVERED.
        """
        target = REOPEN_TARGETS.get(self.status)
        if target is None:
            raise InvalidTransition(
                f"Order {self.order_number} is {self.status.value} and cannot be reopened"
            )
        previous = self._apply_status(target, actor, now, note)
        self.reopened_at = now
        return previous

    @property
    def settled_at(self) -> datetime | None:
        """When the order last entered DELIVERED, by delivery or by reopen."""
        stamps = [t for t in (self.delivered_at, self.reopened_at) if t is not None]
        return max(stamps) if stamps else None

    # --- Computed properties --------------------------------------------------

    @property
    def total(self) -> Money:
        result = Money(Decimal("0.00"))
        for item in self.items:
            result = result + item.line_total
        return result

    @property
    def digital_items(self) -> list[OrderItem]:
        return [item for item in self.items if item.is_digital]

    def find_item(self, item_id: int) -> OrderItem:
        for item in self.items:
            if item.id == item_id:
                return item
        raise EntityNotFoundError(
            f"Item #{item_id} not found in order {self.order_number}"
        )

    # --- Internal helpers -----------------------------------------------------

    def _apply_status(
        self,
        new_status: OrderStatus,
        actor: str,
        now: datetime,
        note: str | None,
    ) -> OrderStatus:
        previous = self.status
        self.status = new_status

        if new_status in CLOSED_STATUSES:
            self.closed_at = now
        elif previous in CLOSED_STATUSES:
            self.closed_at = None

        message = f"Status changed from {previous.value} to {new_status.value}"
        if note:
            message = f"{message}: {note}"
        self.activity.append(ActivityNote(created_at=now, actor=actor, message=message))
        return previous
