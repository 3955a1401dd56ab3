"""Data Transfer Objects — plain containers that cross layer boundaries.

DTOs carry data between the outer surfaces (CLI, HTTP, notifier) and
the application layer without exposing domain internals.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime

from storefront.domain.model.order import Order


@dataclass(frozen=True)
class OrderItemDTO:

    id: int
    product_id: str
    name: str
    quantity: int
    price: str  # formatted, e.g. "$15.00"
    line_total: str
    is_digital: bool
    download_count: int
    max_downloads: int
    downloads_remaining: int


@dataclass(frozen=True)
class ActivityNoteDTO:

    created_at: str
    actor: str
    message: str


@dataclass(frozen=True)
class OrderDTO:
    """A complete order snapshot as shown to users and sent to the notifier."""

    id: int
    order_number: str
    status: str
    items: list[OrderItemDTO]
    total: str
    created_at: str
    delivered_at: str | None = None
    closed_at: str | None = None
    reopened_at: str | None = None
    activity: list[ActivityNoteDTO] = field(default_factory=list)


@dataclass(frozen=True)
class SweepSummaryDTO:
    """Outcome of one auto-completion run."""

    updated_count: int
    order_ids: list[int]


@dataclass(frozen=True)
class ReturnBatchDTO:

    order_number: str
    return_ids: list[int]
    item_count: int


@dataclass(frozen=True)
class ApprovedOrderDTO:
    """The returns approved for a single order in one bulk approval."""

    order_id: int
    order_number: str
    return_ids: list[int]
    item_count: int


@dataclass(frozen=True)
class ApprovalSummaryDTO:

    processed_orders: list[ApprovedOrderDTO]
    total_returns: int
    total_orders: int


@dataclass(frozen=True)
class IssuedTokenDTO:

    token: str
    order_item_id: int
    file_name: str
    download_path: str
    expires_at: str


@dataclass(frozen=True)
class DownloadedFile:
    """File bytes plus the exact response headers to send with them."""

    content: bytes
    file_name: str
    headers: dict[str, str]


# --- Mapping ------------------------------------------------------------------


def _iso(value: datetime | None) -> str | None:
    return value.isoformat() if value is not None else None


def order_to_dto(order: Order) -> OrderDTO:
    return OrderDTO(
        id=order.id,  # type: ignore[arg-type]
        order_number=order.order_number,
        status=order.status.value,
        items=[
            OrderItemDTO(
                id=item.id,  # type: ignore[arg-type]
                product_id=item.product_id,
                name=item.name,
                quantity=item.quantity,
                price=str(item.price),
                line_total=str(item.line_total),
                is_digital=item.is_digital,
                download_count=item.download_count,
                max_downloads=item.max_downloads,
                downloads_remaining=item.downloads_remaining,
            )
            for item in order.items
        ],
        total=str(order.total),
        created_at=order.created_at.isoformat(),
        delivered_at=_iso(order.delivered_at),
        closed_at=_iso(order.closed_at),
        reopened_at=_iso(order.reopened_at),
        activity=[
            ActivityNoteDTO(
                created_at=note.created_at.isoformat(),
                actor=note.actor,
                message=note.message,
            )
            for note in order.activity
        ],
    )
