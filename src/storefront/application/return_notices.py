"""Customer notices about return requests.

Every notice is sent after the requests it describes are stored.  A
failing notifier is logged and never undoes the stored change.
"""

from __future__ import annotations

from typing import Any

import structlog

from storefront.application.dto import order_to_dto
from storefront.application.ports import Notifier
from storefront.domain.model.order import Order
from storefront.domain.model.returns import ReturnRequest

logger = structlog.get_logger(__name__)


def return_notice_extra(order: Order, requests: list[ReturnRequest]) -> dict[str, Any]:
    """Notice payload.  The top-level reason is the first request's."""
    first = requests[0]
    items = []
    for request in requests:
        item = order.find_item(request.order_item_id)
        items.append(
            {
                "id": item.id,
                "name": item.name,
                "quantity": item.quantity,
                "reason": request.reason.value,
            }
        )
    return {
        "return_ids": [r.id for r in requests],
        "reason": first.reason.value,
        "reason_label": first.reason.label,
        "details": first.details,
        "items": items,
    }


def send_return_notice(
    notifier: Notifier,
    event_type: str,
    order: Order,
    requests: list[ReturnRequest],
) -> None:
    try:
        notifier.notify(event_type, order_to_dto(order), return_notice_extra(order, requests))
    except Exception as exc:
        logger.error(
            "Notifier failed; return requests kept",
            order_id=order.id,
            event_type=event_type,
            error=str(exc),
        )
