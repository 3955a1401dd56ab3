"""Domain service: Return Eligibility.

Pure functions over an order snapshot.  Used by the bulk return flow
to validate a request and by anything that needs to show the customer
which items can still be sent back.

"now" is always passed in; nothing here reads the system clock.
"""

from __future__ import annotations

import math
from datetime import datetime, timedelta
from enum import Enum

from storefront.domain.model.order import Order, OrderItem, OrderStatus

RETURN_WINDOW_DAYS = 14

_ONE_DAY = timedelta(days=1)


class IneligibilityReason(Enum):
    ALREADY_RETURNED = "already returned"
    NOT_RETURNABLE = "not returnable"
    ORDER_NOT_DELIVERED = "order not delivered"
    OUTSIDE_RETURN_WINDOW = "outside return window"


def return_reference_date(order: Order) -> datetime:
    """Delivery date, or the order date for orders that predate delivery tracking."""
    return order.delivered_at if order.delivered_at is not None else order.created_at


def elapsed_days(since: datetime, now: datetime) -> int:
    """Whole days since ``since``, rounding any partial day up."""
    return math.ceil((now - since) / _ONE_DAY)


def return_ineligibility(
    order: Order,
    item: OrderItem,
    now: datetime,
    has_open_return: bool,
) -> IneligibilityReason | None:
    """Return the first reason ``item`` cannot be returned, or None.

    Checks run in a fixed order so an item that was already returned is
    reported as such even once the window has also closed.
    """
    if has_open_return:
        return IneligibilityReason.ALREADY_RETURNED
    if item.is_digital:
        return IneligibilityReason.NOT_RETURNABLE
    if order.status != OrderStatus.DELIVERED:
        return IneligibilityReason.ORDER_NOT_DELIVERED
    if elapsed_days(return_reference_date(order), now) > RETURN_WINDOW_DAYS:
        return IneligibilityReason.OUTSIDE_RETURN_WINDOW
    return None


def is_returnable(
    order: Order,
    item: OrderItem,
    now: datetime,
    has_open_return: bool = False,
) -> bool:
    return return_ineligibility(order, item, now, has_open_return) is None
