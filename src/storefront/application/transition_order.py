"""Application service: Transition Order use case.

Validates the move against the Order aggregate's transition table,
writes it with a conditional update so concurrent actors serialize,
and only then tells the notifier.  A notifier failure is logged and
swallowed; the committed transition stands.
"""

from __future__ import annotations

import structlog

from storefront.application.clock import Clock, utc_now
from storefront.application.dto import OrderDTO, order_to_dto
from storefront.application.ports import ORDER_CANCELLED, ORDER_COMPLETED, Notifier
from storefront.domain.exceptions import EntityNotFoundError, InvalidTransition
from storefront.domain.model.order import Order, OrderStatus
from storefront.domain.repository.order_repository import OrderRepository

logger = structlog.get_logger(__name__)


class TransitionOrderHandler:

    def __init__(
        self,
        order_repo: OrderRepository,
        notifier: Notifier,
        clock: Clock = utc_now,
    ) -> None:
        self._order_repo = order_repo
        self._notifier = notifier
        self._clock = clock

    def handle(
        self,
        order_id: int,
        new_status: OrderStatus,
        actor: str,
        note: str | None = None,
    ) -> OrderDTO:
        order = self._load(order_id)
        previous = order.transition_to(new_status, actor, self._clock(), note)
        self._commit(order, previous)
        logger.info(
            "Order status changed",
            order_id=order.id,
            from_status=previous.value,
            to_status=new_status.value,
            actor=actor,
        )
        snapshot = order_to_dto(order)
        self._emit(order, snapshot, note)
        return snapshot

    def reopen(self, order_id: int, actor: str, note: str | None = None) -> OrderDTO:
        """Administrative reopen of a CANCELLED or COMPLETED order."""
        order = self._load(order_id)
        previous = order.reopen(actor, self._clock(), note)
        self._commit(order, previous)
        logger.info(
            "Order reopened",
            order_id=order.id,
            from_status=previous.value,
            to_status=order.status.value,
            actor=actor,
        )
        return order_to_dto(order)

    # --- Internal helpers -----------------------------------------------------

    def _load(self, order_id: int) -> Order:
        order = self._order_repo.get_by_id(order_id)
        if order is None:
            raise EntityNotFoundError(f"Order #{order_id} not found")
        return order

    def _commit(self, order: Order, previous: OrderStatus) -> None:
        saved = self._order_repo.save_transition(
            order, expected_status=previous, note=order.activity[-1]
        )
        if not saved:
            raise InvalidTransition(
                f"Order {order.order_number} changed concurrently; "
                f"it is no longer {previous.value}"
            )

    def _emit(self, order: Order, snapshot: OrderDTO, note: str | None) -> None:
        if order.status == OrderStatus.CANCELLED:
            event_type = ORDER_CANCELLED
            extra = {"cancellation_reason": note}
        elif order.status == OrderStatus.COMPLETED:
            event_type = ORDER_COMPLETED
            extra = None
        else:
            return

        try:
            self._notifier.notify(event_type, snapshot, extra)
        except Exception as exc:
            logger.error(
                "Notifier failed; order transition kept",
                order_id=order.id,
                event_type=event_type,
                error=str(exc),
            )
