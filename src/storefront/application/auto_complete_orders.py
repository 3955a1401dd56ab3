"""Application service: Auto-Complete Orders sweep.

Promotes DELIVERED orders older than the completion window to
COMPLETED.  Stateless and idempotent: the status filter alone keeps a
second run from touching what the first one finished, and an order
that a concurrent sweep completes first is simply skipped.

The window runs from ``Order.settled_at``, so an order reopened back
into DELIVERED waits a full window again from the reopen.
"""

from __future__ import annotations

from datetime import timedelta

import structlog

from storefront.application.clock import Clock, utc_now
from storefront.application.dto import SweepSummaryDTO
from storefront.application.ports import Notifier
from storefront.application.transition_order import TransitionOrderHandler
from storefront.domain.exceptions import InvalidTransition
from storefront.domain.model.order import OrderStatus
from storefront.domain.repository.order_repository import OrderRepository

logger = structlog.get_logger(__name__)

AUTO_COMPLETE_AFTER_DAYS = 30
SWEEP_ACTOR = "system:auto-complete"


class AutoCompleteOrdersHandler:

    def __init__(
        self,
        order_repo: OrderRepository,
        notifier: Notifier,
        clock: Clock = utc_now,
    ) -> None:
        self._order_repo = order_repo
        self._clock = clock
        self._transition = TransitionOrderHandler(order_repo, notifier, clock)

    def handle(self) -> SweepSummaryDTO:
        cutoff = self._clock() - timedelta(days=AUTO_COMPLETE_AFTER_DAYS)
        candidates = self._order_repo.list_delivered_before(cutoff)

        completed: list[int] = []
        for order in candidates:
            try:
                self._transition.handle(
                    order.id,  # type: ignore[arg-type]
                    OrderStatus.COMPLETED,
                    actor=SWEEP_ACTOR,
                    note=f"No activity for {AUTO_COMPLETE_AFTER_DAYS} days after delivery",
                )
            except InvalidTransition:
                # Someone else moved it since we selected it.
                logger.info("Skipping order changed during sweep", order_id=order.id)
                continue
            completed.append(order.id)  # type: ignore[arg-type]

        logger.info(
            "Auto-complete sweep finished",
            candidates=len(candidates),
            updated=len(completed),
        )
        return SweepSummaryDTO(updated_count=len(completed), order_ids=completed)
