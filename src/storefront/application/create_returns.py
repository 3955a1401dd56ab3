"""Application service: Create Returns use case.

Takes a set of order items sharing one reason, checks every one of
them against the return rules, and creates one ReturnRequest per item.
It is all-or-nothing: a single ineligible item rejects the batch.

The customer gets exactly one confirmation covering every item in the
batch, sent after the requests are stored.
"""

from __future__ import annotations

import structlog

from storefront.application.clock import Clock, utc_now
from storefront.application.dto import ReturnBatchDTO
from storefront.application.ports import RETURN_CONFIRMED, Notifier
from storefront.application.return_notices import send_return_notice
from storefront.domain.exceptions import (
    EntityNotFoundError,
    NotReturnable,
    ValidationError,
)
from storefront.domain.model.order import Order
from storefront.domain.model.returns import ReturnReason, ReturnRequest
from storefront.domain.repository.order_repository import OrderRepository
from storefront.domain.repository.return_repository import ReturnRepository
from storefront.domain.service.return_eligibility import return_ineligibility

logger = structlog.get_logger(__name__)


class CreateReturnsHandler:

    def __init__(
        self,
        order_repo: OrderRepository,
        return_repo: ReturnRepository,
        notifier: Notifier,
        clock: Clock = utc_now,
    ) -> None:
        self._order_repo = order_repo
        self._return_repo = return_repo
        self._notifier = notifier
        self._clock = clock

    def handle(
        self,
        order_item_ids: list[int],
        reason: ReturnReason,
        details: str | None = None,
    ) -> ReturnBatchDTO:
        item_ids = list(dict.fromkeys(order_item_ids))
        if not item_ids:
            raise ValidationError("Select at least one item to return")

        order = self._resolve_single_order(item_ids)
        now = self._clock()

        open_item_ids = {
            r.order_item_id
            for r in self._return_repo.list_for_items(item_ids)
            if not r.is_voided
        }

        requests: list[ReturnRequest] = []
        for item_id in item_ids:
            item = order.find_item(item_id)
            problem = return_ineligibility(
                order, item, now, has_open_return=item_id in open_item_ids
            )
            if problem is not None:
                raise NotReturnable(item.name, problem.value)
            requests.append(
                ReturnRequest(
                    id=None,
                    order_id=order.id,  # type: ignore[arg-type]
                    order_item_id=item_id,
                    reason=reason,
                    details=details or None,
                    created_at=now,
                )
            )

        self._return_repo.add_all(requests)
        return_ids = [r.id for r in requests]
        logger.info(
            "Return requests created",
            order_id=order.id,
            return_ids=return_ids,
            reason=reason.value,
        )

        send_return_notice(self._notifier, RETURN_CONFIRMED, order, requests)
        return ReturnBatchDTO(
            order_number=order.order_number,
            return_ids=return_ids,  # type: ignore[arg-type]
            item_count=len(requests),
        )

    # --- Internal helpers -----------------------------------------------------

    def _resolve_single_order(self, item_ids: list[int]) -> Order:
        orders = self._order_repo.find_by_item_ids(item_ids)
        if not orders:
            raise EntityNotFoundError("No matching order items found")
        if len(orders) > 1:
            raise ValidationError("All items must belong to the same order")

        order = orders[0]
        known = {item.id for item in order.items}
        missing = [i for i in item_ids if i not in known]
        if missing:
            raise EntityNotFoundError(
                f"Order items not found: {', '.join(str(i) for i in missing)}"
            )
        return order
