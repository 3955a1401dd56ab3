"""Application service: Approve Returns use case.

Approves a batch of pending return requests at once.  IDs that do not
exist or are no longer PENDING are skipped.  Each affected order gets
exactly one approval notice covering all of its approved requests.
"""

from __future__ import annotations

from collections import defaultdict

import structlog

from storefront.application.dto import ApprovalSummaryDTO, ApprovedOrderDTO
from storefront.application.ports import RETURN_APPROVED, Notifier
from storefront.application.return_notices import send_return_notice
from storefront.domain.exceptions import EntityNotFoundError, ValidationError
from storefront.domain.model.returns import ReturnRequest, ReturnStatus
from storefront.domain.repository.order_repository import OrderRepository
from storefront.domain.repository.return_repository import ReturnRepository

logger = structlog.get_logger(__name__)


class ApproveReturnsHandler:

    def __init__(
        self,
        return_repo: ReturnRepository,
        order_repo: OrderRepository,
        notifier: Notifier,
    ) -> None:
        self._return_repo = return_repo
        self._order_repo = order_repo
        self._notifier = notifier

    def handle(self, return_ids: list[int]) -> ApprovalSummaryDTO:
        wanted = list(dict.fromkeys(return_ids))
        if not wanted:
            raise ValidationError("Provide at least one return ID to approve")

        pending = [
            r for r in self._return_repo.list_by_ids(wanted)
            if r.status == ReturnStatus.PENDING
        ]
        if not pending:
            raise EntityNotFoundError("No pending returns found with the provided IDs")

        by_order: dict[int, list[ReturnRequest]] = defaultdict(list)
        for request in pending:
            request.move_to(ReturnStatus.APPROVED)
            if self._return_repo.save_status(request, expected_status=ReturnStatus.PENDING):
                by_order[request.order_id].append(request)
            else:
                logger.info("Return changed concurrently; skipped", return_id=request.id)

        processed: list[ApprovedOrderDTO] = []
        for order_id, approved in by_order.items():
            order = self._order_repo.get_by_id(order_id)
            if order is None:
                logger.warning("Approved returns have no order", order_id=order_id)
                continue
            send_return_notice(self._notifier, RETURN_APPROVED, order, approved)
            processed.append(
                ApprovedOrderDTO(
                    order_id=order_id,
                    order_number=order.order_number,
                    return_ids=[r.id for r in approved],  # type: ignore[arg-type]
                    item_count=len(approved),
                )
            )

        total = sum(p.item_count for p in processed)
        logger.info("Returns approved", total_returns=total, total_orders=len(processed))
        return ApprovalSummaryDTO(
            processed_orders=processed,
            total_returns=total,
            total_orders=len(processed),
        )
