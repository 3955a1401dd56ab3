"""Application service: Update Return Status use case.

Moves one request through the return transition table.  Rejecting a
request voids it, which frees the item to be returned again while it
is still inside the window; a refunded request is final.

Approval is announced to the customer once the new status is stored.
"""

from __future__ import annotations

import structlog

from storefront.application.ports import RETURN_APPROVED, Notifier
from storefront.application.return_notices import send_return_notice
from storefront.domain.exceptions import EntityNotFoundError, InvalidTransition
from storefront.domain.model.returns import ReturnRequest, ReturnStatus
from storefront.domain.repository.order_repository import OrderRepository
from storefront.domain.repository.return_repository import ReturnRepository

logger = structlog.get_logger(__name__)


class UpdateReturnStatusHandler:

    def __init__(
        self,
        return_repo: ReturnRepository,
        order_repo: OrderRepository,
        notifier: Notifier,
    ) -> None:
        self._return_repo = return_repo
        self._order_repo = order_repo
        self._notifier = notifier

    def handle(self, return_id: int, status: ReturnStatus) -> ReturnRequest:
        request = self._return_repo.get_by_id(return_id)
        if request is None:
            raise EntityNotFoundError(f"Return #{return_id} not found")

        previous = request.move_to(status)
        if not self._return_repo.save_status(request, expected_status=previous):
            raise InvalidTransition(f"Return #{return_id} was changed concurrently")
        logger.info(
            "Return status changed",
            return_id=return_id,
            from_status=previous.value,
            to_status=status.value,
        )

        if status == ReturnStatus.APPROVED:
            order = self._order_repo.get_by_id(request.order_id)
            if order is None:
                logger.warning("Approved return has no order", return_id=return_id)
            else:
                send_return_notice(self._notifier, RETURN_APPROVED, order, [request])
        return request
