"""Application service: Issue Download Tokens use case.

Creates one single-use link per digital item of a paid order.  Items
that already hold a live (unused, unexpired) token are skipped, so the
command can be re-run safely.
"""

from __future__ import annotations

from datetime import timedelta

import structlog

from storefront.application.clock import Clock, utc_now
from storefront.application.dto import IssuedTokenDTO
from storefront.domain.exceptions import EntityNotFoundError, ValidationError
from storefront.domain.model.digital import DigitalDownloadToken
from storefront.domain.model.order import OrderStatus
from storefront.domain.repository.download_repository import (
    DigitalFileRepository,
    DownloadTokenRepository,
)
from storefront.domain.repository.order_repository import OrderRepository

logger = structlog.get_logger(__name__)

DEFAULT_LINK_TTL_DAYS = 30

ISSUABLE_STATUSES = frozenset(
    {
        OrderStatus.PROCESSING,
        OrderStatus.SHIPPED,
        OrderStatus.DELIVERED,
        OrderStatus.COMPLETED,
    }
)


class IssueDownloadTokensHandler:

    def __init__(
        self,
        order_repo: OrderRepository,
        file_repo: DigitalFileRepository,
        token_repo: DownloadTokenRepository,
        clock: Clock = utc_now,
        ttl_days: int = DEFAULT_LINK_TTL_DAYS,
    ) -> None:
        self._order_repo = order_repo
        self._file_repo = file_repo
        self._token_repo = token_repo
        self._clock = clock
        self._ttl = timedelta(days=ttl_days)

    def handle(self, order_id: int) -> list[IssuedTokenDTO]:
        order = self._order_repo.get_by_id(order_id)
        if order is None:
            raise EntityNotFoundError(f"Order #{order_id} not found")
        if order.status not in ISSUABLE_STATUSES:
            raise ValidationError(
                f"Cannot issue downloads for order {order.order_number} "
                f"in {order.status.value} status"
            )

        now = self._clock()
        issued: list[IssuedTokenDTO] = []

        for item in order.digital_items:
            if item.digital_file_id is None:
                logger.warning("Digital item has no file attached", order_item_id=item.id)
                continue
            digital_file = self._file_repo.get_by_id(item.digital_file_id)
            if digital_file is None:
                raise EntityNotFoundError(
                    f"Digital file #{item.digital_file_id} not found for '{item.name}'"
                )

            existing = self._token_repo.list_for_item(item.id)  # type: ignore[arg-type]
            if any(t.is_live(now) for t in existing):
                continue

            token = DigitalDownloadToken.issue(
                order_item_id=item.id,  # type: ignore[arg-type]
                digital_file_id=digital_file.id,  # type: ignore[arg-type]
                now=now,
                ttl=self._ttl,
            )
            self._token_repo.add(token)
            issued.append(
                IssuedTokenDTO(
                    token=token.token,
                    order_item_id=token.order_item_id,
                    file_name=digital_file.file_name,
                    download_path=f"/download/{token.token}",
                    expires_at=token.expires_at.isoformat(),
                )
            )

        logger.info("Download tokens issued", order_id=order.id, count=len(issued))
        return issued
