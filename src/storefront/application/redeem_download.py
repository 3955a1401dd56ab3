"""Application service: Redeem Download use case.

Exchanges a single-use token for the file it protects.

The checks before the write are read-only and only exist to give a
precise error cheaply.  The repository's ``redeem`` repeats them inside
its transaction, so two concurrent requests for the same token can
never both get through.

Redemption is "pay once": the token is consumed and the item's
download counted *before* the file is fetched from origin.  If that
fetch fails the caller gets UpstreamUnavailable and the token stays
used; retrying with the same token is not possible.
"""

from __future__ import annotations

from urllib.parse import quote

import structlog

from storefront.application.clock import Clock, utc_now
from storefront.application.dto import DownloadedFile
from storefront.application.ports import FileOrigin
from storefront.domain.exceptions import (
    DownloadLimitExceeded,
    TokenAlreadyConsumed,
    TokenExpired,
    TokenNotFound,
)
from storefront.domain.model.digital import DigitalFile
from storefront.domain.model.value_objects import RequestContext
from storefront.domain.repository.download_repository import (
    DigitalFileRepository,
    DownloadTokenRepository,
)
from storefront.domain.repository.order_repository import OrderRepository

logger = structlog.get_logger(__name__)

NO_CACHE_HEADERS = {
    "Cache-Control": "no-store, no-cache, must-revalidate, private",
    "Pragma": "no-cache",
    "Expires": "0",
    "X-Robots-Tag": "noindex, nofollow",
    "X-Content-Type-Options": "nosniff",
}


class RedeemDownloadHandler:

    def __init__(
        self,
        order_repo: OrderRepository,
        file_repo: DigitalFileRepository,
        token_repo: DownloadTokenRepository,
        origin: FileOrigin,
        clock: Clock = utc_now,
    ) -> None:
        self._order_repo = order_repo
        self._file_repo = file_repo
        self._token_repo = token_repo
        self._origin = origin
        self._clock = clock

    def handle(self, token: str, context: RequestContext) -> DownloadedFile:
        now = self._clock()

        record = self._token_repo.get(token)
        if record is None:
            raise TokenNotFound("Unknown download token")
        if record.is_expired(now):
            raise TokenExpired(f"Token for item #{record.order_item_id} expired")
        if record.is_consumed:
            raise TokenAlreadyConsumed(
                f"Token for item #{record.order_item_id} already used"
            )

        item = self._order_repo.get_item(record.order_item_id)
        digital_file = self._file_repo.get_by_id(record.digital_file_id)
        if item is None or digital_file is None:
            raise TokenNotFound("Download token references a missing item or file")
        if item.download_count >= item.max_downloads:
            raise DownloadLimitExceeded(
                f"Item #{item.id} used {item.download_count} of {item.max_downloads} downloads"
            )

        self._token_repo.redeem(token, now, context)
        logger.info(
            "Download token redeemed",
            order_item_id=record.order_item_id,
            file_name=digital_file.file_name,
            ip_address=context.ip_address,
        )

        content = self._origin.fetch(digital_file.file_url)
        return DownloadedFile(
            content=content,
            file_name=digital_file.file_name,
            headers=self._headers(digital_file, content),
        )

    @staticmethod
    def _headers(digital_file: DigitalFile, content: bytes) -> dict[str, str]:
        headers = {
            "Content-Type": digital_file.content_type,
            "Content-Disposition": content_disposition(digital_file.file_name),
            "Content-Length": str(len(content)),
        }
        headers.update(NO_CACHE_HEADERS)
        return headers


def _safe_in_header(ch: str) -> bool:
    return ch not in '"\\' and ord(ch) >= 32 and ch != "\x7f"


def content_disposition(file_name: str) -> str:
    """Attachment header that survives quotes, control characters and non-ASCII names."""
    cleaned = "".join(ch for ch in file_name if _safe_in_header(ch))
    fallback = cleaned.encode("ascii", "replace").decode("ascii")
    if fallback == cleaned:
        return f'attachment; filename="{cleaned}"'
    return f"attachment; filename=\"{fallback}\"; filename*=UTF-8''{quote(cleaned)}"
