"""Digital goods: the files customers buy and the tokens that unlock them."""

from __future__ import annotations

import secrets
from dataclasses import dataclass
from datetime import datetime, timedelta

from storefront.domain.exceptions import ValidationError

CONTENT_TYPES = {
    "epub": "application/epub+zip",
    "pdf": "application/pdf",
    "mobi": "application/x-mobipocket-ebook",
    "mp3": "audio/mpeg",
    "zip": "application/zip",
}
DEFAULT_CONTENT_TYPE = "application/octet-stream"


@dataclass(frozen=True)
class DigitalFile:
    """A purchasable asset living in origin storage.

    Frozen: once a token references a file its description must not move
    under the customer's feet.
    """

    id: int | None
    file_url: str
    file_name: str
    format: str
    file_size: int

    @property
    def content_type(self) -> str:
        return CONTENT_TYPES.get(self.format.lower(), DEFAULT_CONTENT_TYPE)


@dataclass
class DigitalDownloadToken:
    """Single-use credential for one file of one order item.

    Tokens are audit records and are never deleted.  ``downloaded_at``,
    ``ip_address`` and ``user_agent`` are written exactly once, by the
    repository's atomic redeem.
    """

    token: str
    order_item_id: int
    digital_file_id: int
    expires_at: datetime
    created_at: datetime
    downloaded_at: datetime | None = None
    ip_address: str | None = None
    user_agent: str | None = None

    @staticmethod
    def issue(
        order_item_id: int,
        digital_file_id: int,
        now: datetime,
        ttl: timedelta,
    ) -> DigitalDownloadToken:
        if ttl <= timedelta(0):
            raise ValidationError("Download link lifetime must be positive")
        return DigitalDownloadToken(
            token=secrets.token_hex(32),
            order_item_id=order_item_id,
            digital_file_id=digital_file_id,
            expires_at=now + ttl,
            created_at=now,
        )

    def is_expired(self, now: datetime) -> bool:
        return now > self.expires_at

    @property
    def is_consumed(self) -> bool:
        return self.downloaded_at is not None

    def is_live(self, now: datetime) -> bool:
        return not self.is_consumed and not self.is_expired(now)
