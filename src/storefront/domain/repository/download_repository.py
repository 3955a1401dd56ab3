"""Abstract repositories for digital files and download tokens."""

from __future__ import annotations

from abc import ABC, abstractmethod
from datetime import datetime

from storefront.domain.model.digital import DigitalDownloadToken, DigitalFile
from storefront.domain.model.value_objects import RequestContext


class DigitalFileRepository(ABC):

    @abstractmethod
    def get_by_id(self, file_id: int) -> DigitalFile | None:
        """Return a digital file by its ID, or None."""

    @abstractmethod
    def add(self, digital_file: DigitalFile) -> DigitalFile:
        """Persist a new file and return it with its assigned ID."""


class DownloadTokenRepository(ABC):

    @abstractmethod
    def get(self, token: str) -> DigitalDownloadToken | None:
        """Return the token record, or None if the string is unknown."""

    @abstractmethod
    def list_for_item(self, order_item_id: int) -> list[DigitalDownloadToken]:
        """Return every token ever issued for an order item."""

    @abstractmethod
    def add(self, token: DigitalDownloadToken) -> None:
        """Persist a newly issued token."""

    @abstractmethod
    def redeem(self, token: str, now: datetime, context: RequestContext) -> None:
        """Consume ``token`` and count one download against its item, atomically.

        This is the only write path for ``downloaded_at`` and
        ``download_count``.  Expiry, prior consumption and the item's
        download ceiling are re-checked inside the same transaction; on
        any failure nothing is written and the matching ``DownloadError``
        subclass is raised.
        """
