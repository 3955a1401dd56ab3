"""Outbound ports — collaborators the application talks to but does not own.

Both are expected to fail independently of the core: a notifier that
raises must never undo a committed state change, and an origin fetch
failure is reported to the caller rather than retried here.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Any

from storefront.application.dto import OrderDTO

ORDER_CANCELLED = "order.cancelled"
ORDER_COMPLETED = "order.completed"
RETURN_CONFIRMED = "return.confirmed"
RETURN_APPROVED = "return.approved"


class Notifier(ABC):

    @abstractmethod
    def notify(
        self,
        event_type: str,
        order: OrderDTO,
        extra: dict[str, Any] | None = None,
    ) -> None:
        """Deliver an event.  Fire-and-forget; callers log and move on."""


class FileOrigin(ABC):

    @abstractmethod
    def fetch(self, file_url: str) -> bytes:
        """Return the bytes behind ``file_url``.

        Raises UpstreamUnavailable on transport errors, timeouts and
        non-success responses.
        """
