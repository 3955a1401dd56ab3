"""Notifier adapters.

Email rendering and delivery live in another service.  These adapters
either hand the event to that service over HTTP or, when none is
configured, just log it.
"""

from __future__ import annotations

from dataclasses import asdict
from typing import Any

import requests
import structlog

from storefront.application.dto import OrderDTO
from storefront.application.ports import Notifier

logger = structlog.get_logger(__name__)


class LoggingNotifier(Notifier):

    def notify(
        self,
        event_type: str,
        order: OrderDTO,
        extra: dict[str, Any] | None = None,
    ) -> None:
        logger.info(
            "Notification emitted",
            event_type=event_type,
            order_number=order.order_number,
            status=order.status,
            extra=extra or {},
        )


class WebhookNotifier(Notifier):
    """POSTs ``{"event", "order", "extra"}`` as JSON to the email service.

    Raises on transport errors and non-2xx responses; callers catch and
    log, so a failed delivery never reaches the customer-facing path.
    """

    def __init__(
        self,
        url: str,
        timeout: float = 5.0,
        session: requests.Session | None = None,
    ) -> None:
        self._url = url
        self._timeout = timeout
        self._session = session or requests.Session()

    def notify(
        self,
        event_type: str,
        order: OrderDTO,
        extra: dict[str, Any] | None = None,
    ) -> None:
        payload = {"event": event_type, "order": asdict(order), "extra": extra or {}}
        response = self._session.post(self._url, json=payload, timeout=self._timeout)
        response.raise_for_status()
        logger.debug(
            "Notification delivered",
            event_type=event_type,
            order_number=order.order_number,
            status_code=response.status_code,
        )
