"""HTTP adapter for the file storage origin."""

from __future__ import annotations

import requests
import structlog

from storefront.application.ports import FileOrigin
from storefront.domain.exceptions import UpstreamUnavailable

logger = structlog.get_logger(__name__)


class HttpFileOrigin(FileOrigin):
    """Fetches file bytes with a bounded timeout and no retries.

    Retrying is the client's job; the token was already consumed by the
    time we get here.
    """

    def __init__(self, timeout: float, session: requests.Session | None = None) -> None:
        self._timeout = timeout
        self._session = session or requests.Session()

    def fetch(self, file_url: str) -> bytes:
        try:
            response = self._session.get(file_url, timeout=self._timeout)
        except requests.RequestException as exc:
            logger.error("Origin fetch failed", error=str(exc))
            raise UpstreamUnavailable(f"Origin unreachable: {exc}") from exc

        if not response.ok:
            logger.error(
                "Origin returned an error",
                status_code=response.status_code,
                reason=response.reason,
            )
            raise UpstreamUnavailable(f"Origin answered {response.status_code}")
        return response.content
