"""FastAPI dependency providers.

Each provider delegates to the composition root; tests swap them out
through ``app.dependency_overrides``.
"""

from __future__ import annotations

from storefront.application.clock import Clock, utc_now
from storefront.application.ports import FileOrigin, Notifier
from storefront.domain.repository.download_repository import (
    DigitalFileRepository,
    DownloadTokenRepository,
)
from storefront.domain.repository.order_repository import OrderRepository
from storefront.domain.repository.return_repository import ReturnRepository
from storefront.infrastructure import bootstrap
from storefront.infrastructure.config import get_settings


def get_clock() -> Clock:
    return utc_now


def get_order_repo() -> OrderRepository:
    return bootstrap.order_repository()


def get_return_repo() -> ReturnRepository:
    return bootstrap.return_repository()


def get_file_repo() -> DigitalFileRepository:
    return bootstrap.digital_file_repository()


def get_token_repo() -> DownloadTokenRepository:
    return bootstrap.download_token_repository()


def get_notifier() -> Notifier:
    return bootstrap.notifier()


def get_file_origin() -> FileOrigin:
    return bootstrap.file_origin()


def get_link_ttl_days() -> int:
    return bootstrap.download_link_ttl_days()


def get_public_base_url() -> str:
    return get_settings().public_base_url.rstrip("/")
