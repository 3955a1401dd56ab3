"""Composition root — wires concrete implementations to domain interfaces.

This is the only place in the codebase that knows about *all* layers.
Every other module depends only on abstractions.
"""

from __future__ import annotations

from functools import lru_cache

from sqlalchemy.orm import Session, sessionmaker

from storefront.application.ports import FileOrigin, Notifier
from storefront.infrastructure.config import get_settings
from storefront.infrastructure.notifications import LoggingNotifier, WebhookNotifier
from storefront.infrastructure.origin import HttpFileOrigin
from storefront.infrastructure.persistence.database import (
    create_schema,
    create_store_engine,
    session_factory,
)
from storefront.infrastructure.persistence.sql_download_repository import (
    SqlDigitalFileRepository,
    SqlDownloadTokenRepository,
)
from storefront.infrastructure.persistence.sql_order_repository import (
    SqlOrderRepository,
)
from storefront.infrastructure.persistence.sql_return_repository import (
    SqlReturnRepository,
)


@lru_cache
def _sessions() -> sessionmaker[Session]:
    return session_factory(create_store_engine(get_settings().database_url))


def init_database() -> None:
    create_schema(_sessions().kw["bind"])


def reset() -> None:
    """Forget cached settings, engine and HTTP adapters (after the environment changed)."""
    if _sessions.cache_info().currsize:
        _sessions().kw["bind"].dispose()
    _sessions.cache_clear()
    notifier.cache_clear()
    file_origin.cache_clear()
    get_settings.cache_clear()


def order_repository() -> SqlOrderRepository:
    return SqlOrderRepository(_sessions())


def return_repository() -> SqlReturnRepository:
    return SqlReturnRepository(_sessions())


def digital_file_repository() -> SqlDigitalFileRepository:
    return SqlDigitalFileRepository(_sessions())


def download_token_repository() -> SqlDownloadTokenRepository:
    return SqlDownloadTokenRepository(_sessions())


@lru_cache
def notifier() -> Notifier:
    url = get_settings().notifier_webhook_url
    if url:
        return WebhookNotifier(url)
    return LoggingNotifier()


@lru_cache
def file_origin() -> FileOrigin:
    return HttpFileOrigin(timeout=get_settings().download_fetch_timeout)


def download_link_ttl_days() -> int:
    return get_settings().download_link_ttl_days
