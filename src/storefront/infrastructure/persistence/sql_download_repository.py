"""SQLAlchemy-backed implementations of the digital download repositories.

``SqlDownloadTokenRepository.redeem`` is the only code in the system
that writes ``downloaded_at`` or ``download_count``.  It does so with two
conditional UPDATEs in one transaction and trusts their row counts,
never an earlier read.
"""

from __future__ import annotations

from datetime import datetime

from sqlalchemy import select, update
from sqlalchemy.orm import Session, sessionmaker

from storefront.domain.exceptions import (
    DownloadError,
    DownloadLimitExceeded,
    TokenAlreadyConsumed,
    TokenExpired,
    TokenNotFound,
)
from storefront.domain.model.digital import DigitalDownloadToken, DigitalFile
from storefront.domain.model.value_objects import RequestContext
from storefront.domain.repository.download_repository import (
    DigitalFileRepository,
    DownloadTokenRepository,
)
from storefront.infrastructure.persistence.database import as_utc
from storefront.infrastructure.persistence.tables import (
    DigitalFileRow,
    DownloadTokenRow,
    OrderItemRow,
)


class SqlDigitalFileRepository(DigitalFileRepository):

    def __init__(self, sessions: sessionmaker[Session]) -> None:
        self._sessions = sessions

    def get_by_id(self, file_id: int) -> DigitalFile | None:
        with self._sessions() as session:
            row = session.get(DigitalFileRow, file_id)
            if row is None:
                return None
            return DigitalFile(
                id=row.id,
                file_url=row.file_url,
                file_name=row.file_name,
                format=row.format,
                file_size=row.file_size,
            )

    def add(self, digital_file: DigitalFile) -> DigitalFile:
        with self._sessions.begin() as session:
            row = DigitalFileRow(
                file_url=digital_file.file_url,
                file_name=digital_file.file_name,
                format=digital_file.format,
                file_size=digital_file.file_size,
            )
            session.add(row)
            session.flush()
            file_id = row.id
        return DigitalFile(
            id=file_id,
            file_url=digital_file.file_url,
            file_name=digital_file.file_name,
            format=digital_file.format,
            file_size=digital_file.file_size,
        )


class SqlDownloadTokenRepository(DownloadTokenRepository):

    def __init__(self, sessions: sessionmaker[Session]) -> None:
        self._sessions = sessions

    # --- DownloadTokenRepository interface ------------------------------------

    def get(self, token: str) -> DigitalDownloadToken | None:
        with self._sessions() as session:
            row = session.scalars(
                select(DownloadTokenRow).where(DownloadTokenRow.token == token)
            ).one_or_none()
            return self._to_domain(row) if row is not None else None

    def list_for_item(self, order_item_id: int) -> list[DigitalDownloadToken]:
        with self._sessions() as session:
            rows = session.scalars(
                select(DownloadTokenRow)
                .where(DownloadTokenRow.order_item_id == order_item_id)
                .order_by(DownloadTokenRow.id)
            ).all()
            return [self._to_domain(row) for row in rows]

    def add(self, token: DigitalDownloadToken) -> None:
        with self._sessions.begin() as session:
            session.add(
                DownloadTokenRow(
                    token=token.token,
                    order_item_id=token.order_item_id,
                    digital_file_id=token.digital_file_id,
                    created_at=as_utc(token.created_at),
                    expires_at=as_utc(token.expires_at),
                    downloaded_at=as_utc(token.downloaded_at),
                    ip_address=token.ip_address,
                    user_agent=token.user_agent,
                )
            )

    def redeem(self, token: str, now: datetime, context: RequestContext) -> None:
        now = as_utc(now)  # type: ignore[assignment]
        with self._sessions.begin() as session:
            consumed = session.execute(
                update(DownloadTokenRow)
                .where(
                    DownloadTokenRow.token == token,
                    DownloadTokenRow.downloaded_at.is_(None),
                    DownloadTokenRow.expires_at >= now,
                )
                .values(
                    downloaded_at=now,
                    ip_address=context.ip_address[:64],
                    user_agent=context.user_agent[:512],
                )
                .execution_options(synchronize_session=False)
            )
            if consumed.rowcount != 1:
                # Raising inside the block rolls the transaction back.
                raise self._why_not_consumable(session, token, now)

            order_item_id = session.scalars(
                select(DownloadTokenRow.order_item_id).where(DownloadTokenRow.token == token)
            ).one()
            counted = session.execute(
                update(OrderItemRow)
                .where(
                    OrderItemRow.id == order_item_id,
                    OrderItemRow.download_count < OrderItemRow.max_downloads,
                )
                .values(download_count=OrderItemRow.download_count + 1)
                .execution_options(synchronize_session=False)
            )
            if counted.rowcount != 1:
                raise DownloadLimitExceeded(
                    f"Item #{order_item_id} has no downloads left"
                )

    # --- Internal helpers -----------------------------------------------------

    @staticmethod
    def _why_not_consumable(session: Session, token: str, now: datetime) -> DownloadError:
        row = session.scalars(
            select(DownloadTokenRow).where(DownloadTokenRow.token == token)
        ).one_or_none()
        if row is None:
            return TokenNotFound("Unknown download token")
        if as_utc(row.expires_at) < now:  # type: ignore[operator]
            return TokenExpired(f"Token for item #{row.order_item_id} expired")
        if row.downloaded_at is not None:
            return TokenAlreadyConsumed(
                f"Token for item #{row.order_item_id} already used"
            )
        return TokenAlreadyConsumed(f"Token for item #{row.order_item_id} not redeemable")

    @staticmethod
    def _to_domain(row: DownloadTokenRow) -> DigitalDownloadToken:
        return DigitalDownloadToken(
            token=row.token,
            order_item_id=row.order_item_id,
            digital_file_id=row.digital_file_id,
            expires_at=as_utc(row.expires_at),  # type: ignore[arg-type]
            created_at=as_utc(row.created_at),  # type: ignore[arg-type]
            downloaded_at=as_utc(row.downloaded_at),
            ip_address=row.ip_address,
            user_agent=row.user_agent,
        )
