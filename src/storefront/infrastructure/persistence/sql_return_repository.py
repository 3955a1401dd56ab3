"""SQLAlchemy-backed implementation of ReturnRepository.

The one-open-request-per-item rule is enforced by a partial unique
index, so two customers racing on the same item cannot both succeed.
"""

from __future__ import annotations

from sqlalchemy import select, update
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session, sessionmaker

from storefront.domain.exceptions import ValidationError
from storefront.domain.model.returns import ReturnReason, ReturnRequest, ReturnStatus
from storefront.domain.repository.return_repository import ReturnRepository
from storefront.infrastructure.persistence.database import as_utc
from storefront.infrastructure.persistence.tables import ReturnRow


class SqlReturnRepository(ReturnRepository):

    def __init__(self, sessions: sessionmaker[Session]) -> None:
        self._sessions = sessions

    def get_by_id(self, return_id: int) -> ReturnRequest | None:
        with self._sessions() as session:
            row = session.get(ReturnRow, return_id)
            return self._to_domain(row) if row is not None else None

    def list_by_ids(self, return_ids: list[int]) -> list[ReturnRequest]:
        if not return_ids:
            return []
        with self._sessions() as session:
            rows = session.scalars(
                select(ReturnRow)
                .where(ReturnRow.id.in_(return_ids))
                .order_by(ReturnRow.id)
            ).all()
            return [self._to_domain(row) for row in rows]

    def list_for_items(self, item_ids: list[int]) -> list[ReturnRequest]:
        if not item_ids:
            return []
        with self._sessions() as session:
            rows = session.scalars(
                select(ReturnRow)
                .where(ReturnRow.order_item_id.in_(item_ids))
                .order_by(ReturnRow.id)
            ).all()
            return [self._to_domain(row) for row in rows]

    def add_all(self, requests: list[ReturnRequest]) -> None:
        rows = [
            ReturnRow(
                order_id=r.order_id,
                order_item_id=r.order_item_id,
                reason=r.reason.value,
                details=r.details,
                status=r.status.value,
                created_at=as_utc(r.created_at),
            )
            for r in requests
        ]
        try:
            with self._sessions.begin() as session:
                session.add_all(rows)
                session.flush()
        except IntegrityError as exc:
            raise ValidationError(
                "A return has already been requested for one of these items"
            ) from exc

        for request, row in zip(requests, rows):
            request.id = row.id

    def save_status(self, request: ReturnRequest, expected_status: ReturnStatus) -> bool:
        with self._sessions.begin() as session:
            result = session.execute(
                update(ReturnRow)
                .where(
                    ReturnRow.id == request.id,
                    ReturnRow.status == expected_status.value,
                )
                .values(status=request.status.value)
                .execution_options(synchronize_session=False)
            )
            return result.rowcount == 1

    @staticmethod
    def _to_domain(row: ReturnRow) -> ReturnRequest:
        return ReturnRequest(
            id=row.id,
            order_id=row.order_id,
            order_item_id=row.order_item_id,
            reason=ReturnReason(row.reason),
            details=row.details,
            status=ReturnStatus(row.status),
            created_at=as_utc(row.created_at),  # type: ignore[arg-type]
        )
