"""SQLAlchemy-backed implementation of OrderRepository."""

from __future__ import annotations

from datetime import datetime
from decimal import Decimal

from sqlalchemy import or_, select, update
from sqlalchemy.orm import Session, selectinload, sessionmaker

from storefront.domain.model.order import (
    ActivityNote,
    Order,
    OrderItem,
    OrderStatus,
)
from storefront.domain.model.value_objects import Money
from storefront.domain.repository.order_repository import OrderRepository
from storefront.infrastructure.persistence.database import as_utc
from storefront.infrastructure.persistence.tables import (
    ActivityRow,
    OrderItemRow,
    OrderRow,
)


class SqlOrderRepository(OrderRepository):

    def __init__(self, sessions: sessionmaker[Session]) -> None:
        self._sessions = sessions

    # --- OrderRepository interface --------------------------------------------

    def get_by_id(self, order_id: int) -> Order | None:
        with self._sessions() as session:
            row = session.scalars(
                self._select_orders().where(OrderRow.id == order_id)
            ).one_or_none()
            return self._to_domain(row) if row is not None else None

    def get_item(self, item_id: int) -> OrderItem | None:
        with self._sessions() as session:
            row = session.get(OrderItemRow, item_id)
            return self._item_to_domain(row) if row is not None else None

    def find_by_item_ids(self, item_ids: list[int]) -> list[Order]:
        if not item_ids:
            return []
        with self._sessions() as session:
            rows = session.scalars(
                self._select_orders()
                .where(OrderRow.items.any(OrderItemRow.id.in_(item_ids)))
                .order_by(OrderRow.id)
            ).all()
            return [self._to_domain(row) for row in rows]

    def list_delivered_before(self, cutoff: datetime) -> list[Order]:
        with self._sessions() as session:
            rows = session.scalars(
                self._select_orders()
                .where(
                    OrderRow.status == OrderStatus.DELIVERED.value,
                    OrderRow.delivered_at.is_not(None),
                    OrderRow.delivered_at <= as_utc(cutoff),
                    or_(
                        OrderRow.reopened_at.is_(None),
                        OrderRow.reopened_at <= as_utc(cutoff),
                    ),
                )
                .order_by(OrderRow.id)
            ).all()
            return [self._to_domain(row) for row in rows]

    def add(self, order: Order) -> None:
        with self._sessions.begin() as session:
            row = self._to_row(order)
            session.add(row)
            session.flush()
            order.id = row.id
            for item, item_row in zip(order.items, row.items):
                item.id = item_row.id

    def save_transition(
        self,
        order: Order,
        expected_status: OrderStatus,
        note: ActivityNote,
    ) -> bool:
        with self._sessions.begin() as session:
            result = session.execute(
                update(OrderRow)
                .where(
                    OrderRow.id == order.id,
                    OrderRow.status == expected_status.value,
                )
                .values(
                    status=order.status.value,
                    delivered_at=as_utc(order.delivered_at),
                    closed_at=as_utc(order.closed_at),
                    reopened_at=as_utc(order.reopened_at),
                )
                .execution_options(synchronize_session=False)
            )
            if result.rowcount != 1:
                return False
            session.add(
                ActivityRow(
                    order_id=order.id,
                    created_at=as_utc(note.created_at),
                    actor=note.actor,
                    message=note.message,
                )
            )
            return True

    # --- Serialization --------------------------------------------------------

    @staticmethod
    def _select_orders():
        return select(OrderRow).options(
            selectinload(OrderRow.items),
            selectinload(OrderRow.activity),
        )

    @staticmethod
    def _to_row(order: Order) -> OrderRow:
        return OrderRow(
            order_number=order.order_number,
            status=order.status.value,
            created_at=as_utc(order.created_at),
            delivered_at=as_utc(order.delivered_at),
            closed_at=as_utc(order.closed_at),
            reopened_at=as_utc(order.reopened_at),
            items=[
                OrderItemRow(
                    position=position,
                    product_id=item.product_id,
                    name=item.name,
                    quantity=item.quantity,
                    price=str(item.price.amount),
                    currency=item.price.currency,
                    is_digital=item.is_digital,
                    download_count=item.download_count,
                    max_downloads=item.max_downloads,
                    digital_file_id=item.digital_file_id,
                )
                for position, item in enumerate(order.items)
            ],
            activity=[
                ActivityRow(
                    created_at=as_utc(note.created_at),
                    actor=note.actor,
                    message=note.message,
                )
                for note in order.activity
            ],
        )

    @staticmethod
    def _item_to_domain(row: OrderItemRow) -> OrderItem:
        return OrderItem(
            id=row.id,
            product_id=row.product_id,
            name=row.name,
            quantity=row.quantity,
            price=Money(Decimal(row.price), row.currency),
            is_digital=row.is_digital,
            download_count=row.download_count,
            max_downloads=row.max_downloads,
            digital_file_id=row.digital_file_id,
        )

    def _to_domain(self, row: OrderRow) -> Order:
        return Order(
            id=row.id,
            order_number=row.order_number,
            items=[self._item_to_domain(item) for item in row.items],
            created_at=as_utc(row.created_at),  # type: ignore[arg-type]
            status=OrderStatus(row.status),
            delivered_at=as_utc(row.delivered_at),
            closed_at=as_utc(row.closed_at),
            reopened_at=as_utc(row.reopened_at),
            activity=[
                ActivityNote(
                    created_at=as_utc(note.created_at),  # type: ignore[arg-type]
                    actor=note.actor,
                    message=note.message,
                )
                for note in row.activity
            ],
        )
