"""Abstract repository for Order aggregate.

Defined in the domain layer so the domain never depends on
infrastructure. Concrete implementations (SQL, in-memory) live in the
infrastructure layer and in the test fakes.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from datetime import datetime

from storefront.domain.model.order import ActivityNote, Order, OrderItem, OrderStatus


class OrderRepository(ABC):

    @abstractmethod
    def get_by_id(self, order_id: int) -> Order | None:
        """Return an order by its ID, or None if not found."""

    @abstractmethod
    def get_item(self, item_id: int) -> OrderItem | None:
        """Return a single order item by its ID, or None."""

    @abstractmethod
    def find_by_item_ids(self, item_ids: list[int]) -> list[Order]:
        """Return every distinct order owning at least one of ``item_ids``."""

    @abstractmethod
    def list_delivered_before(self, cutoff: datetime) -> list[Order]:
        """Return DELIVERED orders whose ``Order.settled_at`` is at or before ``cutoff``.

        Both ``delivered_at`` and, when set, ``reopened_at`` must be at or
        before ``cutoff``.
        """

    @abstractmethod
    def add(self, order: Order) -> None:
        """Persist a new order, assigning IDs to it and its items."""

    @abstractmethod
    def save_transition(
        self,
        order: Order,
        expected_status: OrderStatus,
        note: ActivityNote,
    ) -> bool:
        """Write a status change only if the stored status still equals
        ``expected_status``.

        Persists ``status`` and the ``delivered_at``, ``closed_at`` and
        ``reopened_at`` stamps, and appends ``note`` in one transaction.
        Returns False (and writes nothing) when another writer got there
        first.
        """
