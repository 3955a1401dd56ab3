"""Unit tests for the Order aggregate and its status state machine."""

from datetime import timedelta

import pytest

from storefront.domain.exceptions import (
    EntityNotFoundError,
    InvalidTransition,
    ValidationError,
)
from storefront.domain.model.order import (
    ALLOWED_TRANSITIONS,
    CLOSED_STATUSES,
    Order,
    OrderStatus,
)
from storefront.domain.model.value_objects import Money
from tests.factories import make_item, make_order
from tests.fakes import T0


class TestOrderCreation:

    def test_happy_path(self):
        order = Order.create("ORD-1", [make_item(quantity=2, price="10.00")], now=T0)
        assert order.status == OrderStatus.PENDING
        assert order.created_at == T0
        assert order.closed_at is None
        assert order.total == Money.of("20.00")

    def test_id_is_none_for_new_orders(self):
        order = Order.create("ORD-1", [make_item()], now=T0)
        assert order.id is None  # assigned by repository

    def test_no_items_rejected(self):
        with pytest.raises(ValidationError, match="at least one item"):
            Order.create("ORD-1", [], now=T0)

    def test_blank_order_number_rejected(self):
        with pytest.raises(ValidationError, match="Order number"):
            Order.create("  ", [make_item()], now=T0)

    def test_non_positive_quantity_rejected(self):
        with pytest.raises(ValidationError, match="must be positive"):
            Order.create("ORD-1", [make_item(quantity=0)], now=T0)


class TestTransitionTable:

    def test_happy_path_to_completed(self):
        order = make_order()
        for status in (
            OrderStatus.PROCESSING,
            OrderStatus.SHIPPED,
            OrderStatus.DELIVERED,
            OrderStatus.COMPLETED,
        ):
            order.transition_to(status, "admin", T0)
        assert order.status == OrderStatus.COMPLETED

    @pytest.mark.parametrize(
        "status",
        [OrderStatus.PENDING, OrderStatus.PROCESSING, OrderStatus.SHIPPED, OrderStatus.DELIVERED],
    )
    def test_cancel_reachable_from_every_open_status(self, status):
        order = make_order(status=status)
        order.transition_to(OrderStatus.CANCELLED, "admin", T0)
        assert order.status == OrderStatus.CANCELLED

    @pytest.mark.parametrize("status", [OrderStatus.COMPLETED, OrderStatus.CANCELLED])
    def test_terminal_statuses_have_no_exits(self, status):
        assert ALLOWED_TRANSITIONS[status] == frozenset()
        order = make_order(status=status, closed_at=T0)
        with pytest.raises(InvalidTransition):
            order.transition_to(OrderStatus.PROCESSING, "admin", T0)

    def test_skipping_a_step_rejected(self):
        order = make_order(status=OrderStatus.PENDING)
        with pytest.raises(InvalidTransition, match="from PENDING to DELIVERED"):
            order.transition_to(OrderStatus.DELIVERED, "admin", T0)
        assert order.status == OrderStatus.PENDING
        assert order.activity == []

    def test_same_status_rejected(self):
        order = make_order(status=OrderStatus.SHIPPED)
        with pytest.raises(InvalidTransition):
            order.transition_to(OrderStatus.SHIPPED, "admin", T0)

    def test_going_backwards_rejected(self):
        order = make_order(status=OrderStatus.SHIPPED)
        with pytest.raises(InvalidTransition):
            order.transition_to(OrderStatus.PROCESSING, "admin", T0)

    def test_every_status_is_in_the_table(self):
        assert set(ALLOWED_TRANSITIONS) == set(OrderStatus)


class TestTransitionSideEffects:

    @pytest.mark.parametrize("target", sorted(CLOSED_STATUSES, key=lambda s: s.value))
    def test_entering_closed_status_sets_closed_at(self, target):
        order = make_order(status=OrderStatus.DELIVERED, delivered_at=T0)
        later = T0 + timedelta(days=3)
        order.transition_to(target, "admin", later)
        assert order.closed_at == later

    def test_open_transition_leaves_closed_at_empty(self):
        order = make_order(status=OrderStatus.PENDING)
        order.transition_to(OrderStatus.PROCESSING, "admin", T0)
        assert order.closed_at is None

    def test_entering_delivered_stamps_delivery_date(self):
        order = make_order(status=OrderStatus.SHIPPED)
        order.transition_to(OrderStatus.DELIVERED, "courier", T0)
        assert order.delivered_at == T0

    def test_audit_note_appended(self):
        order = make_order(status=OrderStatus.PROCESSING)
        previous = order.transition_to(OrderStatus.CANCELLED, "alice", T0, note="Out of stock")

        assert previous == OrderStatus.PROCESSING
        assert len(order.activity) == 1
        note = order.activity[0]
        assert note.actor == "alice"
        assert note.created_at == T0
        assert note.message == "Status changed from PROCESSING to CANCELLED: Out of stock"

    def test_audit_note_without_free_text(self):
        order = make_order(status=OrderStatus.PENDING)
        order.transition_to(OrderStatus.PROCESSING, "system", T0)
        assert order.activity[0].message == "Status changed from PENDING to PROCESSING"


class TestReopen:

    def test_reopen_cancelled_clears_closed_at(self):
        order = make_order(status=OrderStatus.PROCESSING)
        order.transition_to(OrderStatus.CANCELLED, "admin", T0)
        assert order.closed_at is not None

        order.reopen("admin", T0 + timedelta(hours=1), note="Customer changed mind")

        assert order.status == OrderStatus.PROCESSING
        assert order.closed_at is None
        assert order.activity[-1].message.startswith(
            "Status changed from CANCELLED to PROCESSING"
        )

    def test_reopen_completed_returns_to_delivered(self):
        delivered = T0 - timedelta(days=40)
        order = make_order(status=OrderStatus.COMPLETED, delivered_at=delivered, closed_at=T0)
        order.reopen("admin", T0)
        assert order.status == OrderStatus.DELIVERED
        assert order.closed_at is None
        assert order.delivered_at == delivered
        assert order.reopened_at == T0
        assert order.settled_at == T0

    def test_settled_at_without_reopen(self):
        order = make_order(status=OrderStatus.DELIVERED, delivered_at=T0)
        assert order.settled_at == T0
        assert make_order().settled_at is None

    def test_open_order_cannot_be_reopened(self):
        order = make_order(status=OrderStatus.SHIPPED)
        with pytest.raises(InvalidTransition, match="cannot be reopened"):
            order.reopen("admin", T0)


class TestOrderItems:

    def test_line_total(self):
        item = make_item(quantity=3, price="15.00")
        assert item.line_total == Money.of("45.00")

    def test_downloads_remaining(self):
        item = make_item(digital=True, max_downloads=3, download_count=1)
        assert item.downloads_remaining == 2

    def test_find_item_unknown_id(self):
        order = make_order()
        with pytest.raises(EntityNotFoundError):
            order.find_item(404)

    def test_digital_items(self):
        order = make_order(items=[make_item("Book"), make_item("Ebook", digital=True)])
        assert [i.name for i in order.digital_items] == ["Ebook"]
