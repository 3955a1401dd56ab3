"""Integration tests for the UpdateReturnStatus use case."""

import pytest

from storefront.application.ports import RETURN_APPROVED
from storefront.application.update_return_status import UpdateReturnStatusHandler
from storefront.domain.exceptions import EntityNotFoundError, InvalidTransition
from storefront.domain.model.order import OrderStatus
from storefront.domain.model.returns import ReturnReason, ReturnRequest, ReturnStatus
from tests.factories import make_order
from tests.fakes import (
    T0,
    FailingNotifier,
    FakeOrderRepository,
    FakeReturnRepository,
    RecordingNotifier,
)


def _setup(notifier=None):
    order_repo = FakeOrderRepository()
    order = make_order(status=OrderStatus.DELIVERED, delivered_at=T0)
    order_repo.add(order)
    return_repo = FakeReturnRepository()
    request = ReturnRequest(
        id=None,
        order_id=order.id,
        order_item_id=order.items[0].id,
        reason=ReturnReason.DAMAGED_OR_DEFECTIVE,
        details="Cracked spine",
        created_at=T0,
    )
    return_repo.add_all([request])
    notifier = notifier or RecordingNotifier()
    handler = UpdateReturnStatusHandler(return_repo, order_repo, notifier)
    return return_repo, request.id, notifier, handler


class TestUpdateReturnStatus:

    def test_status_is_saved(self):
        return_repo, return_id, _, handler = _setup()

        result = handler.handle(return_id, ReturnStatus.APPROVED)

        assert result.status == ReturnStatus.APPROVED
        assert return_repo.get_by_id(return_id).status == ReturnStatus.APPROVED

    def test_full_lifecycle(self):
        return_repo, return_id, _, handler = _setup()
        for status in (ReturnStatus.APPROVED, ReturnStatus.RECEIVED, ReturnStatus.REFUNDED):
            handler.handle(return_id, status)
        assert return_repo.get_by_id(return_id).status == ReturnStatus.REFUNDED

    def test_unknown_return(self):
        _, _, _, handler = _setup()
        with pytest.raises(EntityNotFoundError, match="not found"):
            handler.handle(42, ReturnStatus.APPROVED)

    def test_concurrent_change_is_detected(self):
        return_repo, return_id, notifier, handler = _setup()
        original_get = return_repo.get_by_id

        def stale_read(rid):
            request = original_get(rid)
            return_repo.force_status(rid, ReturnStatus.REJECTED)
            return request

        return_repo.get_by_id = stale_read

        with pytest.raises(InvalidTransition, match="changed concurrently"):
            handler.handle(return_id, ReturnStatus.APPROVED)
        assert notifier.events == []


class TestReturnTransitionTable:

    @pytest.mark.parametrize(
        "path",
        [
            [ReturnStatus.REJECTED],
            [ReturnStatus.APPROVED, ReturnStatus.REJECTED],
        ],
    )
    def test_can_reject_before_receipt(self, path):
        return_repo, return_id, _, handler = _setup()
        for status in path:
            handler.handle(return_id, status)
        assert return_repo.get_by_id(return_id).status == ReturnStatus.REJECTED

    @pytest.mark.parametrize(
        "path",
        [
            [ReturnStatus.APPROVED, ReturnStatus.RECEIVED],
            [ReturnStatus.APPROVED, ReturnStatus.RECEIVED, ReturnStatus.REFUNDED],
        ],
    )
    def test_cannot_reject_after_receipt(self, path):
        return_repo, return_id, _, handler = _setup()
        for status in path:
            handler.handle(return_id, status)

        with pytest.raises(InvalidTransition, match="to REJECTED"):
            handler.handle(return_id, ReturnStatus.REJECTED)
        assert return_repo.get_by_id(return_id).status == path[-1]

    @pytest.mark.parametrize("target", list(ReturnStatus))
    def test_refunded_is_final(self, target):
        return_repo, return_id, _, handler = _setup()
        for status in (ReturnStatus.APPROVED, ReturnStatus.RECEIVED, ReturnStatus.REFUNDED):
            handler.handle(return_id, status)

        with pytest.raises(InvalidTransition):
            handler.handle(return_id, target)

    def test_rejected_is_final(self):
        _, return_id, _, handler = _setup()
        handler.handle(return_id, ReturnStatus.REJECTED)

        with pytest.raises(InvalidTransition, match="from REJECTED to APPROVED"):
            handler.handle(return_id, ReturnStatus.APPROVED)

    def test_cannot_skip_receipt(self):
        _, return_id, _, handler = _setup()
        with pytest.raises(InvalidTransition, match="from PENDING to REFUNDED"):
            handler.handle(return_id, ReturnStatus.REFUNDED)


class TestApprovalNotice:

    def test_approval_notifies_customer(self):
        _, return_id, notifier, handler = _setup()

        handler.handle(return_id, ReturnStatus.APPROVED)

        assert notifier.event_types == [RETURN_APPROVED]
        _, snapshot, extra = notifier.events[0]
        assert snapshot.order_number == "ORD-1001"
        assert extra["return_ids"] == [return_id]
        assert extra["reason_label"] == "Damaged or defective"
        assert extra["details"] == "Cracked spine"
        assert [i["name"] for i in extra["items"]] == ["Paperback"]

    def test_rejection_is_silent(self):
        _, return_id, notifier, handler = _setup()
        handler.handle(return_id, ReturnStatus.REJECTED)
        assert notifier.events == []

    def test_later_steps_are_silent(self):
        _, return_id, notifier, handler = _setup()
        for status in (ReturnStatus.APPROVED, ReturnStatus.RECEIVED, ReturnStatus.REFUNDED):
            handler.handle(return_id, status)
        assert notifier.event_types == [RETURN_APPROVED]

    def test_notifier_failure_keeps_approval(self):
        notifier = FailingNotifier()
        return_repo, return_id, _, handler = _setup(notifier)

        result = handler.handle(return_id, ReturnStatus.APPROVED)

        assert result.status == ReturnStatus.APPROVED
        assert return_repo.get_by_id(return_id).status == ReturnStatus.APPROVED
        assert notifier.calls == 1
