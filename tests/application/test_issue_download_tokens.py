"""Integration tests for the IssueDownloadTokens use case."""

from datetime import timedelta

import pytest

from storefront.application.issue_download_tokens import IssueDownloadTokensHandler
from storefront.domain.exceptions import EntityNotFoundError, ValidationError
from storefront.domain.model.digital import DigitalFile
from storefront.domain.model.order import OrderStatus
from tests.factories import make_item, make_order
from tests.fakes import (
    T0,
    FakeDigitalFileRepository,
    FakeDownloadTokenRepository,
    FakeOrderRepository,
    FixedClock,
)


def _setup(status=OrderStatus.PROCESSING, file_id=1):
    order_repo = FakeOrderRepository()
    file_repo = FakeDigitalFileRepository()
    token_repo = FakeDownloadTokenRepository(order_repo)
    file_repo.add(
        DigitalFile(
            id=None,
            file_url="https://cdn.example.com/books/dune.epub",
            file_name="dune.epub",
            format="epub",
            file_size=1024,
        )
    )
    order = make_order(
        status=status,
        items=[
            make_item("Paperback"),
            make_item("Dune (ebook)", digital=True, max_downloads=3, digital_file_id=file_id),
        ],
    )
    order_repo.add(order)
    clock = FixedClock()
    handler = IssueDownloadTokensHandler(order_repo, file_repo, token_repo, clock, ttl_days=30)
    return order, token_repo, clock, handler


class TestIssueDownloadTokens:

    def test_one_token_per_digital_item(self):
        order, token_repo, _, handler = _setup()
        digital_item = order.items[1]

        issued = handler.handle(order.id)

        assert len(issued) == 1
        link = issued[0]
        assert link.order_item_id == digital_item.id
        assert link.file_name == "dune.epub"
        assert link.download_path == f"/download/{link.token}"
        assert link.expires_at == (T0 + timedelta(days=30)).isoformat()
        assert token_repo.get(link.token) is not None

    def test_rerun_skips_items_with_live_token(self):
        order, _, _, handler = _setup()
        handler.handle(order.id)
        assert handler.handle(order.id) == []

    def test_expired_token_is_replaced(self):
        order, token_repo, clock, handler = _setup()
        first = handler.handle(order.id)[0]

        clock.advance(days=31)
        second = handler.handle(order.id)

        assert len(second) == 1
        assert second[0].token != first.token
        assert len(token_repo.list_for_item(order.items[1].id)) == 2

    def test_pending_order_rejected(self):
        order, _, _, handler = _setup(status=OrderStatus.PENDING)
        with pytest.raises(ValidationError, match="PENDING"):
            handler.handle(order.id)

    def test_cancelled_order_rejected(self):
        order, _, _, handler = _setup(status=OrderStatus.CANCELLED)
        with pytest.raises(ValidationError):
            handler.handle(order.id)

    def test_unknown_order(self):
        _, _, _, handler = _setup()
        with pytest.raises(EntityNotFoundError):
            handler.handle(999)

    def test_missing_file(self):
        order, _, _, handler = _setup(file_id=77)
        with pytest.raises(EntityNotFoundError, match="#77"):
            handler.handle(order.id)

    def test_item_without_file_is_skipped(self):
        order, _, _, handler = _setup(file_id=None)
        assert handler.handle(order.id) == []
