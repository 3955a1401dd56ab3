"""End-to-end CLI tests against a temporary SQLite store."""

from datetime import timedelta

import pytest
from click.testing import CliRunner

from storefront.application.clock import utc_now
from storefront.domain.model.digital import DigitalFile
from storefront.domain.model.order import OrderStatus
from storefront.infrastructure import bootstrap
from storefront.infrastructure.cli.main import cli
from tests.factories import make_item, make_order


@pytest.fixture
def runner(tmp_path, monkeypatch):
    monkeypatch.setenv("STOREFRONT_DATABASE_URL", f"sqlite:///{tmp_path / 'cli.db'}")
    monkeypatch.setenv("STOREFRONT_PUBLIC_BASE_URL", "https://shop.example.com")
    monkeypatch.delenv("STOREFRONT_NOTIFIER_WEBHOOK_URL", raising=False)
    bootstrap.reset()
    bootstrap.init_database()
    yield CliRunner()
    bootstrap.reset()


def _add(order):
    bootstrap.order_repository().add(order)
    return order


class TestDbCommands:

    def test_init_is_idempotent(self, runner):
        result = runner.invoke(cli, ["db", "init"])
        assert result.exit_code == 0, result.output
        assert "Database ready." in result.output


class TestOrderCommands:

    def test_show(self, runner):
        order = _add(make_order(items=[make_item("Hardcover", "25.00", quantity=2)]))

        result = runner.invoke(cli, ["order", "show", "--id", str(order.id)])

        assert result.exit_code == 0, result.output
        assert "ORD-1001" in result.output
        assert "Hardcover" in result.output
        assert "$50.00" in result.output

    def test_show_unknown(self, runner):
        result = runner.invoke(cli, ["order", "show", "--id", "999"])
        assert result.exit_code != 0
        assert "not found" in result.output

    def test_transition(self, runner):
        order = _add(make_order(status=OrderStatus.PENDING))

        result = runner.invoke(
            cli,
            ["order", "transition", "--id", str(order.id), "--status", "processing", "--actor", "alice"],
        )

        assert result.exit_code == 0, result.output
        assert "is now PROCESSING" in result.output
        assert bootstrap.order_repository().get_by_id(order.id).status == OrderStatus.PROCESSING

    def test_invalid_transition(self, runner):
        order = _add(make_order(status=OrderStatus.PENDING))

        result = runner.invoke(
            cli,
            ["order", "transition", "--id", str(order.id), "--status", "COMPLETED", "--actor", "alice"],
        )

        assert result.exit_code != 0
        assert "Cannot move order" in result.output

    def test_reopen(self, runner):
        order = _add(make_order(status=OrderStatus.CANCELLED, closed_at=utc_now()))

        result = runner.invoke(cli, ["order", "reopen", "--id", str(order.id), "--actor", "admin"])

        assert result.exit_code == 0, result.output
        assert "reopened as PROCESSING" in result.output

    def test_auto_complete(self, runner):
        now = utc_now()
        old = _add(
            make_order(
                status=OrderStatus.DELIVERED, delivered_at=now - timedelta(days=40), order_number="A"
            )
        )
        _add(
            make_order(
                status=OrderStatus.DELIVERED, delivered_at=now - timedelta(days=5), order_number="B"
            )
        )

        result = runner.invoke(cli, ["order", "auto-complete"])

        assert result.exit_code == 0, result.output
        assert "1 order(s) completed." in result.output
        assert f"#{old.id}" in result.output

        again = runner.invoke(cli, ["order", "auto-complete"])
        assert "0 order(s) completed." in again.output

    def test_issue_downloads(self, runner):
        digital_file = bootstrap.digital_file_repository().add(
            DigitalFile(
                id=None,
                file_url="https://cdn.example.com/books/dune.epub",
                file_name="dune.epub",
                format="epub",
                file_size=18,
            )
        )
        order = _add(
            make_order(
                status=OrderStatus.PROCESSING,
                items=[
                    make_item(
                        "Dune (ebook)", digital=True, max_downloads=3, digital_file_id=digital_file.id
                    )
                ],
            )
        )

        result = runner.invoke(cli, ["order", "issue-downloads", "--id", str(order.id)])
        assert result.exit_code == 0, result.output
        assert "dune.epub: https://shop.example.com/download/" in result.output

        again = runner.invoke(cli, ["order", "issue-downloads", "--id", str(order.id)])
        assert "No new download links needed." in again.output


class TestReturnCommands:

    def _delivered(self, days_ago):
        return _add(
            make_order(
                status=OrderStatus.DELIVERED,
                delivered_at=utc_now() - timedelta(days=days_ago),
                items=[make_item("Hardcover"), make_item("Paperback")],
            )
        )

    def test_create_and_update(self, runner):
        order = self._delivered(3)
        ids = ",".join(str(i.id) for i in order.items)

        result = runner.invoke(cli, ["return", "create", "--items", ids, "--reason", "changed_mind"])

        assert result.exit_code == 0, result.output
        assert "2 return(s) created for order ORD-1001: #1, #2" in result.output

        updated = runner.invoke(cli, ["return", "set-status", "--id", "1", "--status", "APPROVED"])
        assert updated.exit_code == 0, updated.output
        assert "Return #1 is now APPROVED." in updated.output

    def test_outside_window(self, runner):
        order = self._delivered(20)

        result = runner.invoke(
            cli, ["return", "create", "--items", str(order.items[0].id), "--reason", "OTHER"]
        )

        assert result.exit_code != 0
        assert "outside return window" in result.output

    def test_bad_item_list(self, runner):
        result = runner.invoke(cli, ["return", "create", "--items", "1,x", "--reason", "OTHER"])
        assert result.exit_code != 0
        assert "Invalid ID 'x'" in result.output

    def test_approve(self, runner):
        first = self._delivered(3)
        second = _add(
            make_order(
                status=OrderStatus.DELIVERED,
                delivered_at=utc_now() - timedelta(days=2),
                order_number="ORD-1002",
            )
        )
        items = [str(i.id) for i in first.items]
        runner.invoke(cli, ["return", "create", "--items", ",".join(items), "--reason", "OTHER"])
        runner.invoke(
            cli, ["return", "create", "--items", str(second.items[0].id), "--reason", "OTHER"]
        )

        result = runner.invoke(cli, ["return", "approve", "--ids", "1,2,3"])

        assert result.exit_code == 0, result.output
        assert "Order ORD-1001: approved #1, #2" in result.output
        assert "Order ORD-1002: approved #3" in result.output
        assert "3 return(s) approved across 2 order(s)." in result.output

        again = runner.invoke(cli, ["return", "approve", "--ids", "1,2,3"])
        assert again.exit_code != 0
        assert "No pending returns found" in again.output

    def test_refunded_return_stays_refunded(self, runner):
        order = self._delivered(3)
        runner.invoke(
            cli, ["return", "create", "--items", str(order.items[0].id), "--reason", "OTHER"]
        )
        for status in ("APPROVED", "RECEIVED", "REFUNDED"):
            runner.invoke(cli, ["return", "set-status", "--id", "1", "--status", status])

        result = runner.invoke(cli, ["return", "set-status", "--id", "1", "--status", "REJECTED"])

        assert result.exit_code != 0
        assert "from REFUNDED to REJECTED" in result.output


class TestBootstrap:

    def test_http_adapters_are_shared(self, runner):
        assert bootstrap.notifier() is bootstrap.notifier()
        assert bootstrap.file_origin() is bootstrap.file_origin()

    def test_reset_rebuilds_adapters(self, runner):
        before = bootstrap.file_origin()
        bootstrap.reset()
        assert bootstrap.file_origin() is not before
