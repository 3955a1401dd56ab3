"""CLI commands for the Order aggregate."""

from __future__ import annotations

import click

from storefront.application.auto_complete_orders import AutoCompleteOrdersHandler
from storefront.application.dto import OrderDTO
from storefront.application.issue_download_tokens import IssueDownloadTokensHandler
from storefront.application.show_order import ShowOrderHandler
from storefront.application.transition_order import TransitionOrderHandler
from storefront.domain.exceptions import DomainException
from storefront.domain.model.order import OrderStatus
from storefront.infrastructure.bootstrap import (
    digital_file_repository,
    download_link_ttl_days,
    download_token_repository,
    notifier,
    order_repository,
)
from storefront.infrastructure.config import get_settings

_STATUS_CHOICES = [s.value for s in OrderStatus]


def _display_order(dto: OrderDTO) -> None:
    """Shared formatting for displaying an order."""
    click.echo(f"Order {dto.order_number}  (#{dto.id}, status={dto.status})")
    click.echo(f"Created:   {dto.created_at}")
    if dto.delivered_at:
        click.echo(f"Delivered: {dto.delivered_at}")
    if dto.closed_at:
        click.echo(f"Closed:    {dto.closed_at}")
    if dto.reopened_at:
        click.echo(f"Reopened:  {dto.reopened_at}")
    click.echo()

    click.echo(f"  {'ID':>5} {'Product':<24} {'Qty':>5} {'Price':>10} {'Total':>10} {'Downloads':>10}")
    click.echo(f"  {'-'*69}")
    for item in dto.items:
        downloads = (
            f"{item.download_count}/{item.max_downloads}" if item.is_digital else "-"
        )
        click.echo(
            f"  {item.id:>5} {item.name:<24} {item.quantity:>5} "
            f"{item.price:>10} {item.line_total:>10} {downloads:>10}"
        )
    click.echo(f"  {'-'*69}")
    click.echo(f"  {'Order Total':<35} {dto.total:>21}")

    if dto.activity:
        click.echo()
        click.echo("Activity:")
        for note in dto.activity:
            click.echo(f"  {note.created_at}  {note.actor}: {note.message}")


@click.command("show")
@click.option("--id", "order_id", required=True, type=int, help="Order ID to display.")
def order_show(order_id: int) -> None:
    """Show details of an existing order."""
    handler = ShowOrderHandler(order_repo=order_repository())

    try:
        dto = handler.handle(order_id)
    except DomainException as exc:
        raise click.ClickException(str(exc))

    _display_order(dto)


@click.command("transition")
@click.option("--id", "order_id", required=True, type=int, help="Order ID to move.")
@click.option(
    "--status",
    required=True,
    type=click.Choice(_STATUS_CHOICES, case_sensitive=False),
    help="Target status.",
)
@click.option("--actor", required=True, help="Who is making the change.")
@click.option("--note", default=None, help="Free-text note (cancellation reason, etc.).")
def order_transition(order_id: int, status: str, actor: str, note: str | None) -> None:
    """Move an order to a new status."""
    handler = TransitionOrderHandler(order_repo=order_repository(), notifier=notifier())

    try:
        dto = handler.handle(order_id, OrderStatus(status.upper()), actor=actor, note=note)
    except DomainException as exc:
        raise click.ClickException(str(exc))

    click.echo(f"Order {dto.order_number} is now {dto.status}.")


@click.command("reopen")
@click.option("--id", "order_id", required=True, type=int, help="Order ID to reopen.")
@click.option("--actor", required=True, help="Who is reopening it.")
@click.option("--note", default=None, help="Why it is being reopened.")
def order_reopen(order_id: int, actor: str, note: str | None) -> None:
    """Reopen a cancelled or completed order."""
    handler = TransitionOrderHandler(order_repo=order_repository(), notifier=notifier())

    try:
        dto = handler.reopen(order_id, actor=actor, note=note)
    except DomainException as exc:
        raise click.ClickException(str(exc))

    click.echo(f"Order {dto.order_number} reopened as {dto.status}.")


@click.command("auto-complete")
def order_auto_complete() -> None:
    """Complete orders delivered more than 30 days ago (for the scheduler)."""
    handler = AutoCompleteOrdersHandler(order_repo=order_repository(), notifier=notifier())
    summary = handler.handle()

    click.echo(f"{summary.updated_count} order(s) completed.")
    for order_id in summary.order_ids:
        click.echo(f"  #{order_id}")


@click.command("issue-downloads")
@click.option("--id", "order_id", required=True, type=int, help="Order ID.")
def order_issue_downloads(order_id: int) -> None:
    """Issue download links for the digital items of an order."""
    handler = IssueDownloadTokensHandler(
        order_repo=order_repository(),
        file_repo=digital_file_repository(),
        token_repo=download_token_repository(),
        ttl_days=download_link_ttl_days(),
    )

    try:
        issued = handler.handle(order_id)
    except DomainException as exc:
        raise click.ClickException(str(exc))

    if not issued:
        click.echo("No new download links needed.")
        return

    base_url = get_settings().public_base_url.rstrip("/")
    for token in issued:
        click.echo(f"{token.file_name}: {base_url}{token.download_path}  (expires {token.expires_at})")
