"""CLI commands for return requests."""

from __future__ import annotations

import click

from storefront.application.approve_returns import ApproveReturnsHandler
from storefront.application.create_returns import CreateReturnsHandler
from storefront.application.update_return_status import UpdateReturnStatusHandler
from storefront.domain.exceptions import DomainException
from storefront.domain.model.returns import ReturnReason, ReturnStatus
from storefront.infrastructure.bootstrap import (
    notifier,
    order_repository,
    return_repository,
)


def _parse_ids(raw: str) -> list[int]:
    """Parse '11,12,13' into a list of IDs."""
    ids: list[int] = []
    for part in raw.split(","):
        part = part.strip()
        if not part:
            continue
        try:
            ids.append(int(part))
        except ValueError:
            raise click.BadParameter(f"Invalid ID '{part}'.")
    if not ids:
        raise click.BadParameter("Give at least one ID.")
    return ids


@click.command("create")
@click.option("--items", required=True, help="Order item IDs as '11,12'.")
@click.option(
    "--reason",
    required=True,
    type=click.Choice([r.value for r in ReturnReason], case_sensitive=False),
)
@click.option("--details", default=None, help="Optional free-text details.")
def return_create(items: str, reason: str, details: str | None) -> None:
    """Request a return for one or more items of the same order."""
    item_ids = _parse_ids(items)
    handler = CreateReturnsHandler(
        order_repo=order_repository(),
        return_repo=return_repository(),
        notifier=notifier(),
    )

    try:
        batch = handler.handle(item_ids, ReturnReason(reason.upper()), details)
    except DomainException as exc:
        raise click.ClickException(str(exc))

    click.echo(
        f"{batch.item_count} return(s) created for order {batch.order_number}: "
        + ", ".join(f"#{i}" for i in batch.return_ids)
    )


@click.command("set-status")
@click.option("--id", "return_id", required=True, type=int, help="Return ID.")
@click.option(
    "--status",
    required=True,
    type=click.Choice([s.value for s in ReturnStatus], case_sensitive=False),
)
def return_set_status(return_id: int, status: str) -> None:
    """Change the status of a return request."""
    handler = UpdateReturnStatusHandler(
        return_repo=return_repository(),
        order_repo=order_repository(),
        notifier=notifier(),
    )

    try:
        request = handler.handle(return_id, ReturnStatus(status.upper()))
    except DomainException as exc:
        raise click.ClickException(str(exc))

    click.echo(f"Return #{request.id} is now {request.status.value}.")


@click.command("approve")
@click.option("--ids", required=True, help="Return IDs as '3,4'.")
def return_approve(ids: str) -> None:
    """Approve pending return requests, notifying each order once."""
    handler = ApproveReturnsHandler(
        return_repo=return_repository(),
        order_repo=order_repository(),
        notifier=notifier(),
    )

    try:
        summary = handler.handle(_parse_ids(ids))
    except DomainException as exc:
        raise click.ClickException(str(exc))

    for approved in summary.processed_orders:
        click.echo(
            f"Order {approved.order_number}: approved "
            + ", ".join(f"#{i}" for i in approved.return_ids)
        )
    click.echo(
        f"{summary.total_returns} return(s) approved across {summary.total_orders} order(s)."
    )
