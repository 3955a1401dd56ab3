import click

from storefront.infrastructure.bootstrap import init_database
from storefront.infrastructure.cli.order_commands import (
    order_auto_complete,
    order_issue_downloads,
    order_reopen,
    order_show,
    order_transition,
)
from storefront.infrastructure.cli.return_commands import (
    return_approve,
    return_create,
    return_set_status,
)
from storefront.infrastructure.config import get_settings
from storefront.infrastructure.logging import configure_logging


@click.group()
def cli() -> None:
    """Storefront — order fulfillment and digital delivery"""
    settings = get_settings()
    configure_logging(settings.log_level, json=settings.log_json)


@cli.group()
def db() -> None:
    """Manage the order store."""


@cli.group()
def order() -> None:
    """Manage orders."""


@cli.group("return")
def return_() -> None:
    """Manage return requests."""


@db.command("init")
def db_init() -> None:
    """Create the database tables."""
    init_database()
    click.echo("Database ready.")


@cli.command("serve")
@click.option("--host", default=None, help="Bind address.")
@click.option("--port", default=None, type=int, help="Bind port.")
def serve(host: str | None, port: int | None) -> None:
    """Run the HTTP API."""
    import uvicorn

    settings = get_settings()
    uvicorn.run(
        "storefront.infrastructure.web.app:app",
        host=host or settings.http_host,
        port=port or settings.http_port,
    )


# Register subcommands
order.add_command(order_auto_complete)
order.add_command(order_issue_downloads)
order.add_command(order_reopen)
order.add_command(order_show)
order.add_command(order_transition)
return_.add_command(return_approve)
return_.add_command(return_create)
return_.add_command(return_set_status)
