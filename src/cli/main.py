"""CLI commands for the delta relay."""

import asyncio
import logging

import click
import uvicorn

from src.feed.client import FeedClient
from src.feed.errors import FeedError
from src.observability.logging import configure_logging
from src.relay.validator import skip_reason
from src.server.app import create_app
from src.server.runner import RelayServer
from src.settings.app import get_settings


@click.group()
@click.version_option(version="0.1.0")
def cli() -> None:
    """Hacker News delta relay CLI."""


@cli.command()
@click.option(
    "--host",
    type=str,
    default=None,
    help="Bind address (default: RELAY_HOST or 0.0.0.0).",
)
@click.option(
    "--port",
    type=int,
    default=None,
    help="Bind port (default: RELAY_PORT or 8080).",
)
@click.option(
    "--json-logs/--no-json-logs",
    default=True,
    help="Use JSON format for logs (default: true).",
)
@click.option(
    "--verbose",
    "-v",
    is_flag=True,
    help="Enable verbose logging.",
)
def serve(host: str | None, port: int | None, json_logs: bool, verbose: bool) -> None:
    """Serve the relay and stats streams over HTTP."""
    configure_logging(
        level=logging.DEBUG if verbose else logging.INFO,
        json_format=json_logs,
    )
    settings = get_settings()
    overrides: dict[str, object] = {}
    if host is not None:
        overrides["host"] = host
    if port is not None:
        overrides["port"] = port
    if overrides:
        settings = settings.model_copy(update=overrides)

    app = create_app(settings)
    config = uvicorn.Config(
        app, host=settings.host, port=settings.port, log_config=None
    )
    server = RelayServer(config, on_exit=app.state.session_manager.drain)
    server.run()


@cli.command()
@click.option(
    "--limit",
    type=int,
    default=10,
    show_default=True,
    help="Number of top items to inspect.",
)
def check(limit: int) -> None:
    """Fetch the top items once and report which would be delivered."""
    configure_logging(json_format=False, level=logging.WARNING)
    settings = get_settings()
    ok = asyncio.run(_check(FeedClient(settings.feed_config()), limit))
    if not ok:
        raise SystemExit(1)


async def _check(client: FeedClient, limit: int) -> bool:
    """Print eligibility of the first ``limit`` ranked items.

    Args:
        client: Feed client (closed on return).
        limit: Number of items to inspect.

    Returns:
        False if the ranked list could not be fetched.
    """
    try:
        try:
            identifiers = await client.fetch_top_identifiers()
        except FeedError as e:
            click.echo(f"Error fetching top story IDs: {e}", err=True)
            return False

        click.echo(f"Top list: {len(identifiers)} identifiers")
        for identifier in identifiers[:limit]:
            try:
                item = await client.fetch_item(identifier)
            except FeedError as e:
                click.echo(f"  {identifier}: error ({e.error_class.value}) {e}")
                continue
            reason = skip_reason(item)
            if reason is None:
                click.echo(f"  {identifier}: deliver  {item.title}")
            else:
                click.echo(f"  {identifier}: skip ({reason.value})")
        return True
    finally:
        await client.aclose()


if __name__ == "__main__":
    cli()
