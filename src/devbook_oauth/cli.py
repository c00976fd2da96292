"""
Command-line sign-in for the Devbook GitHub integration.

Runs one loopback OAuth flow from a terminal and prints the access token.
Storing the token is left to the caller.
"""

import logging
import queue
import sys
import webbrowser
from dataclasses import replace
from typing import Optional

import click

from .config import OAuthConfig
from .coordinator import OAuthCoordinator
from .events import FlowSucceeded
from .exceptions import ConfigurationError, PortUnavailableError
from .models import AuthorizationRequest
from .nonce_store import NonceStore

logger = logging.getLogger(__name__)


def _load_config(port: Optional[int]) -> OAuthConfig:
    config = OAuthConfig.from_env()
    if port is not None:
        config = replace(config, callback_port=port)
    return config


@click.group()
@click.option("--verbose", "-v", is_flag=True, help="Verbose output")
def cli(verbose: bool) -> None:
    """Devbook GitHub sign-in."""
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.INFO,
        format="%(asctime)s - %(levelname)s - %(message)s",
    )


@cli.command()
@click.option("--no-browser", is_flag=True, help="Don't open the browser (display URL only)")
@click.option("--timeout", default=300, show_default=True, help="Seconds to wait for sign-in")
@click.option("--port", type=int, default=None, help="Callback port (overrides DEVBOOK_OAUTH_PORT)")
def login(no_browser: bool, timeout: int, port: Optional[int]) -> None:
    """Sign in with GitHub and print the access token."""
    try:
        config = _load_config(port)
    except ConfigurationError as e:
        click.echo(f"Configuration error: {e}", err=True)
        sys.exit(1)

    outcomes: "queue.Queue" = queue.Queue()
    open_url = (lambda url: False) if no_browser else webbrowser.open
    coordinator = OAuthCoordinator(config, open_url=open_url)
    coordinator.subscribe(outcomes.put)

    with coordinator:
        try:
            flow = coordinator.start_flow()
        except PortUnavailableError as e:
            click.echo(f"Cannot start sign-in: {e}", err=True)
            sys.exit(1)

        click.echo("Sign in with GitHub by visiting:")
        click.echo(f"\n  {flow.authorization_url}\n")
        click.echo("Waiting for authorization...")

        try:
            event = outcomes.get(timeout=timeout)
        except queue.Empty:
            coordinator.cancel_flow(flow)
            click.echo(f"No callback received within {timeout} seconds.", err=True)
            sys.exit(1)

    if isinstance(event, FlowSucceeded):
        click.echo("Authorization successful!", err=True)
        click.echo(event.result.access_token)
        return

    click.echo(f"Authorization failed ({event.error_kind}): {event.message}", err=True)
    sys.exit(1)


@cli.command("authorize-url")
def authorize_url() -> None:
    """Print an authorization URL without starting the callback listener."""
    try:
        config = OAuthConfig.from_env()
    except ConfigurationError as e:
        click.echo(f"Configuration error: {e}", err=True)
        sys.exit(1)

    request = AuthorizationRequest.for_config(config, NonceStore().issue())
    click.echo(request.to_url())


def main() -> None:
    cli()


if __name__ == "__main__":
    main()
