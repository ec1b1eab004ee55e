"""CLI command for sending a single GET request."""

from __future__ import annotations

import click
import httpx

from ramjam.cli.commands.data import Data
from ramjam.workflows.executor import DEFAULT_USER_AGENT


@click.command(name="get", short_help="Send a GET request to the specified URL")
@click.argument("url")
@click.option(
    "--timeout",
    "-t",
    type=click.IntRange(min=1),
    default=30,
    show_default=True,
    help="Request timeout in seconds",
)
@click.pass_context
def get(ctx: click.Context, url: str, timeout: int) -> None:
    """Send a GET request to the specified URL and display the response.

    \b
    Example:
      ramjam get https://api.example.com/users
      ramjam get https://api.example.com/users --timeout 30
    """
    data = ctx.find_object(Data)
    verbose = data.config.verbose if data is not None else False
    user_agent = data.config.user_agent if data is not None else DEFAULT_USER_AGENT

    if verbose:
        click.echo(f"Sending GET request to: {url}")
        click.echo(f"Timeout: {timeout} seconds")

    try:
        with httpx.Client(timeout=timeout) as client:
            if verbose:
                click.echo("Sending request...")
            response = client.get(url, headers={"User-Agent": user_agent})
    except (httpx.RequestError, httpx.InvalidURL) as exc:
        click.secho(f"Error: request failed: {exc}", fg="red")
        raise SystemExit(1)

    click.echo(f"Status: {response.status_code} {response.reason_phrase}")
    click.echo(f"Status Code: {response.status_code}")

    if verbose:
        click.echo("\nResponse Headers:")
        for key, value in response.headers.multi_items():
            click.echo(f"  {key}: {value}")

    click.echo("\nResponse Body:")
    click.echo(response.text)
