from __future__ import annotations

import click

from ramjam.core.version import RAMJAM_VERSION


@click.command(name="version")
def version() -> None:
    """Print the version number of ramjam."""
    click.echo(f"ramjam version {RAMJAM_VERSION}")
