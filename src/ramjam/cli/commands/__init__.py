from __future__ import annotations

import sys

import click

from ramjam.cli.commands.data import Data
from ramjam.cli.commands.get import get
from ramjam.cli.commands.run import run
from ramjam.cli.commands.version import version
from ramjam.config import ConfigError, RunnerConfig
from ramjam.core.version import RAMJAM_VERSION

if sys.version_info < (3, 11):
    from tomli import TOMLDecodeError
else:
    from tomllib import TOMLDecodeError

CONTEXT_SETTINGS = {"help_option_names": ["-h", "--help"]}


@click.group(context_settings=CONTEXT_SETTINGS, invoke_without_command=True)
@click.option(
    "--config-file",
    "config_file",
    help="The path to `ramjam.toml` file to use for configuration",
    metavar="PATH",
    type=str,
)
@click.option("--verbose", "-v", is_flag=True, help="Enable verbose output")
@click.version_option(RAMJAM_VERSION, prog_name="ramjam")
@click.pass_context
def ramjam(ctx: click.Context, config_file: str | None, verbose: bool) -> None:
    """ramjam - CLI tool to test HTTP APIs.

    Sends HTTP requests, validates responses and runs multi-step API
    workflows described in YAML files.
    """
    try:
        if config_file is not None:
            config = RunnerConfig.from_path(config_file)
        else:
            config = RunnerConfig.discover()
    except FileNotFoundError:
        click.secho(f"❌  Failed to load configuration file from {config_file}", fg="red", bold=True)
        click.echo("\nThe configuration file does not exist")
        ctx.exit(1)
    except (TOMLDecodeError, ConfigError) as exc:
        click.secho(
            f"❌  Failed to load configuration file{f' from {config_file}' if config_file else ''}",
            fg="red",
            bold=True,
        )
        if isinstance(exc, TOMLDecodeError):
            detail = "The configuration file content is not valid TOML"
        else:
            detail = "The loaded configuration is incorrect"
        click.echo(f"\n{detail}\n\n{exc}")
        ctx.exit(1)
    config.update(verbose=verbose or None)
    ctx.obj = Data(config=config)
    if ctx.invoked_subcommand is None:
        click.echo(ctx.get_help())


ramjam.add_command(run)
ramjam.add_command(get)
ramjam.add_command(version)
