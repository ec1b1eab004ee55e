"""CLI command for executing workflow documents."""

from __future__ import annotations

import click

from ramjam.cli.commands.data import Data
from ramjam.config import RunnerConfig
from ramjam.workflows import RunFailedError, StepError, WorkflowError, WorkflowRunner


@click.command(name="run", short_help="Execute YAML-defined API workflows")
@click.argument("paths", nargs=-1, required=True, type=click.Path())
@click.option(
    "--timeout",
    "-t",
    type=click.FloatRange(min=0, min_open=True),
    help="Request timeout in seconds",
)
@click.option("--verbose", "-v", is_flag=True, help="Show detailed output")
@click.pass_context
def run(ctx: click.Context, paths: tuple[str, ...], timeout: float | None, verbose: bool) -> None:
    """Execute one or more YAML workflow files, or all YAML files in a directory.

    \b
    Examples:
      ramjam run test-get.yaml
      ramjam run ./tests/integration/
      ramjam run login.yaml signup.yaml profile.yaml
    """
    data = ctx.find_object(Data)
    config = data.config if data is not None else RunnerConfig()
    config.update(timeout=timeout, verbose=verbose or None)

    try:
        with WorkflowRunner(
            timeout=config.timeout,
            verbose=config.verbose,
            user_agent=config.user_agent,
            extensions=config.extensions,
        ) as runner:
            result = runner.run_paths(paths)
    except WorkflowError as exc:
        click.secho(f"Error: run failed: {exc}", fg="red")
        raise SystemExit(1)

    for line in result.lines:
        click.echo(line)

    try:
        result.raise_for_errors()
    except RunFailedError as exc:
        for error in exc.flatten():
            if isinstance(error, StepError):
                click.echo(f"Failed step: {error.step}")
                if config.verbose:
                    click.echo(f"Description: {error.description}")
                    click.echo(f"Error: {error.cause}")
            else:
                click.echo(f"Error: {error}")
        click.secho(f"Error: {exc}", fg="red")
        raise SystemExit(1)

    click.secho("All steps were run successfully", fg="green")
