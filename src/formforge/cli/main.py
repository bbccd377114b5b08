"""formforge CLI entry point."""

import logging

import click

from formforge.config import EngineSettings


@click.group()
@click.option(
    "--log-level",
    default=None,
    type=click.Choice(["DEBUG", "INFO", "WARNING", "ERROR"], case_sensitive=False),
    help="Logging level (default: FORMFORGE_LOG_LEVEL or WARNING).",
)
@click.pass_context
def cli(ctx: click.Context, log_level: str | None):
    """formforge — schema-driven form validation CLI."""
    try:
        settings = EngineSettings.from_env()
    except ValueError as e:
        raise click.UsageError(str(e)) from e
    logging.basicConfig(
        level=(log_level or settings.log_level).upper(),
        format="%(levelname)s %(name)s: %(message)s",
    )
    ctx.obj = settings


# Register subcommands
from formforge.cli.form_cmd import check, rules, validate  # noqa: E402

cli.add_command(check)
cli.add_command(validate)
cli.add_command(rules)
