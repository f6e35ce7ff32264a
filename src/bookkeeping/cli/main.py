#!/usr/bin/env python3
"""
Main CLI Entry Point for the Bookkeeping Engine

Provides a command-line shell over the JSON entity store. All calculations
happen in the engine; commands only load state, call it, and save the result.
"""

import logging
import os
from pathlib import Path

import click

from ..core.config import Config, get_config, reload_config
from ..core.datastore import BookRepository


def get_repository(ctx: click.Context) -> BookRepository:
    """JSON-backed repository for the configured store directory."""
    config: Config = ctx.obj["config"]
    return BookRepository.in_directory(config.store_dir)


@click.group()
@click.option(
    "--config-env",
    type=click.Choice(["development", "test", "production"]),
    help="Override environment configuration",
)
@click.option("--data-dir", type=click.Path(file_okay=False, path_type=Path), help="Override data directory")
@click.option("--verbose", "-v", is_flag=True, help="Enable verbose output")
@click.option("--debug", is_flag=True, help="Enable debug logging")
@click.pass_context
def main(ctx: click.Context, config_env: str | None, data_dir: Path | None, verbose: bool, debug: bool) -> None:
    """
    Bookkeeping - Statement Import, Categorization and Financial Reports

    Imports parsed bank statements, categorizes transactions with mapping
    rules, reconciles balances and produces balance sheet, profit and loss,
    cash flow and category spending reports.
    """
    ctx.ensure_object(dict)

    overridden = False
    if config_env:
        os.environ["BOOKKEEPING_ENV"] = config_env
        overridden = True
    if data_dir:
        os.environ["BOOKKEEPING_DATA_DIR"] = str(data_dir)
        overridden = True
    if debug:
        os.environ["LOG_LEVEL"] = "DEBUG"
        overridden = True

    try:
        config = reload_config() if overridden else get_config()
    except ValueError as e:
        raise click.ClickException(str(e)) from e

    if debug:
        logging.getLogger().setLevel(logging.DEBUG)
        logging.getLogger("bookkeeping").setLevel(logging.DEBUG)

    ctx.obj["verbose"] = verbose
    ctx.obj["debug"] = debug
    ctx.obj["config"] = config

    if verbose:
        click.echo(f"Environment: {config.environment.value}")
        click.echo(f"Data directory: {config.data_dir}")

    if debug:
        click.echo("Debug logging enabled")


@main.command()
def version() -> None:
    """Show version information."""
    from bookkeeping import __version__

    click.echo(f"Bookkeeping Engine v{__version__}")


@main.command()
@click.pass_context
def config(ctx: click.Context) -> None:
    """Show current configuration."""
    config_obj: Config = ctx.obj["config"]

    click.echo("Current Configuration:")
    click.echo(f"  Environment: {config_obj.environment.value}")
    click.echo(f"  Data Directory: {config_obj.data_dir}")
    click.echo(f"  Store Directory: {config_obj.store_dir}")
    click.echo(f"  Base Currency: {config_obj.reporting.base_currency}")
    click.echo(f"  Display Decimals: {config_obj.reporting.display_decimals}")
    click.echo(f"  Fiscal Year Filtering: {config_obj.reporting.use_fiscal_year}")
    click.echo(f"  Debug Mode: {config_obj.debug}")
    click.echo(f"  Log Level: {config_obj.log_level}")


from .ledger import accounts, import_statement, reconcile, rules  # noqa: E402
from .report import report  # noqa: E402

main.add_command(import_statement)
main.add_command(accounts)
main.add_command(rules)
main.add_command(reconcile)
main.add_command(report)


if __name__ == "__main__":
    main()
