#!/usr/bin/env python3
"""
Ledger CLI - Import, Accounts, Mapping Rules and Reconciliation

Commands that change the stored book. Each command loads the book, applies
one engine operation and saves the returned state.
"""

from datetime import date
from pathlib import Path

import click
import yaml

from ..categorization.rules import rule_from_definition
from ..core.currency import symbol_for
from ..core.dates import parse_iso_date
from ..core.decimal_value import format_currency, is_valid_decimal
from ..core.json_utils import read_json
from ..importing.statement import ParsedStatement
from .main import get_repository


def _parse_date_option(value: str | None, option: str) -> date:
    if not value:
        return date.today()
    try:
        return parse_iso_date(value)
    except ValueError:
        raise click.ClickException(f"Invalid {option} date: {value}. Use YYYY-MM-DD")


@click.command("import")
@click.argument("statement_file", type=click.Path(exists=True, dir_okay=False, path_type=Path))
@click.option("--context", "context_id", default="personal", show_default=True, help="Context owning new accounts")
@click.option("--apply-rules", is_flag=True, help="Run mapping rules on the imported transactions")
@click.pass_context
def import_statement(ctx: click.Context, statement_file: Path, context_id: str, apply_rules: bool) -> None:
    """
    Import a parsed bank statement (JSON).

    Example:
      bookkeeping import statements/checking-2025-01.json --context business
    """
    repository = get_repository(ctx)
    book = repository.load()

    try:
        statement = ParsedStatement.from_dict(read_json(statement_file))
        book, result = book.import_statement(statement, context_id)
    except (KeyError, TypeError, ValueError) as e:
        raise click.ClickException(f"Cannot import {statement_file}: {e}") from e

    if apply_rules:
        book, applied = book.apply_mapping_rules(context_id)
        click.echo(f"Mapping rules categorized {applied.count} transactions")

    repository.save(book)

    status = "new account" if result.is_new_account else "existing account"
    click.echo(f"Imported into {result.account.name} ({status})")
    click.echo(f"  Transactions: {result.total_transactions}")
    click.echo(f"  New: {len(result.new_transactions)}")
    click.echo(f"  Duplicates skipped: {result.duplicates_skipped}")
    for error in result.errors:
        click.echo(f"  Warning: {error}", err=True)


@click.command()
@click.option("--context", "context_id", help="Only show accounts of this context")
@click.pass_context
def accounts(ctx: click.Context, context_id: str | None) -> None:
    """List accounts with their balance snapshots."""
    book = get_repository(ctx).load()
    selected = book.accounts_for_context(context_id)

    if not selected:
        click.echo("No accounts found.")
        return

    click.echo("Accounts:")
    click.echo("=" * 60)
    for account in selected:
        symbol = symbol_for(account.currency, book.currencies)
        click.echo(f"\n{account.name} [{account.id}]")
        click.echo(f"  Context: {account.context_id}")
        click.echo(f"  Type: {account.type.value}")
        click.echo(f"  Balance: {format_currency(account.balance, symbol)} {account.currency}")
        click.echo(f"  As of: {account.balance_date.isoformat()}")


@click.group()
def rules() -> None:
    """Mapping rule commands."""
    pass


@rules.command("load")
@click.argument("rules_file", type=click.Path(exists=True, dir_okay=False, path_type=Path))
@click.option("--context", "context_id", default="personal", show_default=True, help="Context for the rules")
@click.pass_context
def load_rules(ctx: click.Context, rules_file: Path, context_id: str) -> None:
    """
    Load mapping rules from a YAML file.

    The file holds a list of rules (or a mapping with a "rules" list):

    \b
      rules:
        - pattern: SALARY
          category: income
          subcategory: Salary
          income_type: local
          priority: 10
    """
    with open(rules_file, encoding="utf-8") as f:
        data = yaml.safe_load(f) or []

    definitions = data.get("rules", []) if isinstance(data, dict) else data
    if not isinstance(definitions, list):
        raise click.ClickException(f"{rules_file} does not contain a list of rules")

    repository = get_repository(ctx)
    book = repository.load()
    try:
        for definition in definitions:
            book = book.add_mapping_rule(rule_from_definition(definition, context_id))
    except (AttributeError, TypeError, ValueError) as e:
        raise click.ClickException(f"Invalid rule in {rules_file}: {e}") from e

    repository.save(book)
    click.echo(f"Loaded {len(definitions)} mapping rules into context {context_id}")


@rules.command("list")
@click.option("--context", "context_id", help="Only show rules of this context")
@click.pass_context
def list_rules(ctx: click.Context, context_id: str | None) -> None:
    """List mapping rules, highest priority first."""
    book = get_repository(ctx).load()
    selected = [r for r in book.mapping_rules if context_id is None or r.context_id == context_id]
    selected.sort(key=lambda r: (-r.priority, r.created_at, r.id))

    if not selected:
        click.echo("No mapping rules found.")
        return

    for rule in selected:
        state = "" if rule.is_active else " (inactive)"
        target = f"{rule.category.value}/{rule.subcategory}" if rule.subcategory else rule.category.value
        click.echo(
            f"[{rule.priority:>3}] {rule.pattern_type.value} {rule.match_field.value} "
            f"{rule.pattern!r} -> {target}{state}"
        )


@rules.command("apply")
@click.option("--context", "context_id", help="Only apply rules of this context")
@click.pass_context
def apply_rules_command(ctx: click.Context, context_id: str | None) -> None:
    """Categorize uncategorized transactions with the mapping rules."""
    repository = get_repository(ctx)
    book, result = repository.load().apply_mapping_rules(context_id)
    repository.save(book)
    click.echo(f"Categorized {result.count} transactions")


@click.command()
@click.argument("account_id")
@click.option("--balance", "actual_balance", required=True, help="Balance reported by the bank")
@click.option("--date", "date_str", help="Reconciliation date (YYYY-MM-DD, default: today)")
@click.option("--notes", default="", help="Notes for the audit record")
@click.option("--no-adjustment", is_flag=True, help="Record the reconciliation without an adjustment")
@click.pass_context
def reconcile(
    ctx: click.Context,
    account_id: str,
    actual_balance: str,
    date_str: str | None,
    notes: str,
    no_adjustment: bool,
) -> None:
    """
    Reconcile an account against the bank balance.

    Example:
      bookkeeping reconcile 3f2a... --balance 1234.56 --date 2025-01-31
    """
    if not is_valid_decimal(actual_balance):
        raise click.ClickException(f"Invalid balance: {actual_balance}")
    reconciled_date = _parse_date_option(date_str, "--date")

    repository = get_repository(ctx)
    book, result = repository.load().reconcile(
        account_id, reconciled_date, actual_balance, notes=notes, create_adjustment=not no_adjustment
    )
    if not result.success:
        raise click.ClickException(result.message)

    repository.save(book)
    click.echo(result.message)

    record = result.reconciliation
    if record is not None:
        click.echo(f"  Expected: {record.expected_balance.to_fixed(2)}")
        click.echo(f"  Actual: {record.actual_balance.to_fixed(2)}")
        if record.superseded_transaction_ids:
            click.echo(f"  Superseded adjustments: {len(record.superseded_transaction_ids)}")
