#!/usr/bin/env python3
"""Command-line interface for spendwise."""

import argparse
import json
import logging
import sys
from datetime import date
from decimal import Decimal
from pathlib import Path
from typing import Any

from spendwise.aggregator import (
    aggregate_by_account,
    aggregate_by_category,
    aggregate_by_month,
    aggregate_income,
    total_spent,
)
from spendwise.budget import apply_budget_rule, month_stats
from spendwise.config import (
    config_exists,
    create_default_config,
    get_access_token,
    get_budget_rule,
    get_milestone_thresholds,
    get_store_paths,
    get_truelayer_settings,
    get_user_id,
    load_config,
    save_json_config,
)
from spendwise.debts import STRATEGIES, prioritize_debts
from spendwise.exceptions import SpendwiseError
from spendwise.ledger import EmergencyFundLedger, RoundUpLedger
from spendwise.loader import (
    TransactionLoader,
    collect_files,
    write_category_csv,
    write_transactions_csv,
)
from spendwise.logging_setup import configure_logging
from spendwise.models import CategoryTotal, DebtAccount, Transaction
from spendwise.periods import PERIOD_NAMES, parse_period
from spendwise.roundups import FUNDS_BY_ID, INVESTMENT_FUNDS, accumulate_pool
from spendwise.store import FallbackStore, JsonFileStore
from spendwise.truelayer import BankSession, TrueLayerClient


def _money(value: Decimal) -> str:
    return f"£{value:,.2f}"


def _print_totals(title: str, totals: list[CategoryTotal]) -> None:
    print(title)
    if not totals:
        print("  (no transactions)")
        return
    for ct in totals:
        print(
            f"  {ct.category.value:<14} {_money(ct.total_amount):>12}  "
            f"{ct.percentage_of_total:>3}%  ({ct.transaction_count} transactions)"
        )


def _open_store(config: dict[str, Any] | None) -> FallbackStore:
    primary_path, cache_path = get_store_paths(config)
    return FallbackStore(JsonFileStore(primary_path), JsonFileStore(cache_path))


def _fetch_truelayer(config: dict[str, Any] | None, token_override: str | None) -> list[Transaction] | None:
    token = get_access_token(config, token_override)
    if not token:
        print("Error: access token required. Use --access-token or TRUELAYER_ACCESS_TOKEN",
              file=sys.stderr)
        return None

    settings = get_truelayer_settings(config)
    client = TrueLayerClient(BankSession(access_token=token), base_url=settings["base_url"] or None)
    result = client.fetch_all_transactions()
    for error in result.errors:
        print(f"Warning: {error}", file=sys.stderr)
    return result.transactions


def _load_debts(path: Path) -> list[DebtAccount]:
    with open(path) as f:
        data = json.load(f)
    return [DebtAccount.from_dict(d) for d in data]


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="spendwise",
        description="Spending breakdowns, round-up investing and savings tracking",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  spendwise ~/Downloads/statements/ --period this-month
  spendwise march.csv --income --by-account -o categories.csv
  spendwise march.csv --roundups --record-roundups
  spendwise --invest ftse100
  spendwise --setup-emergency-fund 15000 6
  spendwise --contribute 250 --emergency-fund
  spendwise --debts debts.json --strategy snowball --debt-budget 600
  spendwise --fetch-truelayer --access-token TOKEN --period last-month
        """,
    )

    parser.add_argument("inputs", nargs="*", help="Input files or directories")
    parser.add_argument(
        "--period",
        choices=PERIOD_NAMES,
        default="all",
        help="Only include transactions from this period (default: all)",
    )
    parser.add_argument(
        "--today",
        type=date.fromisoformat,
        help="Reference date for periods, YYYY-MM-DD (default: today)",
    )
    parser.add_argument("--income", action="store_true", help="Show income breakdown")
    parser.add_argument("--by-month", action="store_true", help="Show totals per month")
    parser.add_argument("--by-account", action="store_true", help="Show totals per account")
    parser.add_argument("--budget", action="store_true", help="Show this month's budget figures")
    parser.add_argument("-o", "--output", help="Write category totals to this CSV file")
    parser.add_argument(
        "--format",
        choices=["csv", "tsv"],
        default="csv",
        help="Output format (default: csv)",
    )
    parser.add_argument("--save-transactions", help="Write the loaded transactions to a CSV file")

    # Bank data
    parser.add_argument(
        "--fetch-truelayer",
        action="store_true",
        help="Fetch transactions from TrueLayer instead of reading files",
    )
    parser.add_argument("--access-token", help="TrueLayer access token")

    # Round-ups
    parser.add_argument("--roundups", action="store_true", help="Show the round-up pool")
    parser.add_argument(
        "--record-roundups",
        action="store_true",
        help="Save round-ups from the loaded transactions",
    )
    parser.add_argument(
        "--invest",
        metavar="FUND",
        choices=sorted(FUNDS_BY_ID),
        help="Invest all saved round-ups into a fund",
    )

    # Emergency fund
    parser.add_argument(
        "--setup-emergency-fund",
        nargs=2,
        metavar=("TARGET", "MONTHS"),
        help="Create an emergency fund",
    )
    parser.add_argument("--contribute", metavar="AMOUNT", help="Add money to the emergency fund")
    parser.add_argument("--emergency-fund", action="store_true", help="Show emergency fund status")

    # Debts
    parser.add_argument("--debts", type=Path, help="JSON file listing debts")
    parser.add_argument("--strategy", choices=STRATEGIES, default="avalanche")
    parser.add_argument("--debt-budget", help="Monthly amount available for debt payments")

    parser.add_argument("--config", type=Path, help="Path to config.json file")
    parser.add_argument(
        "--init-config",
        action="store_true",
        help="Write a default config file (to --config, or the XDG location)",
    )
    parser.add_argument("-v", "--verbose", action="store_true", help="Verbose output")
    return parser


def main(argv: list[str] | None = None) -> int:
    """Main CLI entry point."""
    parser = build_parser()
    args = parser.parse_args(argv)

    configure_logging(logging.INFO if args.verbose else None)

    if args.init_config:
        if args.config is None and config_exists():
            print("Config already exists, leaving it alone", file=sys.stderr)
            return 1
        path = save_json_config(create_default_config(), args.config)
        print(f"Wrote default config to {path}")
        return 0

    config: dict[str, Any] | None = load_config(args.config)
    user_id = get_user_id(config)
    today = args.today or date.today()

    try:
        return _run(args, parser, config, user_id, today)
    except SpendwiseError as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1


def _run(
    args: argparse.Namespace,
    parser: argparse.ArgumentParser,
    config: dict[str, Any] | None,
    user_id: str,
    today: date,
) -> int:
    ledger_actions = args.invest or args.setup_emergency_fund or args.contribute or args.emergency_fund
    if not args.inputs and not args.fetch_truelayer and not ledger_actions and not args.debts:
        parser.print_help()
        return 1

    transactions: list[Transaction] = []
    if args.fetch_truelayer:
        fetched = _fetch_truelayer(config, args.access_token)
        if fetched is None:
            return 1
        transactions = fetched
    elif args.inputs:
        files = collect_files(Path(p) for p in args.inputs)
        if not files:
            print("Error: No valid input files found", file=sys.stderr)
            return 1

        loader = TransactionLoader()
        transactions = loader.load_files(files)
        if args.verbose:
            for filepath, error in loader.errors:
                print(f"Warning: {filepath.name}: {error}", file=sys.stderr)
        print(f"Processed {len(files)} files", file=sys.stderr)
        if loader.errors:
            print(f"Errors: {len(loader.errors)} files failed", file=sys.stderr)

    if transactions or args.inputs or args.fetch_truelayer:
        print(f"Found {len(transactions)} transactions", file=sys.stderr)
        _report(args, config, transactions, today)

    if args.save_transactions:
        write_transactions_csv(transactions, Path(args.save_transactions))
        print(f"Wrote {len(transactions)} transactions to {args.save_transactions}", file=sys.stderr)

    if args.record_roundups or args.invest:
        roundup_ledger = RoundUpLedger(_open_store(config), user_id)
        if args.record_roundups:
            added = roundup_ledger.record(transactions)
            print(f"Recorded {added} new round-ups")
        if args.invest:
            result = roundup_ledger.invest(args.invest)
            print(f"Invested {_money(result.amount)} in {FUNDS_BY_ID[args.invest].name}")
            for fund in INVESTMENT_FUNDS:
                print(f"  {fund.name:<26} {_money(result.updated_allocation[fund.id]):>10}")

    if args.setup_emergency_fund or args.contribute or args.emergency_fund:
        fund_ledger = EmergencyFundLedger(
            _open_store(config), user_id, get_milestone_thresholds(config)
        )
        if args.setup_emergency_fund:
            target, months = args.setup_emergency_fund
            fund_ledger.setup(target, int(months), created_at=today)
            print(f"Emergency fund created with target {_money(Decimal(target))}")
        if args.contribute:
            state = fund_ledger.contribute(args.contribute, on=today)
            print(f"Emergency fund now at {_money(state.current_amount)}")
        if args.emergency_fund:
            _print_emergency_fund(fund_ledger, today)

    if args.debts:
        _print_debts(_load_debts(args.debts), args.strategy, args.debt_budget)

    if args.output:
        delimiter = "\t" if args.format == "tsv" else ","
        totals = aggregate_by_category(transactions, parse_period(args.period, today))
        write_category_csv(totals, Path(args.output), delimiter)
        print(f"Wrote {len(totals)} categories to {args.output}", file=sys.stderr)

    return 0


def _report(
    args: argparse.Namespace,
    config: dict[str, Any] | None,
    transactions: list[Transaction],
    today: date,
) -> None:
    period = parse_period(args.period, today)

    print(f"Spent {_money(total_spent(transactions, period))} ({args.period})")
    _print_totals("Spending by category:", aggregate_by_category(transactions, period))

    if args.income:
        _print_totals("Income:", aggregate_income(transactions, period))

    if args.by_month:
        print("By month:")
        for mt in aggregate_by_month(transactions):
            print(f"  {mt.label}  spent {_money(mt.spent):>12}  income {_money(mt.income):>12}")

    if args.by_account:
        print("By account:")
        for at in aggregate_by_account(transactions, period):
            print(f"  {at.account_id or '(unknown)':<20} spent {_money(at.spent):>12}  "
                  f"income {_money(at.income):>12}")

    if args.budget:
        stats = month_stats(transactions, today.year, today.month)
        save, spend = get_budget_rule(config)
        split = apply_budget_rule(stats.income, save, spend)
        print(f"This month: income {_money(stats.income)}, spent {_money(stats.spent)}, "
              f"saved {_money(stats.saved)}")
        print(f"Budget rule: save {_money(split.savings_target)}, "
              f"spend {_money(split.spending_budget)}")

    if args.roundups:
        pool = accumulate_pool(transactions)
        print(f"Round-ups available: {_money(pool.total_available)} "
              f"from {len(pool.entries)} purchases")


def _print_emergency_fund(ledger: EmergencyFundLedger, today: date) -> None:
    state = ledger.state()
    if state is None:
        print("No emergency fund set up. Use --setup-emergency-fund TARGET MONTHS.")
        return

    progress = ledger.progress()
    status = ledger.milestones()
    print(f"Emergency fund: {_money(state.current_amount)} of {_money(state.target_amount)} "
          f"({progress.percentage}%)")
    print(f"  Covers {progress.months_covered} of {state.target_months} months")
    print(f"  Added this month: {_money(ledger.contributed_in(today.year, today.month))}")
    if progress.goal_exceeded:
        print("  Goal exceeded!")
    elif status.next is not None:
        print(f"  Next milestone: {_money(status.next.amount)}")
    reached = ledger.milestone_dates()
    for milestone in status.achieved:
        when = reached.get(milestone)
        print(f"  Reached {_money(milestone.amount)}" + (f" on {when}" if when else ""))


def _print_debts(debts: list[DebtAccount], strategy: str, budget: str | None) -> None:
    ranked = prioritize_debts(debts, strategy, budget)
    print(f"Debt payoff order ({strategy}):")
    for item in ranked:
        print(f"  #{item.priority} {item.debt.name:<20} {_money(item.debt.balance):>12} "
              f"at {item.debt.apr}%  pay {_money(item.suggested_payment)}")


if __name__ == "__main__":
    sys.exit(main())
