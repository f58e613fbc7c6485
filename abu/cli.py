"""Command-line interface for abu, the AWS billing utility.

The CLI loads configuration, resolves the runtime context once (AWS adapter
and currency conversion rate), runs one report flow and prints the result as
an aligned table or JSON.

Usage
-----
    abu accounts
    abu change --limit 20 --lookback 6
    abu switch my-account
    python -m abu.cli --output json bills
"""

from __future__ import annotations

import argparse
import asyncio
import logging
import sys
from pathlib import Path
from typing import List, Optional

from botocore.exceptions import BotoCoreError, ClientError
from pydantic import ValidationError

from . import __version__
from .adapters import CostSource
from .adapters.aws import AwsCostAdapter
from .adapters.rates import fetch_conversion_rate
from .config.models import AppConfig, EnvSettings, load_app_config
from .context import RuntimeContext
from .domain.utils.units import ConversionRate
from .domain.utils.validation import AmountParseError
from .errors import AbuError
from .observability import setup_logging
from .reports import render
from .reports.accounts import accounts_report
from .reports.billing import bills_report, budgets_report
from .reports.catalog import list_accounts, switch_url
from .reports.change import change_report
from .utils.collector import BatchFailedError, format_failure_summary
from .utils.correlation import new_run_id

logger = logging.getLogger(__name__)

# Commands that print amounts and therefore need a conversion rate
_MONEY_COMMANDS = {"accounts", "bills", "budgets", "change"}


def _positive_int(value: str) -> int:
    number = int(value)
    if number < 1:
        raise argparse.ArgumentTypeError(f"must be >= 1, got {number}")
    return number


def build_parser() -> argparse.ArgumentParser:
    """Build the ``abu`` argument parser."""
    parser = argparse.ArgumentParser(
        prog="abu", description="abu is a utility for AWS billing"
    )
    parser.add_argument("--version", action="version", version=__version__)
    parser.add_argument("--config", type=Path, help="Path to JSON app config")
    parser.add_argument(
        "--log-level",
        dest="log_level",
        choices=[
            "CRITICAL",
            "ERROR",
            "WARNING",
            "INFO",
            "DEBUG",
        ],
        help="Logging level (overrides environment)",
    )
    parser.add_argument(
        "-v",
        "--verbose",
        action="count",
        default=0,
        help="Increase verbosity (once sets DEBUG)",
    )
    parser.add_argument(
        "--output",
        choices=["table", "json"],
        default="table",
        help="Output format (default table)",
    )

    commands = parser.add_subparsers(dest="command", required=True)
    commands.add_parser("accounts", help="Print information on accounts")
    commands.add_parser("budgets", help="Print information on budgets")
    commands.add_parser("list", help="List accounts")

    bills = commands.add_parser("bills", help="Print information on bills")
    bills.add_argument("--months", type=_positive_int, help="Months to list")

    change = commands.add_parser("change", help="Print information on changes in costs")
    change.add_argument("--limit", type=_positive_int, help="Rows to print")
    change.add_argument("--lookback", type=_positive_int, help="Months to compare")
    change.add_argument(
        "--concurrency", type=_positive_int, help="Cost queries in flight"
    )

    switch = commands.add_parser("switch", help="Print the URL to switch accounts")
    switch.add_argument("account", help="Account name or id")
    return parser


async def build_context(
    config: AppConfig,
    env: EnvSettings,
    *,
    source: Optional[CostSource] = None,
    rate: Optional[ConversionRate] = None,
    fetch_rate: bool = True,
) -> RuntimeContext:
    """Resolve the runtime context once for this invocation.

    The conversion rate is fetched live (bounded by ``rates.timeout_seconds``)
    unless given or not needed, in which case the fallback constant is used.
    """
    if rate is None:
        if fetch_rate:
            rate = await fetch_conversion_rate(config.rates)
        else:
            rate = ConversionRate.fallback(config.rates.fallback_rate)
    if source is None:
        source = AwsCostAdapter(config.aws)
    return RuntimeContext(
        config=config,
        source=source,
        rate=rate,
        switch_role_name=env.switch_role_name,
    )


async def run_command(args: argparse.Namespace, ctx: RuntimeContext) -> str:
    """Run the selected report and return its rendered output."""
    as_json = args.output == "json"

    if args.command == "accounts":
        records = await accounts_report(ctx)
        return render.render_json(records) if as_json else render.accounts_table(
            records, ctx.rate
        )
    if args.command == "change":
        records = await change_report(
            ctx,
            limit=args.limit,
            lookback=args.lookback,
            concurrency=args.concurrency,
        )
        return render.render_json(records) if as_json else render.change_table(
            records, ctx.rate
        )
    if args.command == "bills":
        bills = await bills_report(ctx, months=args.months)
        return render.render_json(bills) if as_json else render.bills_table(
            bills, ctx.rate
        )
    if args.command == "budgets":
        budgets = await budgets_report(ctx)
        return render.render_json(budgets) if as_json else render.budgets_table(
            budgets, ctx.rate
        )
    if args.command == "list":
        accounts = await list_accounts(ctx)
        return render.render_json(accounts) if as_json else render.accounts_list_table(
            accounts
        )
    if args.command == "switch":
        return await switch_url(ctx, args.account)
    raise AbuError(f"Unknown command: {args.command}")


async def _run(
    args: argparse.Namespace,
    config: AppConfig,
    env: EnvSettings,
    source: Optional[CostSource],
    rate: Optional[ConversionRate],
) -> str:
    ctx = await build_context(
        config,
        env,
        source=source,
        rate=rate,
        fetch_rate=args.command in _MONEY_COMMANDS,
    )
    return await run_command(args, ctx)


def main(
    argv: Optional[List[str]] = None,
    *,
    source: Optional[CostSource] = None,
    rate: Optional[ConversionRate] = None,
) -> int:
    """CLI entrypoint; returns the process exit status.

    ``source`` and ``rate`` replace the AWS adapter and the live rate fetch
    (tests and embedding callers).
    """
    parser = build_parser()
    args = parser.parse_args(argv)

    env = EnvSettings()
    # Determine effective log level
    effective_level = args.log_level or (
        "DEBUG" if args.verbose > 0 else env.log_level.upper()
    )
    setup_logging(effective_level)
    run_id = new_run_id()
    logger.debug("cli.start", extra={"run_id": run_id, "command": args.command})

    try:
        config = load_app_config(args.config or env.config)
    except (OSError, ValidationError) as exc:
        print(f"Invalid configuration: {exc}", file=sys.stderr)
        return 2

    try:
        output = asyncio.run(_run(args, config, env, source, rate))
    except BatchFailedError as exc:
        print(format_failure_summary(exc), file=sys.stderr)
        return 1
    except (AbuError, AmountParseError) as exc:
        logger.error("cli.failed", extra={"run_id": run_id, "error": str(exc)})
        print(f"Error: {exc}", file=sys.stderr)
        return 1
    except (KeyError, ValidationError) as exc:
        # AWS response missing a field or carrying one that fails model checks
        logger.error(
            "cli.unexpected_response", extra={"run_id": run_id, "error": str(exc)}
        )
        print(f"Error: unexpected response: {exc}", file=sys.stderr)
        return 1
    except (BotoCoreError, ClientError) as exc:
        logger.error("cli.aws_failed", extra={"run_id": run_id, "error": str(exc)})
        print(f"AWS error: {exc}", file=sys.stderr)
        return 1

    print(output)
    return 0


if __name__ == "__main__":
    sys.exit(main())
