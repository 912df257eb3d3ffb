from __future__ import annotations

import argparse
import json
import logging
import sys
from datetime import date
from typing import Sequence

from .config import ConfigError, load_config
from .exceptions import HydrationError, OperationInProgressError
from .reports import daily_product_sales
from .session import PosSession
from .ui_errors import to_user_facing_error


def _day(value: str) -> date:
    try:
        return date.fromisoformat(value)
    except ValueError as exc:
        raise argparse.ArgumentTypeError(f"expected YYYY-MM-DD, got {value!r}") from exc


def _session(args: argparse.Namespace) -> PosSession:
    return PosSession(config=load_config(args.env_file))


def cmd_hydrate(args: argparse.Namespace) -> int:
    session = _session(args)
    rc = 0
    try:
        session.hydrate()
    except HydrationError as exc:
        error = to_user_facing_error(exc)
        print(f"Warning: {error.message} ({error.details}); using local data.")
        print("Run 'kasir-sync clear-cache' followed by 'kasir-sync hydrate' if the cache looks stale.")
        rc = 2
    context = session.context
    print(
        f"products={len(context.products)} transactions={len(context.transactions)} "
        f"pending={len(context.pending_transactions())} stock_changes={len(context.stock_changes)}"
    )
    return rc


def cmd_sync(args: argparse.Namespace) -> int:
    session = _session(args)
    try:
        session.hydrate()
    except HydrationError as exc:
        print(f"Warning: {exc.message}; pushing from local data.")
    report = session.sync_pending_transactions()
    print(f"attempted={report.attempted} synced={len(report.synced)} failed={len(report.failed)}")
    for failure in report.failed:
        print(f"  {failure.local_id} [{failure.stage}] {failure.message}")
    return 0 if report.ok else 1


def cmd_report(args: argparse.Namespace) -> int:
    session = _session(args)
    try:
        session.hydrate()
    except HydrationError as exc:
        print(f"Warning: {exc.message}; report uses local data.", file=sys.stderr)
    day = args.date or date.today()
    rows = daily_product_sales(session.context.transactions, day)
    if args.json:
        print(json.dumps([row.__dict__ for row in rows], indent=2))
        return 0
    print(f"Products sold on {day.isoformat()}:")
    for row in rows:
        print(f"  {row.name:<24} qty={row.qty:<5} revenue={row.revenue}")
    return 0


def cmd_clear_cache(args: argparse.Namespace) -> int:
    session = _session(args)
    session.clear_local_cache()
    print("Local cache cleared.")
    return 0


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="kasir-sync", description="Kasir offline POS sync CLI")
    parser.add_argument("--env-file", default=None)
    parser.add_argument("--verbose", action="store_true")
    subparsers = parser.add_subparsers(dest="command", required=True)

    subparsers.add_parser("hydrate").set_defaults(func=cmd_hydrate)
    subparsers.add_parser("sync").set_defaults(func=cmd_sync)
    report_parser = subparsers.add_parser("report")
    report_parser.add_argument("--date", type=_day, help="YYYY-MM-DD, defaults to today")
    report_parser.add_argument("--json", action="store_true")
    report_parser.set_defaults(func=cmd_report)
    subparsers.add_parser("clear-cache").set_defaults(func=cmd_clear_cache)
    return parser


def main(argv: Sequence[str] | None = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)
    logging.basicConfig(
        level=logging.INFO if args.verbose else logging.WARNING,
        format="%(asctime)s %(levelname)s %(name)s %(message)s",
    )
    try:
        return args.func(args)
    except ConfigError as exc:
        print(f"Config error: {exc}", file=sys.stderr)
        return 2
    except OperationInProgressError as exc:
        print(str(exc), file=sys.stderr)
        return 3


if __name__ == "__main__":
    raise SystemExit(main())
