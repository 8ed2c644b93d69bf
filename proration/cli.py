"""
proration/cli.py
----------------
Command-line front end.

    proration allocate request.json [--details] [--no-trace] [--json DIR] [--csv DIR]
    proration fixtures [DIR] [--case ID ...]

Exit codes: 0 success, 1 fixture failures, 2 invalid input or missing file.
"""

from __future__ import annotations

import argparse
import json
import logging
import sys
from pathlib import Path
from typing import List, Optional

from proration.config import DEFAULT_FIXTURE_DIR
from proration.engine import AllocationEngine
from proration.errors import FixtureError, InvalidInputError
from proration.explanation import AllocationExplanationEngine
from proration.export import export_csv, export_json, format_for_export
from proration.fixtures import run_suite
from proration.formatting import format_currency
from proration.models import AllocationRequest

logger = logging.getLogger(__name__)

EXIT_OK = 0
EXIT_FIXTURE_FAILURE = 1
EXIT_INVALID = 2


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="proration",
        description="Capped pro-rata allocation of a fixed capacity.",
    )
    parser.add_argument("-v", "--verbose", action="store_true", help="debug logging")
    sub = parser.add_subparsers(dest="command", required=True)

    alloc = sub.add_parser("allocate", help="allocate one request file")
    alloc.add_argument("input", type=Path, help="request JSON in fixture format")
    alloc.add_argument("--details", action="store_true", help="print pass-by-pass details")
    alloc.add_argument("--no-trace", action="store_true", help="skip trace recording")
    alloc.add_argument("--json", type=Path, metavar="DIR", help="export results as JSON")
    alloc.add_argument("--csv", type=Path, metavar="DIR", help="export results as CSV")

    fx = sub.add_parser("fixtures", help="run a fixture directory")
    fx.add_argument("directory", type=Path, nargs="?", default=DEFAULT_FIXTURE_DIR)
    fx.add_argument("--case", action="append", dest="cases", metavar="ID",
                    help="run only this case (repeatable)")
    return parser


def _cmd_allocate(args: argparse.Namespace) -> int:
    payload = json.loads(args.input.read_text(encoding="utf-8"))
    request = AllocationRequest.from_dict(payload)
    result = AllocationEngine.allocate(request, record_trace=not args.no_trace)

    for name, amount in result.allocations.items():
        print(f"{name}: {format_currency(amount)}")

    if result.trace is not None:
        print(result.trace.summary)
    if args.details:
        sections = AllocationExplanationEngine.explain(request, result)
        print()
        print(sections["allocation_table"])
        print()
        print(sections["calculation_details"])

    if args.json:
        print(f"JSON written to {export_json(format_for_export(request, result.allocations), args.json)}")
    if args.csv:
        print(f"CSV written to {export_csv(request, result.allocations, args.csv)}")
    return EXIT_OK


def _cmd_fixtures(args: argparse.Namespace) -> int:
    report = run_suite(args.directory, args.cases)
    for row in report.itertuples(index=False):
        status = "PASS" if row.passed else "FAIL"
        print(f"{status}  {row.case:<40} {row.differences}")

    passed = int(report["passed"].sum())
    print(f"\nTotal: {len(report)}  Passed: {passed}  Failed: {len(report) - passed}")
    return EXIT_OK if passed == len(report) else EXIT_FIXTURE_FAILURE


def main(argv: Optional[List[str]] = None) -> int:
    args = build_parser().parse_args(argv)
    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    try:
        if args.command == "allocate":
            return _cmd_allocate(args)
        return _cmd_fixtures(args)
    except (InvalidInputError, FixtureError, FileNotFoundError, json.JSONDecodeError) as exc:
        print(f"error: {exc}", file=sys.stderr)
        return EXIT_INVALID


if __name__ == "__main__":
    sys.exit(main())
