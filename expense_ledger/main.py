"""
main.py - command line entrypoint

Run with:
    python -m expense_ledger.main [--file expenses.txt] [--verbose]
or the `expense-ledger` console script.
"""

import argparse
import logging
import sys

from rich.console import Console

from expense_ledger.cli import ExpenseShell
from expense_ledger.logs import get_logger, set_level
from expense_ledger.tracker import ExpenseTracker

logger = get_logger(__name__)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Personal expense tracker (text menu).")
    parser.add_argument(
        "--file",
        default=None,
        help="expense data file (default: $EXPENSE_LEDGER_FILE or ./expenses.txt)",
    )
    parser.add_argument("--verbose", action="store_true", help="show INFO log records")
    return parser


def main(argv=None) -> int:
    args = build_parser().parse_args(argv)
    if not args.verbose:
        set_level(logging.WARNING)
    console = Console()
    try:
        shell = ExpenseShell(ExpenseTracker(data_file=args.file), console=console)
        shell.run()
    except (KeyboardInterrupt, EOFError):
        console.print("\nSession ended.")
        return 0
    except Exception as exc:
        logger.exception("Unexpected error")
        console.print(f"\n[red]Fatal error:[/red] {exc}")
        console.print("The application will now exit.")
        return 1
    return 0


if __name__ == "__main__":
    sys.exit(main())
