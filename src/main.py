import argparse
import logging
import os
import sys

from csv_io import write_accounts
from errors import FatalError
from payments_engine import PaymentsEngine

__version__ = "0.2.0"

LOG_LEVELS = ["DEBUG", "INFO", "WARNING", "ERROR"]
LOG_LEVEL_ENV = "PAYMENTS_LOG_LEVEL"

logger = logging.getLogger(__name__)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="payments-engine",
        description="Replay a CSV of client transactions and print the final account balances.",
    )
    parser.add_argument("--version", action="version", version=f"%(prog)s {__version__}")
    parser.add_argument("input", help="CSV file with columns type, client, tx, amount")
    parser.add_argument(
        "--log-level",
        choices=LOG_LEVELS,
        type=str.upper,
        default=os.environ.get(LOG_LEVEL_ENV, "WARNING").upper(),
        help=f"Verbosity of the log written to stderr (default: ${LOG_LEVEL_ENV} or WARNING)",
    )
    return parser


def configure_logging(level: str) -> None:
    logging.basicConfig(
        level=logging.getLevelName(level),
        format="%(levelname)s: %(message)s",
        stream=sys.stderr,
    )


def main(argv=None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)
    # choices are not checked against the environment default
    if args.log_level not in LOG_LEVELS:
        parser.error(f"invalid {LOG_LEVEL_ENV} {args.log_level!r} (choose from {', '.join(LOG_LEVELS)})")
    configure_logging(args.log_level)

    engine = PaymentsEngine()
    try:
        accounts = engine.process_file(args.input)
        write_accounts(accounts.values(), sys.stdout)
    except FatalError as e:
        logger.error(f"Aborting: {e}")
        return 1

    return 0


if __name__ == "__main__":
    sys.exit(main())
