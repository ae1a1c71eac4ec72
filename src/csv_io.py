"""
CSV boundary of the engine.

Input rows are decoded into Transaction objects exactly once, here. Anything
that does not fit the schema raises MalformedRecord, which aborts the run;
business rules are left to the TransactionProcessor.
"""

import csv
import logging
from decimal import Decimal, InvalidOperation
from typing import Dict, Iterable, Iterator, Optional, TextIO

from errors import InputError, MalformedRecord
from models import ClientAccount, Transaction, TransactionType

logger = logging.getLogger(__name__)

REQUIRED_COLUMNS = ("type", "client", "tx")
OUTPUT_COLUMNS = ["client", "available", "held", "total", "locked"]

MAX_CLIENT_ID = 2**16 - 1
MAX_TRANSACTION_ID = 2**32 - 1

MAX_AMOUNT_INTEGER_DIGITS = 15
MAX_AMOUNT_FRACTIONAL_DIGITS = 8


def read_transactions(filepath: str) -> Iterator[Transaction]:
    """Stream transactions from a CSV file, one row at a time."""
    try:
        with open(filepath, "r", newline="", encoding="utf-8-sig") as f:
            yield from parse_transactions(f)
    except UnicodeDecodeError as e:
        raise InputError(f"Cannot decode {filepath}: {e}") from e
    except OSError as e:
        raise InputError(f"Cannot read {filepath}: {e}") from e


def parse_transactions(lines: Iterable[str]) -> Iterator[Transaction]:
    reader = csv.DictReader(lines)
    try:
        if reader.fieldnames is None:
            logger.info("Input is empty")
            return

        reader.fieldnames = [name.strip().lower() for name in reader.fieldnames]
        missing = [column for column in REQUIRED_COLUMNS if column not in reader.fieldnames]
        if missing:
            raise MalformedRecord(f"missing columns {', '.join(missing)}", reader.line_num)

        for row in reader:
            yield parse_row(row, reader.line_num)
    except csv.Error as e:
        raise MalformedRecord(str(e), reader.line_num) from e


def parse_row(row: Dict[Optional[str], Optional[str]], line_number: Optional[int] = None) -> Transaction:
    """Parse CSV row into Transaction."""
    if None in row:
        raise MalformedRecord(f"too many fields: {row[None]}", line_number)

    normalized = {k: (v or "").strip() for k, v in row.items()}

    type_str = normalized.get("type", "").lower()
    try:
        transaction_type = TransactionType(type_str)
    except ValueError:
        raise MalformedRecord(f"unknown transaction type {type_str!r}", line_number) from None

    client_id = _parse_int(normalized.get("client", ""), "client", MAX_CLIENT_ID, line_number)
    transaction_id = _parse_int(normalized.get("tx", ""), "tx", MAX_TRANSACTION_ID, line_number)
    amount = _parse_amount(normalized.get("amount", ""), line_number)

    if transaction_type.carries_amount and amount is None:
        raise MalformedRecord(f"{transaction_type.value} tx {transaction_id} has no amount", line_number)
    if not transaction_type.carries_amount and amount is not None:
        raise MalformedRecord(f"{transaction_type.value} tx {transaction_id} must not have an amount", line_number)

    return Transaction(
        transaction_type=transaction_type,
        client_id=client_id,
        transaction_id=transaction_id,
        amount=amount,
    )


def _parse_int(value: str, column: str, maximum: int, line_number: Optional[int]) -> int:
    if not (value.isascii() and value.isdigit()):
        raise MalformedRecord(f"{column} must be an unsigned integer, got {value!r}", line_number)
    number = int(value)
    if number > maximum:
        raise MalformedRecord(f"{column} {number} out of range (max {maximum})", line_number)
    return number


def _parse_amount(value: str, line_number: Optional[int]) -> Optional[Decimal]:
    if not value:
        return None
    try:
        amount = Decimal(value)
    except InvalidOperation:
        raise MalformedRecord(f"amount must be a decimal number, got {value!r}", line_number) from None
    if not amount.is_finite():
        raise MalformedRecord(f"amount must be finite, got {value!r}", line_number)

    # Balances are summed in the default 28-digit context; bounded amounts add up exactly.
    if amount.adjusted() >= MAX_AMOUNT_INTEGER_DIGITS:
        raise MalformedRecord(
            f"amount {value!r} out of range (max {MAX_AMOUNT_INTEGER_DIGITS} integer digits)", line_number
        )
    sign, digits, exponent = amount.as_tuple()
    while exponent < 0 and len(digits) > 1 and digits[-1] == 0:
        digits = digits[:-1]
        exponent += 1
    if exponent < -MAX_AMOUNT_FRACTIONAL_DIGITS:
        if any(digits):
            raise MalformedRecord(
                f"amount {value!r} has more than {MAX_AMOUNT_FRACTIONAL_DIGITS} decimal places", line_number
            )
        return Decimal(0)
    if amount.as_tuple().exponent < -MAX_AMOUNT_FRACTIONAL_DIGITS:
        amount = Decimal((sign, digits, exponent))
    return amount


def format_decimal(value: Decimal) -> str:
    """Format decimal in plain notation, removing trailing zeros."""
    normalized = value.normalize()
    return f"{normalized:f}"


def write_accounts(accounts: Iterable[ClientAccount], stream: TextIO) -> None:
    """Write one CSV row per account, ordered by client ID."""
    writer = csv.writer(stream, lineterminator="\n")
    try:
        writer.writerow(OUTPUT_COLUMNS)
        for account in sorted(accounts, key=lambda a: a.client_id):
            writer.writerow([
                account.client_id,
                format_decimal(account.available),
                format_decimal(account.held),
                format_decimal(account.total),
                str(account.locked).lower(),
            ])
        stream.flush()
    except OSError as e:
        raise InputError(f"Cannot write report: {e}") from e
