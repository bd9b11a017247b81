"""Generic regex-based transaction extractor for any PDF statement.

Used for statements from unrecognised institutions and as the fallback
whenever an institution extractor finds nothing.
"""

import re
from datetime import date, datetime

from ledgerlens.models import Account, InstitutionCode, Statement, Transaction, TransactionType
from ledgerlens.parsers.common import (
    StatementPeriod,
    build_transaction,
    iter_lines,
    parse_full_date,
    parse_month_day,
    resolve_month_day,
)
from ledgerlens.parsers.normalize import collapse_whitespace, normalize_merchant
from ledgerlens.parsers.validation import (
    ParseResult,
    log_parse_result,
    parse_amount_safe,
    validate_amount,
    validate_date,
)

SOURCE = "Generic PDF"

# Date, a 10-60 character description, then a currency amount; anywhere in the line
TRANSACTION_PATTERN = re.compile(
    r"(\d{1,2}/\d{1,2}(?:/\d{2,4})?|\w{3}\s+\d{1,2}(?:,?\s*\d{4})?)\s+"
    r"(.{10,60}?)\s+"
    r"(-?\$?\d{1,3}(?:,\d{3})*\.\d{2})"
)


def parse_date(value: str, statement: Statement) -> date | None:
    """
    Parse a transaction date.

    Full dates are parsed directly ("Jan 12 2026" is accepted without the
    comma). A month/day-only date is placed in the statement's known period,
    or in the current year when the period is not known yet.
    """
    value = collapse_whitespace(value)
    full = parse_full_date(value)
    if full is not None:
        return full
    try:
        return datetime.strptime(value, "%b %d %Y").date()
    except ValueError:
        pass

    month_day = parse_month_day(value)
    if month_day is None:
        return None
    if statement.start_date and statement.end_date:
        return resolve_month_day(*month_day, StatementPeriod(statement.start_date, statement.end_date))
    try:
        return date(date.today().year, *month_day)
    except ValueError:
        return None


class GenericExtractor:
    """Best-effort extraction with a single broad line pattern; no metadata."""

    name = "generic"

    def supports(self, code: InstitutionCode) -> bool:
        return code == InstitutionCode.GENERIC

    def extract_transactions(self, text: str, statement: Statement, account: Account | None) -> list[Transaction]:
        result = ParseResult(transactions=[])

        for line in iter_lines(text):
            result.total_rows_processed += 1

            match = TRANSACTION_PATTERN.search(line)
            if not match:
                result.rows_skipped += 1
                continue

            raw_date, description, raw_amount = (group.strip() for group in match.groups())
            txn_date = parse_date(raw_date, statement)
            amount, ok = parse_amount_safe(raw_amount)
            if not ok or not validate_date(txn_date) or not validate_amount(amount):
                result.rows_skipped += 1
                result.warnings.append(f"Could not parse line: {line}")
                continue

            txn_type = TransactionType.CREDIT if amount < 0 else TransactionType.DEBIT
            result.transactions.append(
                build_transaction(
                    statement=statement,
                    account=account,
                    txn_date=txn_date,
                    description=description,
                    merchant=normalize_merchant(description),
                    amount=amount,
                    txn_type=txn_type,
                )
            )

        log_parse_result(result, SOURCE)
        return result.transactions

    def extract_account_metadata(self, text: str, account: Account | None) -> None:
        return None
