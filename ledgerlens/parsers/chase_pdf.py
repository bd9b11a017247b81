"""Extractor for Chase credit card PDF statements.

Chase statements list activity as:

    Date of
    Transaction  Merchant Name or Transaction Description  $ Amount
    02/12     AUTOMATIC PAYMENT - THANK YOU -40.00
    01/15     AMAZON.COM*1A2B3C4D5  SEATTLE WA  23.45

Dates are MM/DD with the year taken from the statement period. Amounts have
no dollar sign; a leading minus marks payments and credits.
"""

import re
from datetime import timedelta
from decimal import Decimal

from ledgerlens.models import Account, InstitutionCode, Statement, Transaction, TransactionType
from ledgerlens.parsers.common import (
    LinePattern,
    apply_credit_lines,
    apply_last4,
    apply_last_apr_above,
    apply_payment_summary,
    apply_promo_apr,
    apply_ytd_totals,
    build_transaction,
    detect_period,
    is_column_header,
    iter_lines,
    mark_credit_card,
    match_line,
    range_rule,
    refresh_balance,
    resolve_date,
)
from ledgerlens.parsers.normalize import normalize_merchant
from ledgerlens.parsers.validation import ParseResult, log_parse_result, logger, parse_amount_safe

SOURCE = "Chase PDF"

TRANSACTION_PATTERNS = [
    # 2+ spaces between the columns
    LinePattern("spaced", re.compile(r"^(\d{2}/\d{2})\s{2,}(.+?)\s{2,}(-?[\d,]+\.\d{2})\s*$")),
    # Single space before the amount
    LinePattern("loose", re.compile(r"^(\d{2}/\d{2})\s+(.+?)\s+(-?[\d,]+\.\d{2})\s*$")),
]

# "Opening/Closing Date 01/16/26 - 02/15/26"
OPENING_CLOSING = re.compile(
    r"opening/closing\s+date\s+(\d{1,2}/\d{1,2}/\d{2,4})\s*[-–]\s*(\d{1,2}/\d{1,2}/\d{2,4})", re.IGNORECASE
)
PERIOD_RULES = [range_rule(OPENING_CLOSING)]

# Chase usually sets the due date 28 days after the closing date
DUE_DATE_OFFSET = timedelta(days=28)

# "Account Number:  XXXX XXXX XXXX 7844"
ACCOUNT_LAST4 = re.compile(r"account\s+number:\s+(?:X{4}\s+){3}(\d{4})", re.IGNORECASE)
# Whole line only; the page header also says "March 2026 New Balance"
NEW_BALANCE = re.compile(r"^new\s+balance\s+\$?([\d,]+\.\d{2})\s*$", re.IGNORECASE | re.MULTILINE)
CREDIT_LIMIT = re.compile(r"(?:credit\s+limit|credit\s+access\s+line)\s+\$?([\d,]+(?:\.\d{2})?)", re.IGNORECASE)
# "A`vailable Credit" shows up with a stray character from the text layer
AVAILABLE_CREDIT = re.compile(r"a\W?vailable\s+(?:credit|for\s+purchase)\s+\$?([\d,]+(?:\.\d{2})?)", re.IGNORECASE)

# "Purchases 27.74% (d)" regular row; promo rows add an expiry date
REGULAR_APR = re.compile(r"^purchases\s+(\d{1,2}\.\d{2})%", re.IGNORECASE | re.MULTILINE)
PROMO_APR_ROW = re.compile(
    r"^purchases\s+(\d{1,2}\.\d{2})%[^\n]*?(\d{2}/\d{2}/\d{2,4})", re.IGNORECASE | re.MULTILINE
)

MIN_PAYMENT = re.compile(r"minimum\s+payment\s+due.*?\$?([\d,]+\.\d{2})", re.IGNORECASE)
PAYMENT_DUE_DATE = re.compile(r"payment\s+due\s+date.*?(\d{1,2}/\d{1,2}/\d{2,4})", re.IGNORECASE)
YTD_FEES = re.compile(r"total\s+fees\s+charged\s+in\s+(\d{4})\s+\$?([\d,]+\.\d{2})", re.IGNORECASE)
YTD_INTEREST = re.compile(r"total\s+interest\s+charged\s+in\s+(\d{4})\s+\$?([\d,]+\.\d{2})", re.IGNORECASE)

SECTION_START_MARKERS = ("date of", "transaction merchant", "account activity", "transaction detail")
SECTION_END_PREFIXES = ("totals year", "total fees", "total interest", "your annual percentage")
# "2026 Totals Year-to-Date"
_YEAR_LINE = re.compile(r"^20\d{2}\b")


class ChaseExtractor:
    """Chase credit card statements."""

    name = "chase"

    def supports(self, code: InstitutionCode) -> bool:
        return code == InstitutionCode.CHASE

    def extract_transactions(self, text: str, statement: Statement, account: Account | None) -> list[Transaction]:
        result = ParseResult(transactions=[])

        apply_payment_summary(text, statement, MIN_PAYMENT, PAYMENT_DUE_DATE, SOURCE)
        apply_ytd_totals(text, statement, YTD_FEES, YTD_INTEREST, SOURCE)
        refresh_balance(text, None, statement, NEW_BALANCE, SOURCE)

        period = detect_period(text, PERIOD_RULES, statement, SOURCE)

        if statement.payment_due_date is None:
            statement.payment_due_date = period.end + DUE_DATE_OFFSET
            logger.info(f"{SOURCE}: inferred payment due date {statement.payment_due_date} from closing {period.end}")

        in_activity = False
        for line in iter_lines(text):
            result.total_rows_processed += 1
            lower = line.lower()

            if any(marker in lower for marker in SECTION_START_MARKERS):
                in_activity = True
                continue
            if _YEAR_LINE.match(lower) or lower.startswith(SECTION_END_PREFIXES):
                in_activity = False

            if not in_activity:
                result.rows_skipped += 1
                continue

            matched = match_line(line, TRANSACTION_PATTERNS)
            if matched is None:
                result.rows_skipped += 1
                continue
            _, fields = matched

            if is_column_header(fields.description):
                result.rows_skipped += 1
                continue

            txn_date = resolve_date(fields.date, period)
            amount, ok = parse_amount_safe(fields.amount)
            if txn_date is None or not ok:
                result.rows_skipped += 1
                result.warnings.append(f"Unparseable line: {line}")
                continue

            txn_type = _transaction_type(fields.description, lower, amount)
            result.transactions.append(
                build_transaction(
                    statement=statement,
                    account=account,
                    txn_date=txn_date,
                    description=fields.description,
                    merchant=normalize_merchant(fields.description),
                    amount=amount,
                    txn_type=txn_type,
                )
            )

        log_parse_result(result, SOURCE)
        return result.transactions

    def extract_account_metadata(self, text: str, account: Account | None) -> None:
        if account is None:
            return

        mark_credit_card(account)
        apply_last4(text, account, [ACCOUNT_LAST4], SOURCE)
        refresh_balance(text, account, None, NEW_BALANCE, SOURCE)
        apply_credit_lines(text, account, CREDIT_LIMIT, AVAILABLE_CREDIT, SOURCE)
        apply_promo_apr(text, account, PROMO_APR_ROW, SOURCE)
        apply_last_apr_above(text, account, REGULAR_APR, SOURCE)


def _transaction_type(description: str, line_lower: str, amount: Decimal) -> TransactionType:
    upper = description.upper()
    if "PAYMENT" in upper or "AUTOPAY" in upper or amount < 0:
        return TransactionType.CREDIT
    if "interest" in line_lower:
        return TransactionType.INTEREST
    if "fee" in line_lower:
        return TransactionType.FEE
    return TransactionType.DEBIT
