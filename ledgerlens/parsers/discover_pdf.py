"""Extractor for Discover credit card PDF statements.

    Trans.Date  Post Date  Description                    Amount
    01/15/26    01/16/26   AMAZON.COM                     $48.25
    01/12/26    01/14/26   PAYMENT RECEIVED - THANK YOU  -$500.00

Dates carry their own year.
"""

import re
from decimal import Decimal

from ledgerlens.models import Account, InstitutionCode, Statement, Transaction, TransactionType
from ledgerlens.parsers.common import (
    LinePattern,
    apply_credit_lines,
    apply_first_apr,
    apply_last4,
    apply_payment_summary,
    apply_promo_apr,
    apply_ytd_totals,
    build_transaction,
    detect_period,
    is_column_header,
    is_summary_line,
    iter_lines,
    mark_credit_card,
    match_line,
    range_rule,
    refresh_balance,
    resolve_date,
    two_dates_description_amount,
)
from ledgerlens.parsers.normalize import normalize_merchant
from ledgerlens.parsers.validation import ParseResult, log_parse_result, parse_amount_safe

SOURCE = "Discover PDF"

_DATE = r"(\d{1,2}/\d{1,2}/\d{2,4})"
_AMOUNT = r"(-?\$?[\d,]+\.\d{2})"

TRANSACTION_PATTERNS = [
    LinePattern(
        "two_dates",
        re.compile(rf"^(\d{{2}}/\d{{2}}/\d{{2,4}})\s+(\d{{2}}/\d{{2}}/\d{{2,4}})\s+(.+?)\s{{2,}}{_AMOUNT}\s*$"),
        two_dates_description_amount,
    ),
    LinePattern("one_date", re.compile(rf"^(\d{{2}}/\d{{2}}/\d{{2,4}})\s{{2,}}(.+?)\s{{2,}}{_AMOUNT}\s*$")),
    LinePattern("loose", re.compile(rf"^(\d{{2}}/\d{{2}}/\d{{2,4}})\s+(.+?)\s+{_AMOUNT}\s*$")),
]

# "Opening Date 01/16/2026   Closing Date 02/15/2026"
OPENING_CLOSING = re.compile(
    rf"(?:opening|open)\s+date[:\s]+{_DATE}[^\n]*(?:closing|close)\s+date[:\s]+{_DATE}", re.IGNORECASE
)
# "Statement Period  01/16/26 - 02/15/26"
PERIOD = re.compile(
    rf"(?:statement\s+period|billing\s+period|closing\s+date)[:\s]+{_DATE}\s*[-–]\s*{_DATE}", re.IGNORECASE
)
PERIOD_RULES = [range_rule(OPENING_CLOSING), range_rule(PERIOD)]

ACCOUNT_LAST4 = re.compile(r"(?:account|card)\s+ending\s+(?:in\s+)?(\d{4})", re.IGNORECASE)
NEW_BALANCE = re.compile(r"^new\s+balance\s+\$?([\d,]+\.\d{2})\s*$", re.IGNORECASE | re.MULTILINE)
CREDIT_LIMIT = re.compile(
    r"(?:credit\s+limit|total\s+credit\s+line|credit\s+line)[:\s]+\$?([\d,]+(?:\.\d{2})?)", re.IGNORECASE
)
AVAILABLE_CREDIT = re.compile(r"available\s+credit[:\s]+\$?([\d,]+(?:\.\d{2})?)", re.IGNORECASE)

MIN_PAYMENT = re.compile(r"minimum\s+payment\s+due[:\s]+\$?([\d,]+\.\d{2})", re.IGNORECASE)
PAYMENT_DUE_DATE = re.compile(rf"payment\s+due\s+date[:\s]+{_DATE}", re.IGNORECASE)

PURCHASE_APR = re.compile(r"purchase\s+apr[:\s]+(\d{1,2}\.\d{2})%", re.IGNORECASE)
# "0.00%  Intro APR  through  09/15/2026"
PROMO_APR = re.compile(rf"(\d{{1,2}}\.\d{{2}})%\s+(?:intro(?:ductory)?\s+)?apr[^\n]*?{_DATE}", re.IGNORECASE)

# "Fees Charged in 2026  $0.00"; the year is sometimes missing
YTD_FEES = re.compile(r"(?:total\s+)?fees\s+charged\s+(?:in\s+(\d{4}))?[:\s]+\$?([\d,]+\.\d{2})", re.IGNORECASE)
YTD_INTEREST = re.compile(
    r"(?:total\s+)?interest\s+charged\s+(?:in\s+(\d{4}))?[:\s]+\$?([\d,]+\.\d{2})", re.IGNORECASE
)

CREDIT_MARKERS = ("PAYMENT", "CREDIT ADJUSTMENT", "CASHBACK BONUS")


class DiscoverExtractor:
    """Discover card statements."""

    name = "discover"

    def supports(self, code: InstitutionCode) -> bool:
        return code == InstitutionCode.DISCOVER

    def extract_transactions(self, text: str, statement: Statement, account: Account | None) -> list[Transaction]:
        result = ParseResult(transactions=[])

        apply_payment_summary(text, statement, MIN_PAYMENT, PAYMENT_DUE_DATE, SOURCE)
        apply_ytd_totals(text, statement, YTD_FEES, YTD_INTEREST, SOURCE)
        refresh_balance(text, None, statement, NEW_BALANCE, SOURCE)

        period = detect_period(text, PERIOD_RULES, statement, SOURCE)

        for line in iter_lines(text):
            result.total_rows_processed += 1

            matched = match_line(line, TRANSACTION_PATTERNS)
            if matched is None:
                result.rows_skipped += 1
                continue
            _, fields = matched

            if is_column_header(fields.description) or is_summary_line(fields.description):
                result.rows_skipped += 1
                continue

            txn_date = resolve_date(fields.date, period)
            amount, ok = parse_amount_safe(fields.amount)
            if txn_date is None or not ok:
                result.rows_skipped += 1
                result.warnings.append(f"Unparseable line: {line}")
                continue

            result.transactions.append(
                build_transaction(
                    statement=statement,
                    account=account,
                    txn_date=txn_date,
                    post_date=resolve_date(fields.post_date, period) if fields.post_date else None,
                    description=fields.description,
                    merchant=normalize_merchant(fields.description),
                    amount=amount,
                    txn_type=_transaction_type(fields.description, line.lower(), amount),
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
        apply_promo_apr(text, account, PROMO_APR, SOURCE)
        apply_first_apr(text, account, PURCHASE_APR, SOURCE)


def _transaction_type(description: str, line_lower: str, amount: Decimal) -> TransactionType:
    upper = description.upper()
    if any(marker in upper for marker in CREDIT_MARKERS) or amount < 0:
        return TransactionType.CREDIT
    if "interest charge" in line_lower:
        return TransactionType.INTEREST
    if " fee" in line_lower:
        return TransactionType.FEE
    return TransactionType.DEBIT
