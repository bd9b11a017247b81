"""Extractor for Capital One credit card PDF statements.

Capital One prints both the transaction and post dates as "Mon D":

    Jan 14   Jan 15   NETFLIX.COM   $15.49
    Jan 20   Jan 20   CAPITAL ONE MOBILE PYMT   - $250.00

Older layouts carry full dates ("Jan 14, 2026") or slash dates instead.
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

SOURCE = "Capital One PDF"

_MONTH_DATE = r"([A-Z][a-z]{2}\.?\s+\d{1,2},\s+\d{4})"
_SLASH_DATE = r"(\d{1,2}/\d{1,2}/\d{2,4})"
_AMOUNT = r"(-?\$?[\d,]+\.\d{2})"

# Tier order matters: the short two-date layout is the current one
TRANSACTION_PATTERNS = [
    LinePattern(
        "two_dates",
        re.compile(
            r"^([A-Z][a-z]{2}\s+\d{1,2})\s+([A-Z][a-z]{2}\s+\d{1,2})\s+(.+?)\s+(-\s*\$[\d,]+\.\d{2}|\$[\d,]+\.\d{2})\s*$"
        ),
        two_dates_description_amount,
    ),
    LinePattern("full_date", re.compile(rf"^{_MONTH_DATE}\s{{2,}}(.+?)\s{{2,}}{_AMOUNT}\s*$")),
    LinePattern("slash_date", re.compile(rf"^{_SLASH_DATE}\s{{2,}}(.+?)\s{{2,}}{_AMOUNT}\s*$")),
    LinePattern("loose", re.compile(rf"^{_MONTH_DATE}\s+(.+?)\s+{_AMOUNT}\s*$")),
]

SKIP_PREFIXES = ("trans date", "post date", "date", "description")
SKIP_FRAGMENTS = (
    "page ",
    "continued",
    "total fees",
    "total interest",
    "interest charge on",
    "year-to-date",
    "total transactions",
)

PERIOD_SLASH = re.compile(
    rf"(?:billing\s+period|statement\s+period)[:\s]+{_SLASH_DATE}\s*[-–]\s*{_SLASH_DATE}", re.IGNORECASE
)
PERIOD_MONTH = re.compile(
    rf"(?:billing\s+period|statement\s+period)[:\s]+{_MONTH_DATE}\s*[-–]\s*{_MONTH_DATE}", re.IGNORECASE
)
# "Dec 16, 2025 - Jan 15, 2026 | 31 days in Billing Cycle"
PERIOD_HEADER = re.compile(r"([A-Z][a-z]{2}\s+\d{1,2},\s+\d{4})\s*[-–]\s*([A-Z][a-z]{2}\s+\d{1,2},\s+\d{4})\s*\|")
PERIOD_RULES = [range_rule(PERIOD_SLASH), range_rule(PERIOD_MONTH), range_rule(PERIOD_HEADER)]

ACCOUNT_LAST4 = re.compile(r"(?:account|card)\s+ending\s+(?:in\s+)?(\d{4})", re.IGNORECASE)
NEW_BALANCE = re.compile(r"^new\s+balance[:\s]+\$?([\d,]+\.\d{2})", re.IGNORECASE | re.MULTILINE)
CREDIT_LIMIT = re.compile(r"credit\s+limit[:\s]+\$?([\d,]+(?:\.\d{2})?)", re.IGNORECASE)
AVAILABLE_CREDIT = re.compile(r"available\s+credit[:\s]+\$?([\d,]+(?:\.\d{2})?)", re.IGNORECASE)

MIN_PAYMENT = re.compile(r"minimum\s+payment\s+due[:\s]+\$?([\d,]+\.\d{2})", re.IGNORECASE)
PAYMENT_DUE_DATE = re.compile(
    r"payment\s+due(?:\s+date)?[:\s]+(\d{1,2}/\d{1,2}/\d{2,4}|[A-Z][a-z]{2}\.?\s+\d{1,2},\s+\d{4})", re.IGNORECASE
)

PURCHASE_APR = re.compile(r"(?:variable\s+)?purchase\s+apr[:\s]+(\d{1,2}\.\d{2})%", re.IGNORECASE)
PROMO_APR = re.compile(rf"(\d{{1,2}}\.\d{{2}})%\s+intro(?:ductory)?\s+apr[^\n]*?{_SLASH_DATE}", re.IGNORECASE)

# "Total Fees charged in 2026  $0.00"
YTD_FEES = re.compile(r"(?:total\s+)?fees\s+(?:charged\s+)?in\s+(\d{4})[:\s]+\$?([\d,]+\.\d{2})", re.IGNORECASE)
YTD_INTEREST = re.compile(
    r"(?:total\s+)?interest\s+(?:charged\s+)?in\s+(\d{4})[:\s]+\$?([\d,]+\.\d{2})", re.IGNORECASE
)

CREDIT_MARKERS = ("PAYMENT", "AUTOPAY", "CREDIT ADJUSTMENT", "REFUND")


def _should_skip(lower: str) -> bool:
    return lower.startswith(SKIP_PREFIXES) or any(fragment in lower for fragment in SKIP_FRAGMENTS)


class CapitalOneExtractor:
    """Capital One card statements."""

    name = "capital_one"

    def supports(self, code: InstitutionCode) -> bool:
        return code == InstitutionCode.CAPITAL_ONE

    def extract_transactions(self, text: str, statement: Statement, account: Account | None) -> list[Transaction]:
        result = ParseResult(transactions=[])

        apply_payment_summary(text, statement, MIN_PAYMENT, PAYMENT_DUE_DATE, SOURCE)
        apply_ytd_totals(text, statement, YTD_FEES, YTD_INTEREST, SOURCE)
        refresh_balance(text, None, statement, NEW_BALANCE, SOURCE)

        period = detect_period(text, PERIOD_RULES, statement, SOURCE)

        for line in iter_lines(text):
            result.total_rows_processed += 1

            if _should_skip(line.lower()):
                result.rows_skipped += 1
                continue

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
                    txn_type=_transaction_type(fields.description, amount),
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


def _transaction_type(description: str, amount: Decimal) -> TransactionType:
    upper = description.upper()
    if any(marker in upper for marker in CREDIT_MARKERS) or amount < 0:
        return TransactionType.CREDIT
    lower = description.lower()
    if "interest charge" in lower:
        return TransactionType.INTEREST
    if " fee" in f" {lower}":
        return TransactionType.FEE
    return TransactionType.DEBIT
