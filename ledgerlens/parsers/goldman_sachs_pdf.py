"""Extractor for Apple Card (Goldman Sachs) PDF statements.

    Jan 14, 2026  APPLE.COM/BILL  ONE APPLE PARK WAY  $9.99
    Jan 12, 2026  Payment                   ($500.00)

Credits are shown in parentheses.
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
    iter_lines,
    mark_credit_card,
    match_line,
    range_rule,
    refresh_balance,
    resolve_date,
)
from ledgerlens.parsers.normalize import normalize_merchant
from ledgerlens.parsers.validation import ParseResult, log_parse_result, parse_amount_safe

SOURCE = "Goldman Sachs PDF"

_MONTH_DATE = r"([A-Z][a-z]{2}\s+\d{1,2},\s+\d{4})"
_SLASH_DATE = r"(\d{1,2}/\d{1,2}/\d{2,4})"
_AMOUNT = r"(\(\$?[\d,]+\.\d{2}\)|[-\$]?[\d,]+\.\d{2})"

TRANSACTION_PATTERNS = [
    LinePattern("full_date", re.compile(rf"^{_MONTH_DATE}\s{{2,}}(.+?)\s{{2,}}{_AMOUNT}\s*$")),
    LinePattern("slash_date", re.compile(rf"^{_SLASH_DATE}\s{{2,}}(.+?)\s{{2,}}{_AMOUNT}\s*$")),
    LinePattern("loose", re.compile(rf"^{_MONTH_DATE}\s+(.+?)\s+{_AMOUNT}\s*$")),
]

SKIP_PREFIXES = ("date", "transaction", "description", "amount")
SKIP_FRAGMENTS = ("page ", "continued on")

PERIOD_MONTH = re.compile(
    rf"(?:billing\s+period|statement\s+period)[:\s]+{_MONTH_DATE}\s*[-–]\s*{_MONTH_DATE}", re.IGNORECASE
)
PERIOD_SLASH = re.compile(
    rf"(?:billing\s+period|statement\s+period)[:\s]+{_SLASH_DATE}\s*[-–]\s*{_SLASH_DATE}", re.IGNORECASE
)
PERIOD_RULES = [range_rule(PERIOD_MONTH), range_rule(PERIOD_SLASH)]

# "Card Number  •••• •••• •••• 4821"
CARD_NUMBER = re.compile(r"(?:card\s+number|account\s+number)[:\s]+(?:[·•*x\d]{4}[\s-]*){3}(\d{4})", re.IGNORECASE)
CARD_ENDING = re.compile(r"(?:account|card)\s+ending(?:\s+in)?\s+(\d{4})", re.IGNORECASE)
BALANCE = re.compile(r"^(?:total|new)\s+balance\s+\$?([\d,]+\.\d{2})\s*$", re.IGNORECASE | re.MULTILINE)
CREDIT_LIMIT = re.compile(r"credit\s+limit[:\s]+\$?([\d,]+(?:\.\d{2})?)", re.IGNORECASE)
AVAILABLE_CREDIT = re.compile(r"available\s+credit[:\s]+\$?([\d,]+(?:\.\d{2})?)", re.IGNORECASE)

MIN_PAYMENT = re.compile(r"minimum\s+(?:payment\s+)?due[:\s]+\$?([\d,]+\.\d{2})", re.IGNORECASE)
PAYMENT_DUE_DATE = re.compile(
    r"payment\s+due(?:\s+date)?[:\s]+(\d{1,2}/\d{1,2}/\d{2,4}|[A-Z][a-z]{2}\s+\d{1,2},\s+\d{4})", re.IGNORECASE
)

PURCHASE_APR = re.compile(r"(?:variable\s+|purchase\s+)?(?:purchase\s+)?apr[:\s]+(\d{1,2}\.\d{2})%", re.IGNORECASE)
PROMO_APR = re.compile(rf"(\d{{1,2}}\.\d{{2}})%\s+(?:intro(?:ductory)?\s+)?apr[^\n]*?{_SLASH_DATE}", re.IGNORECASE)

YTD_FEES = re.compile(
    r"(?:total\s+)?fees\s+(?:charged\s+)?(?:in\s+(\d{4}))?[:\s]+\$?([\d,]+\.\d{2})", re.IGNORECASE
)
YTD_INTEREST = re.compile(
    r"(?:total\s+)?interest\s+(?:charged\s+)?(?:in\s+(\d{4}))?[:\s]+\$?([\d,]+\.\d{2})", re.IGNORECASE
)

CREDIT_MARKERS = ("PAYMENT", "REFUND", "CREDIT", "RETURN")


class GoldmanSachsExtractor:
    """Apple Card statements issued by Goldman Sachs."""

    name = "goldman_sachs"

    def supports(self, code: InstitutionCode) -> bool:
        return code == InstitutionCode.GOLDMAN_SACHS

    def extract_transactions(self, text: str, statement: Statement, account: Account | None) -> list[Transaction]:
        result = ParseResult(transactions=[])

        apply_payment_summary(text, statement, MIN_PAYMENT, PAYMENT_DUE_DATE, SOURCE)
        apply_ytd_totals(text, statement, YTD_FEES, YTD_INTEREST, SOURCE)
        refresh_balance(text, None, statement, BALANCE, SOURCE)

        period = detect_period(text, PERIOD_RULES, statement, SOURCE)

        for line in iter_lines(text):
            result.total_rows_processed += 1
            lower = line.lower()

            if lower.startswith(SKIP_PREFIXES) or any(fragment in lower for fragment in SKIP_FRAGMENTS):
                result.rows_skipped += 1
                continue

            matched = match_line(line, TRANSACTION_PATTERNS)
            if matched is None:
                result.rows_skipped += 1
                continue
            _, fields = matched

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
                    description=fields.description,
                    merchant=normalize_merchant(fields.description),
                    amount=amount,
                    txn_type=_transaction_type(fields.description, lower, amount),
                )
            )

        log_parse_result(result, SOURCE)
        return result.transactions

    def extract_account_metadata(self, text: str, account: Account | None) -> None:
        if account is None:
            return

        mark_credit_card(account)
        apply_last4(text, account, [CARD_NUMBER, CARD_ENDING], SOURCE)
        refresh_balance(text, account, None, BALANCE, SOURCE)
        apply_credit_lines(text, account, CREDIT_LIMIT, AVAILABLE_CREDIT, SOURCE)
        apply_promo_apr(text, account, PROMO_APR, SOURCE)
        apply_first_apr(text, account, PURCHASE_APR, SOURCE)


def _transaction_type(description: str, line_lower: str, amount: Decimal) -> TransactionType:
    # parse_amount already turned "($500.00)" into a negative amount
    upper = description.upper()
    if amount < 0 or any(marker in upper for marker in CREDIT_MARKERS):
        return TransactionType.CREDIT
    if "interest" in line_lower:
        return TransactionType.INTEREST
    if " fee" in line_lower:
        return TransactionType.FEE
    return TransactionType.DEBIT
