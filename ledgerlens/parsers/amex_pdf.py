"""Extractor for American Express PDF statements.

Amex's screen-reader friendly layout puts one charge per line:

    01/14/26  NETFLIX.COM  LOS GATOS CA  $15.49
    01/27/26*  MOBILE PAYMENT - THANK YOU  -$250.00

Payments carry an asterisk after the date. Section headings ("New Charges",
"Payments", "Interest Charged", "Fees") set the transaction type of the
lines that follow.
"""

import re
from enum import Enum

from ledgerlens.models import Account, InstitutionCode, Statement, Transaction, TransactionType
from ledgerlens.parsers.common import (
    LinePattern,
    apply_credit_lines,
    apply_first_apr,
    apply_last4,
    apply_payment_summary,
    apply_ytd_totals,
    build_transaction,
    is_column_header,
    is_summary_line,
    iter_lines,
    mark_credit_card,
    match_line,
    parse_full_date,
    refresh_balance,
    section_after,
)
from ledgerlens.parsers.normalize import normalize_merchant
from ledgerlens.parsers.validation import ParseResult, log_parse_result, parse_amount_safe

SOURCE = "Amex PDF"

TRANSACTION_PATTERNS = [
    LinePattern("dated", re.compile(r"^(\d{2}/\d{2}/\d{2})\*?\s+(.+?)\s+(-?\$[\d,]+\.\d{2})\s*$")),
]

MIN_PAYMENT = re.compile(r"minimum\s+payment\s+due\s+\$?([\d,]+\.\d{2})", re.IGNORECASE)
PAYMENT_DUE_DATE = re.compile(r"payment\s+due\s+date\s+(\d{1,2}/\d{1,2}/\d{2,4})", re.IGNORECASE)
# "Total Fees in 2026  $0.00"
YTD_FEES = re.compile(r"total\s+fees\s+in\s+(\d{4})\s+\$?([\d,]+\.\d{2})", re.IGNORECASE)
YTD_INTEREST = re.compile(r"total\s+interest\s+in\s+(\d{4})\s+\$?([\d,]+\.\d{2})", re.IGNORECASE)

# "Purchases  04/01/2023    28.49%    Variable"
PURCHASES_APR = re.compile(r"\bpurchases\b[^\n]{0,80}?(\d{1,2}\.\d{2})%", re.IGNORECASE)
CREDIT_LIMIT = re.compile(r"credit\s+limit\s+\$?([\d,]+\.\d{2})", re.IGNORECASE)
AVAILABLE_CREDIT = re.compile(r"available\s+credit\s+\$?([\d,]+\.\d{2})", re.IGNORECASE)
NEW_BALANCE = re.compile(r"^new\s+balance\s+\$([\d,]+\.\d{2})\s*$", re.IGNORECASE | re.MULTILINE)
# "Account Ending 9-04001" -> 4001
ACCOUNT_ENDING = re.compile(r"(?:account|card)\s+ending\s+[\d-]*(\d{4})\s*$", re.IGNORECASE | re.MULTILINE)

APPLE_PAY_PREFIX = re.compile(r"^AplPay\s+", re.IGNORECASE)
# "SAN FRANCISCO CA" or just "CA"
TRAILING_LOCATION = re.compile(r"(?:\s+[A-Z][A-Za-z]{2,}){0,2}\s+[A-Z]{2}\s*$")


class Section(Enum):
    NONE = "none"
    CHARGES = "charges"
    PAYMENTS = "payments"
    INTEREST = "interest"


def _section_for(lower: str) -> Section | None:
    """Section switch for a heading line, or None for any other line."""
    if lower.startswith(("new charges", "charges")):
        return Section.CHARGES
    if lower.startswith("payments"):
        return Section.PAYMENTS
    if lower.startswith(("interest charged", "fees")):
        return Section.INTEREST
    return None


def clean_merchant(description: str) -> str:
    """Drop the Apple Pay prefix, run the shared cleanup, then strip the city/state suffix."""
    name = APPLE_PAY_PREFIX.sub("", description.strip(), count=1).strip()
    name = normalize_merchant(name)

    stripped = TRAILING_LOCATION.sub("", name).strip()
    if len(stripped) >= 2:
        name = stripped

    return name or description.strip()


class AmexExtractor:
    """American Express statements."""

    name = "amex"

    def supports(self, code: InstitutionCode) -> bool:
        return code == InstitutionCode.AMEX

    def extract_transactions(self, text: str, statement: Statement, account: Account | None) -> list[Transaction]:
        result = ParseResult(transactions=[])

        apply_payment_summary(text, statement, MIN_PAYMENT, PAYMENT_DUE_DATE, SOURCE)
        apply_ytd_totals(text, statement, YTD_FEES, YTD_INTEREST, SOURCE)
        refresh_balance(text, None, statement, NEW_BALANCE, SOURCE)

        section = Section.NONE
        for line in iter_lines(text):
            result.total_rows_processed += 1
            lower = line.lower()

            heading = _section_for(lower)
            if heading is not None:
                section = heading
                result.rows_skipped += 1
                continue
            if lower.startswith(("about trailing interest", "important notices")):
                section = Section.NONE

            matched = match_line(line, TRANSACTION_PATTERNS)
            if matched is None:
                result.rows_skipped += 1
                continue
            _, fields = matched

            if is_column_header(fields.description) or is_summary_line(fields.description):
                result.rows_skipped += 1
                continue

            txn_date = parse_full_date(fields.date)
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
                    merchant=clean_merchant(fields.description),
                    amount=amount,
                    txn_type=_transaction_type(section, fields.description, amount),
                )
            )

        log_parse_result(result, SOURCE)
        return result.transactions

    def extract_account_metadata(self, text: str, account: Account | None) -> None:
        if account is None:
            return

        # Amex only issues credit cards
        mark_credit_card(account)
        apply_first_apr(section_after(text, "interest charge calculation"), account, PURCHASES_APR, SOURCE)
        apply_credit_lines(text, account, CREDIT_LIMIT, AVAILABLE_CREDIT, SOURCE)
        refresh_balance(text, account, None, NEW_BALANCE, SOURCE)
        apply_last4(text, account, [ACCOUNT_ENDING], SOURCE)


def _transaction_type(section: Section, description: str, amount) -> TransactionType:
    if section == Section.INTEREST:
        return TransactionType.INTEREST
    upper = description.upper()
    if section == Section.PAYMENTS or "PAYMENT RECEIVED" in upper or "AUTOPAY" in upper or amount < 0:
        return TransactionType.CREDIT
    return TransactionType.DEBIT
