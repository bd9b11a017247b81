"""Extractor for Bank of America credit card PDF statements.

Activity is grouped under section headings, and each line carries the
transaction date, the posting date, a reference number and the
card's last four digits:

    Payments and Other Credits
    01/20  01/20  PAYMENT - THANK YOU  5812  1234  -250.00
    Purchases and Adjustments
    01/14  01/15  WHOLEFDS SFO 10234 SAN FRANCISCO CA  2469  1234  86.12

The section heading decides the transaction type of the lines below it.
"""

import re
from decimal import Decimal
from enum import Enum

from ledgerlens.models import Account, AccountType, InstitutionCode, Statement, Transaction, TransactionType
from ledgerlens.parsers.common import (
    LineFields,
    LinePattern,
    StatementPeriod,
    apply_credit_lines,
    apply_first_apr,
    apply_last4,
    apply_payment_summary,
    apply_ytd_totals,
    build_transaction,
    closing_date_rule,
    detect_period,
    iter_lines,
    match_line,
    parse_full_date,
    range_rule,
    refresh_balance,
    resolve_date,
    section_after,
    set_if_unset,
    starts_with_date,
    to_rate,
    two_dates_description_amount,
)
from ledgerlens.parsers.normalize import collapse_whitespace, normalize_merchant
from ledgerlens.parsers.validation import ParseResult, log_parse_result, logger, parse_amount_safe

SOURCE = "Bank of America PDF"

_DATE = r"(\d{1,2}/\d{1,2}/\d{2,4})"
_AMOUNT = r"(-?\$?[\d,]+[.,]\d{2})"

TWO_DATES = LinePattern(
    "two_dates",
    re.compile(rf"^(\d{{2}}/\d{{2}})\s+(\d{{2}}/\d{{2}})\s+(.+?)\s+{_AMOUNT}\s*$"),
    two_dates_description_amount,
)
ONE_DATE = LinePattern("one_date", re.compile(rf"^(\d{{2}}/\d{{2}})\s+(.+?)\s+{_AMOUNT}\s*$"))

# Reference numbers, card digit groups, location suffixes and UPC codes
REFERENCE_NUMBER = re.compile(r"\s+\d{15,20}\s*$")
LEADING_DATE = re.compile(r"^\d{2}/\d{2}\s+")
TRAILING_CARD_DIGITS = re.compile(r"(\s+\d{4}){1,2}\s*$")
TRAILING_LOCATION = re.compile(r"(?:\s+[A-Z]{3,}){0,2}\s+[A-Z]{2}\s*$")
UPC_CODE = re.compile(r"\s+UPC#?\s*\d+", re.IGNORECASE)

HEADER_DESCRIPTIONS = ("description", "date", "trans date", "post date", "reference", "amount")
HEADER_PREFIXES = (
    "account number",
    "trans  post",
    "please see",
    "continued",
    "activity description",
    "reference number",
)

MIN_PAYMENT = re.compile(r"(?:total\s+)?minimum\s+payment\s+due[:\s]+\$?([\d,]+\.\d{2})", re.IGNORECASE)
PAYMENT_DUE_DATE = re.compile(rf"payment\s+due\s+date[:\s]+{_DATE}", re.IGNORECASE)
YTD_FEES = re.compile(r"total\s+fees\s+charged\s+in\s+(\d{4})[:\s]+\$?([\d,]+\.\d{2})", re.IGNORECASE)
YTD_INTEREST = re.compile(r"total\s+interest\s+charged\s+in\s+(\d{4})[:\s]+\$?([\d,]+\.\d{2})", re.IGNORECASE)

TOTAL_CREDIT_LINE = re.compile(r"total\s+credit\s+line[:\s]+\$?([\d,]+(?:\.\d{2})?)", re.IGNORECASE)
AVAILABLE_CREDIT = re.compile(r"total\s+credit\s+available[:\s]+\$?([\d,]+(?:\.\d{2})?)", re.IGNORECASE)
NEW_BALANCE = re.compile(r"new\s+balance\s+total\s+\$?([\d,]+\.\d{2})", re.IGNORECASE)
# "Account# 4400 6612 3456 7890"
ACCOUNT_NUMBER = re.compile(r"account\s*#?\s+(?:\d{4}\s+){2,3}(\d{4})(?:\s|$)", re.IGNORECASE)

PURCHASES_APR = re.compile(r"\bpurchases\b[^\n]{0,80}?(\d{1,2}\.\d{2})%", re.IGNORECASE)
PROMO_APR_RATE = re.compile(r"\bpromotional\b.*?(\d{1,2}\.\d{2})%", re.IGNORECASE)
PROMO_APR_DATE = re.compile(r"\bpromotional\b[^\n]*?(\d{1,2}/\d{1,2}/\d{4})", re.IGNORECASE)
ANY_FULL_DATE = re.compile(r"(\d{1,2}/\d{1,2}/\d{4})")
# Window after the promotional rate searched for its expiry date
PROMO_DATE_WINDOW = 300

# "Statement Closing Date ... Opening ... 12/16/2025  01/15/2026"
OPENING_CLOSING = re.compile(rf"opening.*closing.*?{_DATE}\s+{_DATE}", re.IGNORECASE)
CLOSING_DATE = re.compile(rf"closing\s+date[:\s]+{_DATE}", re.IGNORECASE)
PERIOD_RANGE = re.compile(rf"{_DATE}\s+(?:through|to|-|–)\s+{_DATE}")
PERIOD_RULES = [range_rule(OPENING_CLOSING), closing_date_rule(CLOSING_DATE), range_rule(PERIOD_RANGE)]

_PURCHASES = re.compile(r"\bpurchases\b")
_PAYMENTS_CREDITS = re.compile(r"\b(?:payments?|credits?)\b")
_FEES = re.compile(r"\bfees?\b")
_INTEREST_CHARGED = re.compile(r"\binterest\s+charged\b")
_ANY_MONTH_DAY = re.compile(r"\d{2}/\d{2}")


class Section(Enum):
    NONE = "none"
    PURCHASES = "purchases"
    CREDITS = "credits"
    FEES = "fees"
    INTEREST = "interest"


def _section_for(lower: str) -> Section | None:
    """Section switch for a heading line, or None when the line is not a heading."""
    if "total" not in lower:
        if _PURCHASES.search(lower):
            return Section.PURCHASES
        if _PAYMENTS_CREDITS.search(lower):
            return Section.CREDITS
        if _FEES.search(lower) and "no fee" not in lower and "annual fee" not in lower:
            return Section.FEES
    if _INTEREST_CHARGED.search(lower) and not _ANY_MONTH_DAY.search(lower):
        return Section.INTEREST
    return None


def clean_merchant(description: str) -> str:
    """Strip dates, UPC codes, reference numbers, card digits and the location, then run the shared cleanup."""
    name = LEADING_DATE.sub("", description.strip())
    name = UPC_CODE.sub("", name)
    name = TRAILING_CARD_DIGITS.sub("", name)
    name = REFERENCE_NUMBER.sub("", name)

    stripped = TRAILING_LOCATION.sub("", name).strip()
    if len(stripped) >= 2:
        name = stripped

    name = collapse_whitespace(name)
    return normalize_merchant(name or description.strip())


def _is_header(description: str) -> bool:
    lower = description.lower()
    return lower in HEADER_DESCRIPTIONS or lower.startswith(HEADER_PREFIXES)


class BankOfAmericaExtractor:
    """Bank of America credit card statements."""

    name = "bank_of_america"

    def supports(self, code: InstitutionCode) -> bool:
        return code == InstitutionCode.BANK_OF_AMERICA

    def extract_transactions(self, text: str, statement: Statement, account: Account | None) -> list[Transaction]:
        result = ParseResult(transactions=[])

        apply_payment_summary(text, statement, MIN_PAYMENT, PAYMENT_DUE_DATE, SOURCE)
        apply_ytd_totals(text, statement, YTD_FEES, YTD_INTEREST, SOURCE)
        refresh_balance(text, None, statement, NEW_BALANCE, SOURCE)

        period = detect_period(text, PERIOD_RULES, statement, SOURCE)

        section = Section.NONE
        in_section = False
        for line in iter_lines(text):
            result.total_rows_processed += 1

            if not starts_with_date(line):
                heading = _section_for(line.lower())
                if heading is not None:
                    section = heading
                    in_section = True
                result.rows_skipped += 1
                continue

            matched = match_line(line, [TWO_DATES])
            if matched is not None:
                in_section = True
            elif in_section:
                matched = match_line(line, [ONE_DATE])
            if matched is None:
                result.rows_skipped += 1
                continue
            _, fields = matched

            txn = self._build(fields, section, period, statement, account)
            if txn is None:
                result.rows_skipped += 1
                continue
            result.transactions.append(txn)

        log_parse_result(result, SOURCE)
        return result.transactions

    def _build(
        self,
        fields: LineFields,
        section: Section,
        period: StatementPeriod,
        statement: Statement,
        account: Account | None,
    ) -> Transaction | None:
        description = REFERENCE_NUMBER.sub("", fields.description)
        description = LEADING_DATE.sub("", description).strip()
        if not description or _is_header(description):
            return None

        amount, ok = parse_amount_safe(fields.amount)
        if not ok or amount == 0:
            return None

        txn_date = resolve_date(fields.date, period)
        if txn_date is None:
            return None
        post_date = resolve_date(fields.post_date, period) if fields.post_date else None

        return build_transaction(
            statement=statement,
            account=account,
            txn_date=txn_date,
            post_date=post_date,
            description=description,
            merchant=clean_merchant(description),
            amount=amount,
            txn_type=_transaction_type(section, description, amount),
        )

    def extract_account_metadata(self, text: str, account: Account | None) -> None:
        if account is None:
            return

        # Only credit card statements print a total credit line
        if TOTAL_CREDIT_LINE.search(text):
            account.type = AccountType.CREDIT_CARD

        apply_last4(text, account, [ACCOUNT_NUMBER], SOURCE)
        refresh_balance(text, account, None, NEW_BALANCE, SOURCE)
        apply_credit_lines(text, account, TOTAL_CREDIT_LINE, AVAILABLE_CREDIT, SOURCE)
        interest_section = section_after(text, "interest charge calculation")
        apply_first_apr(interest_section, account, PURCHASES_APR, SOURCE)
        _apply_promo_apr(interest_section, account)


def _apply_promo_apr(section: str, account: Account) -> None:
    """Promotional rate and its expiry, on the same line or shortly after the rate."""
    rate_match = PROMO_APR_RATE.search(section)
    if account.promo_apr is None and rate_match:
        try:
            set_if_unset(account, "promo_apr", to_rate(rate_match.group(1)), SOURCE)
        except ValueError:
            logger.debug(f"{SOURCE}: could not parse promo APR {rate_match.group(1)!r}")

    if account.promo_apr_end_date is not None:
        return
    date_match = PROMO_APR_DATE.search(section)
    if date_match is None and rate_match:
        window = section[rate_match.end() : rate_match.end() + PROMO_DATE_WINDOW]
        date_match = ANY_FULL_DATE.search(window)
    if date_match:
        set_if_unset(account, "promo_apr_end_date", parse_full_date(date_match.group(1)), SOURCE)


def _transaction_type(section: Section, description: str, amount: Decimal) -> TransactionType:
    if section == Section.FEES:
        return TransactionType.FEE
    if section == Section.INTEREST:
        return TransactionType.INTEREST
    lower = description.lower()
    if amount < 0 or "payment" in lower or "credit" in lower or section == Section.CREDITS:
        return TransactionType.CREDIT
    return TransactionType.DEBIT
