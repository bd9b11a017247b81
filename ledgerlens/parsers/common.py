"""Building blocks shared by the statement extractors.

Every extractor implements the ``StatementExtractor`` protocol directly and
composes the helpers below: ordered line-pattern cascades, statement period
detection, month/day date resolution, transaction construction and the
best-effort metadata setters.
"""

import re
from collections.abc import Callable, Iterator
from dataclasses import dataclass
from datetime import date, datetime, timedelta
from decimal import Decimal, InvalidOperation
from typing import Protocol

from ledgerlens.config import settings
from ledgerlens.models import Account, AccountType, InstitutionCode, Statement, Transaction, TransactionType
from ledgerlens.parsers.normalize import categorize
from ledgerlens.parsers.validation import logger, parse_amount, truncate_description

CENTS = Decimal("0.01")

# Formats tried for dates that carry their own year
FULL_DATE_FORMATS = [
    "%m/%d/%Y",
    "%m/%d/%y",
    "%b %d, %Y",
    "%b. %d, %Y",
    "%B %d, %Y",
    "%d %b %Y",
    "%Y-%m-%d",
]

_SLASH_DATE = re.compile(r"(\d{1,2})/(\d{1,2})/(\d{2}|\d{4})")
_SLASH_MONTH_DAY = re.compile(r"(\d{1,2})/(\d{1,2})")
_NAMED_MONTH_DAY = re.compile(r"([A-Za-z]{3})\.?\s+(\d{1,2})")
_LEADING_DATE = re.compile(r"^\d{1,2}/\d{1,2}")


class StatementExtractor(Protocol):
    """Capability implemented by every institution extractor."""

    name: str

    def supports(self, code: InstitutionCode) -> bool: ...

    def extract_transactions(
        self, text: str, statement: Statement, account: Account | None
    ) -> list[Transaction]: ...

    def extract_account_metadata(self, text: str, account: Account | None) -> None: ...


# ---------------------------------------------------------------------------
# Line cascades
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class LineFields:
    """Raw fields captured from one transaction line."""

    date: str
    description: str
    amount: str
    post_date: str | None = None


def date_description_amount(match: re.Match[str]) -> LineFields:
    return LineFields(date=match.group(1), description=match.group(2).strip(), amount=match.group(3))


def two_dates_description_amount(match: re.Match[str]) -> LineFields:
    return LineFields(
        date=match.group(1),
        post_date=match.group(2),
        description=match.group(3).strip(),
        amount=match.group(4),
    )


@dataclass(frozen=True)
class LinePattern:
    """One tier of an extractor's line grammar."""

    name: str
    regex: re.Pattern[str]
    fields: Callable[[re.Match[str]], LineFields] = date_description_amount


def match_line(line: str, cascade: list[LinePattern]) -> tuple[LinePattern, LineFields] | None:
    """
    Run a line through an ordered cascade; the first tier matching the whole line wins.

    Returns:
        The winning tier and its captured fields, or None when no tier matches
    """
    for tier in cascade:
        match = tier.regex.fullmatch(line)
        if match:
            return tier, tier.fields(match)
    return None


def iter_lines(text: str) -> Iterator[str]:
    """Yield stripped, non-blank lines."""
    for raw in text.split("\n"):
        line = raw.strip()
        if line:
            yield line


def starts_with_date(line: str) -> bool:
    """A line opening with a date is a transaction candidate, never a section header."""
    return bool(_LEADING_DATE.match(line))


def is_column_header(description: str) -> bool:
    return description.lower() in ("description", "amount")


def is_summary_line(description: str) -> bool:
    lower = description.lower()
    return lower.startswith("total ") or lower.startswith("new balance")


# ---------------------------------------------------------------------------
# Dates
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class StatementPeriod:
    """Billing cycle used to place month/day-only dates in a year."""

    start: date
    end: date


def parse_full_date(value: str | None) -> date | None:
    """
    Parse a date that carries its own year.

    Accepts M/D/YY, MM/DD/YYYY, "Jan 5, 2026", "Jan. 5, 2026",
    "January 5, 2026", "05 Jan 2026" and ISO dates. Two-digit years
    land in the 2000s.
    """
    if not value:
        return None
    value = value.strip()

    slash = _SLASH_DATE.fullmatch(value)
    if slash:
        month, day, year = (int(part) for part in slash.groups())
        if year < 100:
            year += 2000
        try:
            return date(year, month, day)
        except ValueError:
            return None

    for fmt in FULL_DATE_FORMATS:
        try:
            return datetime.strptime(value, fmt).date()
        except ValueError:
            continue
    return None


def parse_month_day(value: str) -> tuple[int, int] | None:
    """Split "MM/DD" or "Mon D" into (month, day)."""
    value = value.strip()
    slash = _SLASH_MONTH_DAY.fullmatch(value)
    if slash:
        return int(slash.group(1)), int(slash.group(2))

    named = _NAMED_MONTH_DAY.fullmatch(value)
    if named:
        try:
            month = datetime.strptime(named.group(1).title(), "%b").month
        except ValueError:
            return None
        return month, int(named.group(2))
    return None


def _safe_date(year: int, month: int, day: int) -> date | None:
    try:
        return date(year, month, day)
    except ValueError:
        return None


def resolve_month_day(month: int, day: int, period: StatementPeriod) -> date | None:
    """
    Place a month/day in the statement period's year.

    Dates falling after the period end move back one year when that lands
    inside the period (December charges on a January-closing statement).
    """
    year = period.end.year
    candidate = _safe_date(year, month, day)
    if candidate is None:
        # Feb 29 outside a leap year
        prior = _safe_date(year - 1, month, day)
        return prior if prior is not None and period.start <= prior <= period.end else None

    if candidate > period.end:
        prior = _safe_date(year - 1, month, day)
        if prior is not None and prior >= period.start:
            return prior
    return candidate


def resolve_date(value: str, period: StatementPeriod) -> date | None:
    """Parse a full date directly, or resolve a month/day-only date against the period."""
    full = parse_full_date(value)
    if full is not None:
        return full
    month_day = parse_month_day(value)
    if month_day is None:
        return None
    return resolve_month_day(*month_day, period)


PeriodRule = Callable[[str], StatementPeriod | None]


def range_rule(pattern: re.Pattern[str]) -> PeriodRule:
    """Period from a pattern capturing (start, end) dates."""

    def rule(text: str) -> StatementPeriod | None:
        match = pattern.search(text)
        if not match:
            return None
        start = parse_full_date(match.group(1))
        end = parse_full_date(match.group(2))
        if start is None or end is None:
            return None
        return StatementPeriod(start, end)

    return rule


def closing_date_rule(pattern: re.Pattern[str], days: int = 30) -> PeriodRule:
    """Period ending on a captured closing date and starting ``days`` before it."""

    def rule(text: str) -> StatementPeriod | None:
        match = pattern.search(text)
        if not match:
            return None
        end = parse_full_date(match.group(1))
        if end is None:
            return None
        return StatementPeriod(end - timedelta(days=days), end)

    return rule


def detect_period(text: str, rules: list[PeriodRule], statement: Statement, source: str) -> StatementPeriod:
    """
    Detect the billing period, trying rules in priority order.

    Falls back to the statement's known dates, then to the trailing
    ``settings.default_period_days`` days.
    """
    for rule in rules:
        period = rule(text)
        if period is not None:
            logger.info(f"{source}: statement period {period.start} to {period.end}")
            return period

    if statement.start_date and statement.end_date:
        return StatementPeriod(statement.start_date, statement.end_date)

    today = date.today()
    logger.debug(f"{source}: no statement period found, assuming the last {settings.default_period_days} days")
    return StatementPeriod(today - timedelta(days=settings.default_period_days), today)


# ---------------------------------------------------------------------------
# Transactions
# ---------------------------------------------------------------------------


def build_transaction(
    *,
    statement: Statement,
    account: Account | None,
    txn_date: date,
    description: str,
    merchant: str | None,
    amount: Decimal,
    txn_type: TransactionType,
    post_date: date | None = None,
) -> Transaction:
    """Create a Transaction with a non-negative amount and its category."""
    return Transaction(
        account_id=account.id if account else statement.account_id,
        statement_id=statement.id,
        transaction_date=txn_date,
        post_date=post_date,
        description=truncate_description(description),
        merchant_name=merchant,
        category=categorize(merchant, txn_type),
        amount=abs(amount),
        type=txn_type,
    )


# ---------------------------------------------------------------------------
# Metadata
# ---------------------------------------------------------------------------


def to_money(value: str) -> Decimal:
    """Parse a summary amount; whole-dollar values gain cents."""
    return parse_amount(value).quantize(CENTS)


def to_rate(value: str) -> Decimal:
    try:
        return Decimal(value)
    except InvalidOperation as e:
        raise ValueError(f"Invalid rate: {value!r}") from e


def section_after(text: str, marker: str, length: int = 2000) -> str:
    """Slice of text starting at a case-insensitive marker, or the whole text."""
    start = text.lower().find(marker)
    if start < 0:
        return text
    return text[start : start + length]


def set_if_unset(target: Account | Statement, field_name: str, value, source: str) -> bool:
    """Write a field only when it has no value yet."""
    if value is None or getattr(target, field_name) is not None:
        return False
    setattr(target, field_name, value)
    logger.info(f"{source}: {field_name} = {value}")
    return True


def find_money(pattern: re.Pattern[str], text: str, source: str, group: int = 1) -> Decimal | None:
    match = pattern.search(text)
    if not match:
        return None
    try:
        return to_money(match.group(group))
    except ValueError:
        logger.debug(f"{source}: could not parse amount {match.group(group)!r}")
        return None


def find_date(pattern: re.Pattern[str], text: str, group: int = 1) -> date | None:
    match = pattern.search(text)
    if not match:
        return None
    return parse_full_date(match.group(group))


def apply_money(
    text: str, target: Account | Statement, field_name: str, pattern: re.Pattern[str], source: str
) -> None:
    if getattr(target, field_name) is not None:
        return
    set_if_unset(target, field_name, find_money(pattern, text, source), source)


def apply_payment_summary(
    text: str,
    statement: Statement,
    min_payment: re.Pattern[str],
    due_date: re.Pattern[str],
    source: str,
) -> None:
    """Minimum payment and payment due date."""
    apply_money(text, statement, "minimum_payment", min_payment, source)
    if statement.payment_due_date is None:
        set_if_unset(statement, "payment_due_date", find_date(due_date, text), source)


def apply_ytd_totals(
    text: str,
    statement: Statement,
    fees: re.Pattern[str],
    interest: re.Pattern[str],
    source: str,
) -> None:
    """
    Year-to-date fee and interest totals.

    Both patterns capture (year, amount); the year group may be optional.
    The YTD year comes from the fees line, else the interest line.
    """
    for pattern, field_name in ((fees, "ytd_total_fees"), (interest, "ytd_total_interest")):
        match = pattern.search(text)
        if not match:
            continue
        try:
            amount = to_money(match.group(2))
        except ValueError:
            logger.debug(f"{source}: could not parse {field_name} {match.group(2)!r}")
            continue
        set_if_unset(statement, field_name, amount, source)
        if match.group(1):
            set_if_unset(statement, "ytd_year", int(match.group(1)), source)


def refresh_balance(
    text: str, account: Account | None, statement: Statement | None, pattern: re.Pattern[str], source: str
) -> None:
    """The current balance is refreshed on every statement."""
    balance = find_money(pattern, text, source)
    if balance is None:
        return
    if account is not None:
        account.current_balance = balance
        logger.info(f"{source}: current balance = {balance}")
    if statement is not None:
        set_if_unset(statement, "closing_balance", balance, source)


def apply_last4(text: str, account: Account, patterns: list[re.Pattern[str]], source: str) -> None:
    if account.last4 is not None:
        return
    for pattern in patterns:
        match = pattern.search(text)
        if match:
            set_if_unset(account, "last4", match.group(1), source)
            return


def apply_credit_lines(
    text: str,
    account: Account,
    credit_limit: re.Pattern[str],
    available_credit: re.Pattern[str],
    source: str,
) -> None:
    apply_money(text, account, "credit_limit", credit_limit, source)
    apply_money(text, account, "available_credit", available_credit, source)


def apply_first_apr(text: str, account: Account, pattern: re.Pattern[str], source: str) -> None:
    """Purchase APR from the first match."""
    if account.apr is not None:
        return
    match = pattern.search(text)
    if not match:
        return
    try:
        set_if_unset(account, "apr", to_rate(match.group(1)), source)
    except ValueError:
        logger.debug(f"{source}: could not parse APR {match.group(1)!r}")


def apply_last_apr_above(
    text: str, account: Account, pattern: re.Pattern[str], source: str, floor: Decimal = Decimal("5")
) -> None:
    """Purchase APR from the last match above ``floor``, skipping promo rows."""
    if account.apr is not None:
        return
    regular = None
    for match in pattern.finditer(text):
        try:
            candidate = to_rate(match.group(1))
        except ValueError:
            continue
        if candidate > floor:
            regular = candidate
    set_if_unset(account, "apr", regular, source)


def apply_promo_apr(
    text: str, account: Account, pattern: re.Pattern[str], source: str, ceiling: Decimal = Decimal("10")
) -> None:
    """
    Promotional APR and its expiry from a pattern capturing (rate, date).

    Rates at or above ``ceiling`` are regular APRs, not promotions.
    """
    if account.promo_apr is not None:
        return
    match = pattern.search(text)
    if not match:
        return
    try:
        rate = to_rate(match.group(1))
    except ValueError:
        logger.debug(f"{source}: could not parse promo APR {match.group(1)!r}")
        return
    if rate >= ceiling:
        return
    set_if_unset(account, "promo_apr", rate, source)
    set_if_unset(account, "promo_apr_end_date", parse_full_date(match.group(2)), source)


def mark_credit_card(account: Account) -> None:
    account.type = AccountType.CREDIT_CARD
