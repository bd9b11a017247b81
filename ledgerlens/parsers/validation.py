"""Shared validation utilities for statement extractors."""

import logging
import re
from dataclasses import dataclass, field
from datetime import date
from decimal import Decimal, InvalidOperation
from typing import Any

# Configure logging for parsers
logger = logging.getLogger("ledgerlens.parsers")

# "48,25" style amounts where the comma is the decimal separator
_COMMA_DECIMAL = re.compile(r"-?\d{1,3},\d{2}")

MAX_DESCRIPTION_LENGTH = 500


@dataclass
class ParseResult:
    """Result of parsing a financial statement."""

    transactions: list[Any]
    total_rows_processed: int = 0
    rows_skipped: int = 0
    errors: list[str] = field(default_factory=list)
    warnings: list[str] = field(default_factory=list)

    @property
    def success_rate(self) -> float:
        """Calculate the parsing success rate."""
        if self.total_rows_processed == 0:
            return 0.0
        parsed = len(self.transactions)
        return (parsed / self.total_rows_processed) * 100


class ValidationError(Exception):
    """Raised when validation fails."""

    pass


def validate_file_contents(contents: bytes, min_size: int = 10) -> None:
    """
    Validate file contents before parsing.

    Args:
        contents: Raw file bytes
        min_size: Minimum expected file size in bytes

    Raises:
        ValidationError: If validation fails
    """
    if not contents:
        raise ValidationError("File is empty")

    if len(contents) < min_size:
        raise ValidationError(f"File too small ({len(contents)} bytes), minimum {min_size} bytes expected")


def validate_amount(
    amount: Decimal | None, min_val: Decimal = Decimal("-1000000"), max_val: Decimal = Decimal("1000000")
) -> bool:
    """
    Validate that an amount is within reasonable bounds.

    Args:
        amount: The amount to validate
        min_val: Minimum allowed value
        max_val: Maximum allowed value

    Returns:
        True if valid, False otherwise
    """
    if amount is None:
        return False

    if not amount.is_finite():
        return False

    return min_val <= amount <= max_val


def validate_date(txn_date: date | None, min_year: int = 2000, max_year: int = 2100) -> bool:
    """
    Validate that a date is within reasonable bounds.

    Args:
        txn_date: The date to validate
        min_year: Minimum allowed year
        max_year: Maximum allowed year

    Returns:
        True if valid, False otherwise
    """
    if txn_date is None:
        return False

    return min_year <= txn_date.year <= max_year


def clean_amount_string(amount_str: str) -> str:
    """
    Clean an amount string for parsing.

    Handles "$1,234.56", "- $63.00", "($500.00)", "12.00-" and the
    comma-decimal form "48,25".

    Args:
        amount_str: Raw amount string

    Returns:
        Cleaned amount string ready for Decimal conversion
    """
    if not amount_str:
        return "0"

    # Remove currency symbols and whitespace
    cleaned = amount_str.replace("$", "").replace(" ", "").strip()

    # Handle parentheses for negative numbers
    if cleaned.startswith("(") and cleaned.endswith(")"):
        cleaned = "-" + cleaned[1:-1]

    # Handle trailing minus sign
    if cleaned.endswith("-"):
        cleaned = "-" + cleaned[:-1]

    if _COMMA_DECIMAL.fullmatch(cleaned):
        return cleaned.replace(",", ".")

    # Remove thousand separators
    return cleaned.replace(",", "")


def parse_amount(amount_str: str) -> Decimal:
    """
    Parse a statement amount into a signed Decimal.

    Raises:
        ValueError: If the string is not a number
    """
    cleaned = clean_amount_string(amount_str)
    try:
        return Decimal(cleaned)
    except InvalidOperation as e:
        raise ValueError(f"Invalid amount: {amount_str!r}") from e


def parse_amount_safe(amount_str: str, default: Decimal = Decimal("0")) -> tuple[Decimal, bool]:
    """
    Safely parse an amount string.

    Args:
        amount_str: Raw amount string
        default: Default value if parsing fails

    Returns:
        Tuple of (parsed amount, success flag)
    """
    try:
        amount = parse_amount(amount_str)
    except (ValueError, TypeError):
        return default, False

    if not validate_amount(amount):
        return default, False

    return amount, True


def truncate_description(description: str) -> str:
    """Trim a raw description to what the Transaction model stores."""
    description = description.strip()
    return description[:MAX_DESCRIPTION_LENGTH]


def log_parse_result(result: ParseResult, parser_name: str) -> None:
    """
    Log parsing results for debugging.

    Args:
        result: The parse result
        parser_name: Name of the parser
    """
    logger.info(
        f"{parser_name}: Parsed {len(result.transactions)} transactions "
        f"(processed {result.total_rows_processed}, "
        f"skipped {result.rows_skipped})"
    )

    if result.errors:
        for error in result.errors[:5]:  # Log first 5 errors
            logger.warning(f"{parser_name}: {error}")

    if result.warnings:
        for warning in result.warnings[:5]:  # Log first 5 warnings
            logger.debug(f"{parser_name}: {warning}")
