"""Tests for merchant normalization and categorization."""

import pytest

from ledgerlens.models import TransactionType
from ledgerlens.parsers.normalize import FEES_CATEGORY, categorize, collapse_whitespace, normalize_merchant


class TestCollapseWhitespace:
    """Test whitespace collapsing."""

    def test_collapses_runs_and_strips(self):
        """Should join words with single spaces."""
        assert collapse_whitespace("  SHELL   OIL\t 57442 ") == "SHELL OIL 57442"


class TestNormalizeMerchant:
    """Test merchant name cleanup."""

    def test_none_passes_through(self):
        """Should return None for None."""
        assert normalize_merchant(None) is None

    def test_strips_trailing_reference(self):
        """Should drop a trailing reference number and everything after it."""
        assert normalize_merchant("SHELL OIL 57442 EDISON NJ") == "SHELL OIL"

    def test_keeps_short_numbers(self):
        """Should keep store numbers shorter than five digits."""
        assert normalize_merchant("COSTCO WHSE #0123") == "COSTCO WHSE #0123"

    def test_strips_bank_codes(self):
        """Should drop stacked leading bank codes."""
        assert normalize_merchant("POS ACH  NETFLIX.COM") == "NETFLIX.COM"

    def test_strips_lowercase_bank_codes(self):
        """Should match bank codes case-insensitively."""
        assert normalize_merchant("ach Venmo Payment") == "Venmo Payment"

    @pytest.mark.parametrize(
        "description",
        [
            "POS ACH  NETFLIX.COM",
            "ACH POS 123456",
            "ACH  DDA 99999 X",
            "POS 1234 STORE 56789",
            "AMAZON.COM*1A2B3C4D5  SEATTLE WA",
            "  WHOLEFDS   SFO 10234 ",
        ],
    )
    def test_is_idempotent(self, description):
        """Normalizing twice should equal normalizing once."""
        once = normalize_merchant(description)
        assert normalize_merchant(once) == once


class TestCategorize:
    """Test keyword categorization."""

    def test_groceries(self):
        """Should map grocery merchants."""
        assert categorize("WHOLEFDS SFO", TransactionType.DEBIT) == "Groceries"

    def test_subscriptions(self):
        """Should map streaming services."""
        assert categorize("NETFLIX.COM", TransactionType.DEBIT) == "Subscriptions"

    def test_shopping(self):
        """Should map retailers."""
        assert categorize("AMAZON.COM*1A2B3C4D5", TransactionType.DEBIT) == "Shopping"

    def test_gas(self):
        """Should map fuel stations."""
        assert categorize("SHELL OIL", TransactionType.DEBIT) == "Gas"

    def test_first_category_wins(self):
        """Uber Eats is dining even though Uber is transportation."""
        assert categorize("UBER EATS", TransactionType.DEBIT) == "Dining"
        assert categorize("UBER TRIP", TransactionType.DEBIT) == "Transportation"

    def test_fees_and_interest(self):
        """Fees and interest always land in the fees category."""
        assert categorize("LATE FEE", TransactionType.FEE) == FEES_CATEGORY
        assert categorize("NETFLIX.COM", TransactionType.INTEREST) == FEES_CATEGORY

    def test_credits_are_not_categorized(self):
        """Payments and refunds get no category."""
        assert categorize("AMAZON.COM REFUND", TransactionType.CREDIT) is None

    def test_unknown_merchant(self):
        """Should return None when no keyword matches."""
        assert categorize("ZXQV LLC", TransactionType.DEBIT) is None

    def test_none_merchant(self):
        """Should return None for a missing merchant."""
        assert categorize(None, TransactionType.DEBIT) is None
