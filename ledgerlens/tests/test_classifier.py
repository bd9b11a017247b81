"""Tests for institution classification."""

import pytest

from ledgerlens.models import InstitutionCode
from ledgerlens.services.classifier import InstitutionClassifier


class TestInstitutionClassifier:
    """Test header-first institution detection."""

    @pytest.mark.parametrize(
        "header, expected",
        [
            ("American Express\nBlue Cash Preferred", InstitutionCode.AMEX),
            ("www.americanexpress.com", InstitutionCode.AMEX),
            ("Bank of America\nCustomized Cash Rewards", InstitutionCode.BANK_OF_AMERICA),
            ("Wells Fargo Active Cash Card", InstitutionCode.WELLS_FARGO),
            ("Citi Custom Cash\ncitibank.com", InstitutionCode.CITI),
            ("Capital One Quicksilver", InstitutionCode.CAPITAL_ONE),
            ("CHASE FREEDOM UNLIMITED", InstitutionCode.CHASE),
            ("JPMorgan Chase Bank, N.A.", InstitutionCode.CHASE),
            ("Discover it Card", InstitutionCode.DISCOVER),
            ("Apple Card\nGoldman Sachs Bank USA", InstitutionCode.GOLDMAN_SACHS),
        ],
    )
    def test_detects_institution(self, header, expected):
        """Should detect each supported institution from its header."""
        assert InstitutionClassifier().classify(header) == expected

    def test_amex_header_beats_autopay_bank(self):
        """An Amex statement naming Bank of America as the AutoPay bank is Amex."""
        text = "American Express\nAutoPay from Bank of America checking ending 1234"
        assert InstitutionClassifier().classify(text) == InstitutionCode.AMEX

    def test_header_match_wins_over_body(self):
        """A name in the header beats an earlier-listed name in the body."""
        text = "Discover it Card\n" + "x" * 2000 + "\nAmerican Express"
        assert InstitutionClassifier().classify(text) == InstitutionCode.DISCOVER

    def test_falls_back_to_full_text(self):
        """Should find a name past the header window."""
        text = "Statement\n" + "x" * 2000 + "\nCapital One"
        assert InstitutionClassifier().classify(text) == InstitutionCode.CAPITAL_ONE

    def test_custom_header_window(self):
        """A smaller header window moves later names to the full-text pass."""
        text = "Monthly statement for Discover it\nAmerican Express"
        assert InstitutionClassifier(header_window=35).classify(text) == InstitutionCode.DISCOVER
        assert InstitutionClassifier(header_window=5).classify(text) == InstitutionCode.AMEX

    def test_purchase_is_not_chase(self):
        """Names only match at the start of a word."""
        text = "Discover it Card\nPurchase APR 23.99%"
        assert InstitutionClassifier().classify(text) == InstitutionCode.DISCOVER

    def test_unknown_is_generic(self):
        """Should return GENERIC when no institution is named."""
        assert InstitutionClassifier().classify("Monthly Statement\n01/15  COFFEE  4.50") == InstitutionCode.GENERIC

    def test_empty_text_is_generic(self):
        """Should return GENERIC for empty text."""
        assert InstitutionClassifier().classify("") == InstitutionCode.GENERIC
