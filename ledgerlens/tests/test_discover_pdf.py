"""Tests for the Discover PDF statement extractor."""

from datetime import date
from decimal import Decimal
from textwrap import dedent

from ledgerlens.models import Account, InstitutionCode, Statement, TransactionType
from ledgerlens.parsers.discover_pdf import DiscoverExtractor

DISCOVER_STATEMENT = dedent(
    """\
    Discover it Card
    Account ending in 6011
    Opening Date 01/16/2026   Closing Date 02/15/2026
    New Balance $1,020.75
    Minimum Payment Due $35.00
    Payment Due Date 03/12/2026
    Credit Line $8,000
    Available Credit $6,979.25
    Purchase APR 23.99%
    0.00% Intro APR through 09/15/2026
    Trans.Date  Post Date  Description  Amount
    01/15/26    01/16/26   AMAZON.COM                     $48.25
    01/12/26    01/14/26   PAYMENT RECEIVED - THANK YOU  -$500.00
    01/20/26  CASHBACK BONUS REDEMPTION  -$25.00
    02/01/26    02/01/26   LATE FEE   $29.00
    Fees charged in 2026 $29.00
    Interest charged in 2026 $0.00
    """
)


class TestDiscoverTransactions:
    """Test Discover activity extraction."""

    def test_extracts_lines_in_order(self):
        """Should extract every activity line with its type."""
        transactions = DiscoverExtractor().extract_transactions(
            DISCOVER_STATEMENT, Statement(file_name="discover.pdf"), None
        )

        assert [(txn.type, txn.amount) for txn in transactions] == [
            (TransactionType.DEBIT, Decimal("48.25")),
            (TransactionType.CREDIT, Decimal("500.00")),
            (TransactionType.CREDIT, Decimal("25.00")),
            (TransactionType.FEE, Decimal("29.00")),
        ]

    def test_dates_carry_their_year(self):
        """Should parse MM/DD/YY transaction and post dates."""
        purchase = DiscoverExtractor().extract_transactions(
            DISCOVER_STATEMENT, Statement(file_name="discover.pdf"), None
        )[0]
        assert purchase.transaction_date == date(2026, 1, 15)
        assert purchase.post_date == date(2026, 1, 16)
        assert purchase.merchant_name == "AMAZON.COM"

    def test_statement_metadata(self):
        """Should read the payment box and year-to-date totals."""
        statement = Statement(file_name="discover.pdf")
        DiscoverExtractor().extract_transactions(DISCOVER_STATEMENT, statement, None)

        assert statement.minimum_payment == Decimal("35.00")
        assert statement.payment_due_date == date(2026, 3, 12)
        assert statement.closing_balance == Decimal("1020.75")
        assert statement.ytd_total_fees == Decimal("29.00")
        assert statement.ytd_total_interest == Decimal("0.00")
        assert statement.ytd_year == 2026


class TestDiscoverAccountMetadata:
    """Test account-level metadata."""

    def test_account_metadata(self):
        """Should fill in card details, including the intro APR."""
        account = Account(name="Discover Card", institution=InstitutionCode.DISCOVER)
        DiscoverExtractor().extract_account_metadata(DISCOVER_STATEMENT, account)

        assert account.last4 == "6011"
        assert account.current_balance == Decimal("1020.75")
        assert account.credit_limit == Decimal("8000.00")
        assert account.available_credit == Decimal("6979.25")
        assert account.apr == Decimal("23.99")
        assert account.promo_apr == Decimal("0.00")
        assert account.promo_apr_end_date == date(2026, 9, 15)
