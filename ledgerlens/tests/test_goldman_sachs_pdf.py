"""Tests for the Apple Card (Goldman Sachs) PDF statement extractor."""

from datetime import date
from decimal import Decimal
from textwrap import dedent

from ledgerlens.models import Account, InstitutionCode, Statement, TransactionType
from ledgerlens.parsers.goldman_sachs_pdf import GoldmanSachsExtractor

APPLE_CARD_STATEMENT = dedent(
    """\
    Apple Card
    Goldman Sachs Bank USA
    Statement Period: Jan 1, 2026 - Jan 31, 2026
    Card Number  •••• •••• •••• 4821
    Total Balance $1,245.67
    Minimum Payment Due: $30.00
    Payment Due: Feb 28, 2026
    Credit Limit: $6,000.00
    Available Credit: $4,754.33
    Interest charged in 2026: $12.34
    Jan 12, 2026  Payment                   ($500.00)
    Jan 14, 2026  APPLE.COM/BILL  $9.99
    Jan 15, 2026  WHOLE FOODS MARKET  $86.12
    Jan 20, 2026  UBER TRIP  $23.40
    Jan 31, 2026  Interest Charged  $12.34
    Purchase APR: 24.24%
    """
)


def extract(text: str = APPLE_CARD_STATEMENT, statement: Statement | None = None):
    return GoldmanSachsExtractor().extract_transactions(
        text, statement or Statement(file_name="apple_card.pdf"), None
    )


class TestGoldmanSachsTransactions:
    """Test Apple Card activity extraction."""

    def test_parenthesized_payment_is_credit(self):
        """A parenthesized amount is a positive CREDIT."""
        transactions = extract("Jan 12, 2026  Payment                   ($500.00)\n")

        assert len(transactions) == 1
        assert transactions[0].type == TransactionType.CREDIT
        assert transactions[0].amount == Decimal("500.00")
        assert transactions[0].transaction_date == date(2026, 1, 12)

    def test_extracts_lines_in_order(self):
        """Should extract every activity line with its type."""
        assert [(txn.type, txn.amount) for txn in extract()] == [
            (TransactionType.CREDIT, Decimal("500.00")),
            (TransactionType.DEBIT, Decimal("9.99")),
            (TransactionType.DEBIT, Decimal("86.12")),
            (TransactionType.DEBIT, Decimal("23.40")),
            (TransactionType.INTEREST, Decimal("12.34")),
        ]

    def test_categories(self):
        """Should categorize purchases by merchant."""
        categories = [txn.category for txn in extract()]
        assert categories == [None, "Subscriptions", "Groceries", "Transportation", "Fees"]

    def test_refund_is_credit(self):
        """Refund descriptions are credits even with a positive amount."""
        transactions = extract("Jan 18, 2026  AMAZON REFUND  $19.99\n")
        assert transactions[0].type == TransactionType.CREDIT

    def test_statement_metadata(self):
        """Should read the payment box and year-to-date interest."""
        statement = Statement(file_name="apple_card.pdf")
        extract(statement=statement)

        assert statement.minimum_payment == Decimal("30.00")
        assert statement.payment_due_date == date(2026, 2, 28)
        assert statement.closing_balance == Decimal("1245.67")
        assert statement.ytd_total_interest == Decimal("12.34")
        assert statement.ytd_year == 2026


class TestGoldmanSachsAccountMetadata:
    """Test account-level metadata."""

    def test_account_metadata(self):
        """Should fill in card details from the statement."""
        account = Account(name="Apple Card", institution=InstitutionCode.GOLDMAN_SACHS)
        GoldmanSachsExtractor().extract_account_metadata(APPLE_CARD_STATEMENT, account)

        assert account.last4 == "4821"
        assert account.current_balance == Decimal("1245.67")
        assert account.credit_limit == Decimal("6000.00")
        assert account.available_credit == Decimal("4754.33")
        assert account.apr == Decimal("24.24")
