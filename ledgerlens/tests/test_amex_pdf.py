"""Tests for the American Express PDF statement extractor."""

from datetime import date
from decimal import Decimal
from textwrap import dedent

from ledgerlens.models import Account, AccountType, InstitutionCode, Statement, TransactionType
from ledgerlens.parsers.amex_pdf import AmexExtractor, clean_merchant

AMEX_STATEMENT = dedent(
    """\
    American Express
    Blue Cash Preferred
    Account Ending 9-04001
    New Balance $1,052.18
    Minimum Payment Due $40.00
    Payment Due Date 02/22/26
    Credit Limit $15,000.00
    Available Credit $13,947.82
    Payments
    01/27/26*  MOBILE PAYMENT - THANK YOU  -$250.00
    New Charges
    01/14/26  NETFLIX.COM  LOS GATOS CA  $15.49
    01/15/26  AplPay WHOLEFDS SFO 10234  SAN FRANCISCO CA  $86.12
    Interest Charged
    01/26/26  Interest Charge on Purchases  $12.34
    Total Fees in 2026  $0.00
    Total Interest in 2026  $12.34
    Interest Charge Calculation
    Purchases  04/01/2023    28.49%    Variable
    """
)


def make_statement() -> Statement:
    return Statement(file_name="amex_2026_01.pdf")


class TestCleanMerchant:
    """Test Amex merchant cleanup."""

    def test_strips_location(self):
        """Should drop the city and state suffix."""
        assert clean_merchant("NETFLIX.COM  LOS GATOS CA") == "NETFLIX.COM"

    def test_strips_apple_pay_prefix_and_reference(self):
        """Should drop the AplPay prefix and trailing reference."""
        assert clean_merchant("AplPay WHOLEFDS SFO 10234  SAN FRANCISCO CA") == "WHOLEFDS SFO"

    def test_keeps_short_names(self):
        """Should not strip a name down to nothing."""
        assert clean_merchant("X CA") == "X CA"


class TestAmexTransactions:
    """Test Amex activity extraction."""

    def test_section_sets_transaction_type(self):
        """Section headings decide payments, charges and interest."""
        transactions = AmexExtractor().extract_transactions(AMEX_STATEMENT, make_statement(), None)

        assert [(txn.type, txn.amount) for txn in transactions] == [
            (TransactionType.CREDIT, Decimal("250.00")),
            (TransactionType.DEBIT, Decimal("15.49")),
            (TransactionType.DEBIT, Decimal("86.12")),
            (TransactionType.INTEREST, Decimal("12.34")),
        ]

    def test_dates_carry_their_year(self):
        """Should parse MM/DD/YY dates, ignoring the payment asterisk."""
        transactions = AmexExtractor().extract_transactions(AMEX_STATEMENT, make_statement(), None)
        assert transactions[0].transaction_date == date(2026, 1, 27)
        assert transactions[1].transaction_date == date(2026, 1, 14)

    def test_merchants_and_categories(self):
        """Should clean merchants and categorize charges."""
        transactions = AmexExtractor().extract_transactions(AMEX_STATEMENT, make_statement(), None)
        assert transactions[1].merchant_name == "NETFLIX.COM"
        assert transactions[1].category == "Subscriptions"
        assert transactions[2].merchant_name == "WHOLEFDS SFO"
        assert transactions[2].category == "Groceries"
        assert transactions[0].category is None

    def test_negative_amount_outside_payments_is_credit(self):
        """A refund under New Charges is still a credit."""
        text = "New Charges\n01/20/26  AMAZON.COM REFUND  -$19.99\n"
        transactions = AmexExtractor().extract_transactions(text, make_statement(), None)
        assert transactions[0].type == TransactionType.CREDIT
        assert transactions[0].amount == Decimal("19.99")

    def test_statement_metadata(self):
        """Should read the payment box and year-to-date totals."""
        statement = make_statement()
        AmexExtractor().extract_transactions(AMEX_STATEMENT, statement, None)

        assert statement.minimum_payment == Decimal("40.00")
        assert statement.payment_due_date == date(2026, 2, 22)
        assert statement.closing_balance == Decimal("1052.18")
        assert statement.ytd_total_fees == Decimal("0.00")
        assert statement.ytd_total_interest == Decimal("12.34")
        assert statement.ytd_year == 2026


class TestAmexAccountMetadata:
    """Test account-level metadata."""

    def test_account_metadata(self):
        """Should fill in card details from the statement."""
        account = Account(name="Amex", institution=InstitutionCode.AMEX, type=AccountType.CHECKING)
        AmexExtractor().extract_account_metadata(AMEX_STATEMENT, account)

        assert account.type == AccountType.CREDIT_CARD
        assert account.last4 == "4001"
        assert account.current_balance == Decimal("1052.18")
        assert account.credit_limit == Decimal("15000.00")
        assert account.available_credit == Decimal("13947.82")
        assert account.apr == Decimal("28.49")
