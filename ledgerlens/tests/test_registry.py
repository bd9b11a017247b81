"""Tests for extractor dispatch and the generic fallback."""

from datetime import date
from unittest.mock import MagicMock

import pytest

from ledgerlens.models import Account, InstitutionCode, Statement, TransactionType
from ledgerlens.parsers.chase_pdf import ChaseExtractor
from ledgerlens.parsers.generic import GenericExtractor
from ledgerlens.parsers.registry import ExtractorDispatcher

# Dated like a Chase line but outside any "ACCOUNT ACTIVITY" section
CHASE_WITHOUT_ACTIVITY = (
    "CHASE\n"
    "Opening/Closing Date 01/16/26 - 02/15/26\n"
    "02/12     AUTOMATIC PAYMENT - THANK YOU -40.00\n"
)


def make_statement() -> Statement:
    return Statement(file_name="statement.pdf", start_date=date(2026, 1, 16), end_date=date(2026, 2, 15))


class TestDispatch:
    """Test extractor selection."""

    @pytest.mark.parametrize(
        "code, name",
        [
            (InstitutionCode.AMEX, "amex"),
            (InstitutionCode.CHASE, "chase"),
            (InstitutionCode.CITI, "citi"),
            (InstitutionCode.WELLS_FARGO, "wells_fargo"),
            (InstitutionCode.CAPITAL_ONE, "capital_one"),
            (InstitutionCode.DISCOVER, "discover"),
            (InstitutionCode.BANK_OF_AMERICA, "bank_of_america"),
            (InstitutionCode.GOLDMAN_SACHS, "goldman_sachs"),
            (InstitutionCode.GENERIC, "generic"),
        ],
    )
    def test_every_code_has_an_extractor(self, code, name):
        """Each institution code dispatches to its own extractor."""
        assert ExtractorDispatcher().dispatch(code).name == name

    def test_unsupported_code_falls_back_to_generic(self):
        """A code no registered extractor supports gets the generic extractor."""
        dispatcher = ExtractorDispatcher(extractors=[ChaseExtractor()])
        assert dispatcher.dispatch(InstitutionCode.AMEX) is dispatcher.generic

    def test_first_registered_extractor_wins(self):
        """Registration order decides between extractors claiming the same code."""
        first, second = MagicMock(), MagicMock()
        first.supports.return_value = True
        second.supports.return_value = True
        dispatcher = ExtractorDispatcher(extractors=[first, second])
        assert dispatcher.dispatch(InstitutionCode.CHASE) is first


class TestExtract:
    """Test running extraction through the dispatcher."""

    def test_runs_metadata_and_transactions(self):
        """Metadata extraction runs before transaction extraction."""
        extractor = MagicMock()
        extractor.name = "fake"
        extractor.supports.return_value = True
        extractor.extract_transactions.return_value = ["txn"]
        account = Account(name="Card", institution=InstitutionCode.CHASE)
        statement = make_statement()

        result = ExtractorDispatcher(extractors=[extractor]).extract(InstitutionCode.CHASE, "text", statement, account)

        assert result == ["txn"]
        extractor.extract_account_metadata.assert_called_once_with("text", account)
        extractor.extract_transactions.assert_called_once_with("text", statement, account)

    def test_falls_back_to_generic_when_empty(self):
        """An institution extractor finding nothing yields the generic result."""
        statement = make_statement()
        transactions = ExtractorDispatcher().extract(InstitutionCode.CHASE, CHASE_WITHOUT_ACTIVITY, statement, None)
        expected = GenericExtractor().extract_transactions(CHASE_WITHOUT_ACTIVITY, statement, None)

        assert len(transactions) == 1
        assert transactions[0].type == TransactionType.CREDIT
        assert [txn.model_dump(exclude={"id"}) for txn in transactions] == [
            txn.model_dump(exclude={"id"}) for txn in expected
        ]

    def test_generic_is_not_run_twice(self):
        """GENERIC documents with no transactions return an empty list."""
        generic = MagicMock(spec=GenericExtractor)
        generic.name = "generic"
        generic.supports.return_value = True
        generic.extract_transactions.return_value = []
        dispatcher = ExtractorDispatcher(extractors=[], generic=generic)

        assert dispatcher.extract(InstitutionCode.GENERIC, "nothing", make_statement(), None) == []
        generic.extract_transactions.assert_called_once()
