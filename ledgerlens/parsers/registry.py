"""Registry of statement extractors and dispatch by institution code."""

from ledgerlens.models import Account, InstitutionCode, Statement, Transaction
from ledgerlens.parsers.amex_pdf import AmexExtractor
from ledgerlens.parsers.bank_of_america_pdf import BankOfAmericaExtractor
from ledgerlens.parsers.capital_one_pdf import CapitalOneExtractor
from ledgerlens.parsers.chase_pdf import ChaseExtractor
from ledgerlens.parsers.citi_pdf import CitiExtractor
from ledgerlens.parsers.common import StatementExtractor
from ledgerlens.parsers.discover_pdf import DiscoverExtractor
from ledgerlens.parsers.generic import GenericExtractor
from ledgerlens.parsers.goldman_sachs_pdf import GoldmanSachsExtractor
from ledgerlens.parsers.validation import logger
from ledgerlens.parsers.wells_fargo_pdf import WellsFargoExtractor


def default_extractors(generic: GenericExtractor) -> list[StatementExtractor]:
    """Institution extractors in registration order."""
    return [
        AmexExtractor(),
        ChaseExtractor(),
        CitiExtractor(),
        WellsFargoExtractor(generic),
        CapitalOneExtractor(),
        DiscoverExtractor(),
        BankOfAmericaExtractor(),
        GoldmanSachsExtractor(),
    ]


class ExtractorDispatcher:
    """
    Select the extractor for an institution and run it.

    The generic extractor handles GENERIC documents and re-parses any
    document an institution extractor found no transactions in.
    """

    def __init__(
        self,
        extractors: list[StatementExtractor] | None = None,
        generic: GenericExtractor | None = None,
    ):
        self.generic = generic or GenericExtractor()
        self.extractors = extractors if extractors is not None else default_extractors(self.generic)

    def dispatch(self, code: InstitutionCode) -> StatementExtractor:
        """Return the first registered extractor supporting the code, else the generic extractor."""
        for extractor in self.extractors:
            if extractor.supports(code):
                return extractor
        return self.generic

    def extract(
        self, code: InstitutionCode, text: str, statement: Statement, account: Account | None
    ) -> list[Transaction]:
        """
        Run metadata and transaction extraction for one document.

        Returns:
            The extracted transactions; the generic extractor's result when the
            institution extractor returned none
        """
        extractor = self.dispatch(code)
        logger.info(f"Using {extractor.name} extractor for {code.value}")

        extractor.extract_account_metadata(text, account)
        transactions = extractor.extract_transactions(text, statement, account)

        if not transactions and extractor is not self.generic:
            logger.info(f"{extractor.name} extractor found no transactions, falling back to generic")
            transactions = self.generic.extract_transactions(text, statement, account)

        return transactions
