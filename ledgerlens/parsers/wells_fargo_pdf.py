"""Extractor for Wells Fargo PDF statements.

Wells Fargo statements are parsed with the generic line pattern.
"""

from ledgerlens.models import Account, InstitutionCode, Statement, Transaction
from ledgerlens.parsers.generic import GenericExtractor
from ledgerlens.parsers.validation import logger

SOURCE = "Wells Fargo PDF"


class WellsFargoExtractor:
    """Wells Fargo statements, delegating line parsing to the generic extractor."""

    name = "wells_fargo"

    def __init__(self, generic: GenericExtractor | None = None):
        self._generic = generic or GenericExtractor()

    def supports(self, code: InstitutionCode) -> bool:
        return code == InstitutionCode.WELLS_FARGO

    def extract_transactions(self, text: str, statement: Statement, account: Account | None) -> list[Transaction]:
        logger.info(f"{SOURCE}: using generic line parsing")
        transactions = self._generic.extract_transactions(text, statement, account)
        logger.info(f"{SOURCE}: extracted {len(transactions)} transactions")
        return transactions

    def extract_account_metadata(self, text: str, account: Account | None) -> None:
        return None
