"""Statement extraction pipeline: PDF bytes to metadata and transactions."""

import logging
from dataclasses import dataclass, field

from ledgerlens.models import Account, InstitutionCode, Statement, Transaction
from ledgerlens.parsers.registry import ExtractorDispatcher
from ledgerlens.services.classifier import InstitutionClassifier
from ledgerlens.services.text_extractor import TextExtractor

logger = logging.getLogger(__name__)


@dataclass
class ExtractionResult:
    """Output of one pipeline run. Statement and account are mutated in place."""

    institution: InstitutionCode
    text: str
    transactions: list[Transaction] = field(default_factory=list)


class StatementExtractionPipeline:
    """Text extraction, institution classification and extractor dispatch."""

    def __init__(
        self,
        text_extractor: TextExtractor | None = None,
        classifier: InstitutionClassifier | None = None,
        dispatcher: ExtractorDispatcher | None = None,
    ):
        self.text_extractor = text_extractor or TextExtractor()
        self.classifier = classifier or InstitutionClassifier()
        self.dispatcher = dispatcher or ExtractorDispatcher()

    def run(self, contents: bytes, statement: Statement, account: Account | None = None) -> ExtractionResult:
        """
        Extract a statement PDF.

        Raises:
            ExtractionError: If no text can be extracted from the PDF
        """
        text = self.text_extractor.extract(contents)
        return self.run_text(text, statement, account)

    def run_text(self, text: str, statement: Statement, account: Account | None = None) -> ExtractionResult:
        """Classify already-extracted text and run the matching extractor."""
        institution = self.classifier.classify(text)
        transactions = self.dispatcher.extract(institution, text, statement, account)
        logger.info(
            f"Extracted {len(transactions)} transactions from {statement.file_name} ({institution.value})"
        )
        return ExtractionResult(institution=institution, text=text, transactions=transactions)


# Global pipeline instance
pipeline = StatementExtractionPipeline()
