"""Detect the issuing institution of a statement from its text."""

import logging
import re

from ledgerlens.config import settings
from ledgerlens.models import InstitutionCode

logger = logging.getLogger(__name__)

# Most distinctive names first. An Amex statement names "Bank of America" as
# the AutoPay bank, and "discover" is an ordinary English word.
INSTITUTION_MARKERS: list[tuple[InstitutionCode, tuple[str, ...]]] = [
    (InstitutionCode.AMEX, ("american express", "americanexpress.com")),
    (InstitutionCode.BANK_OF_AMERICA, ("bank of america", "bankofamerica")),
    (InstitutionCode.WELLS_FARGO, ("wells fargo",)),
    (InstitutionCode.CITI, ("citibank", "citi card", "citicards")),
    (InstitutionCode.CAPITAL_ONE, ("capital one", "capitalone.com")),
    (InstitutionCode.CHASE, ("chase", "jpmorgan")),
    (InstitutionCode.DISCOVER, ("discover", "dfs services")),
    (InstitutionCode.GOLDMAN_SACHS, ("goldman sachs", "apple card", "applecard.apple.com")),
]

# Markers only match at the start of a word, so "purchase" is not "chase"
_MARKER_PATTERNS = [
    (code, re.compile(r"\b(?:" + "|".join(re.escape(marker) for marker in markers) + ")"))
    for code, markers in INSTITUTION_MARKERS
]


def _scan(lower: str) -> InstitutionCode | None:
    for code, pattern in _MARKER_PATTERNS:
        if pattern.search(lower):
            return code
    return None


class InstitutionClassifier:
    """Classifies statement text into an InstitutionCode."""

    def __init__(self, header_window: int | None = None):
        self.header_window = header_window or settings.header_window

    def classify(self, text: str) -> InstitutionCode:
        """
        Match the statement header first, then the full text.

        The issuer's name is always near the top, while other banks can be
        mentioned anywhere in the body, so a header match always wins.
        """
        header = text[: self.header_window].lower()
        code = _scan(header)
        if code is not None:
            logger.info(f"Detected institution {code.value} from statement header")
            return code

        code = _scan(text.lower())
        if code is not None:
            logger.info(f"Detected institution {code.value} from full text")
            return code

        logger.info("No institution detected, using generic extraction")
        return InstitutionCode.GENERIC
