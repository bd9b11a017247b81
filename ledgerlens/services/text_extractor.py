"""PDF text extraction with an OCR fallback for image-only statements."""

import logging
import shutil
from io import BytesIO
from pathlib import Path

import pdfplumber
import pytesseract
from pdfplumber.utils.pdfinternals import resolve, resolve_and_decode

from ledgerlens.config import settings

logger = logging.getLogger(__name__)

# Checked after settings.tesseract_cmd, before searching PATH
TESSERACT_PATHS = [
    "/opt/homebrew/bin/tesseract",  # Apple Silicon Mac
    "/usr/local/bin/tesseract",  # Intel Mac
]

NO_TEXT_MESSAGE = (
    "This PDF has no extractable text layer and Tesseract OCR is not installed. "
    "Install it with: brew install tesseract (macOS) or apt-get install tesseract-ocr (Linux)"
)


class ExtractionError(Exception):
    """Raised when text cannot be extracted from a PDF."""

    pass


class NoExtractableTextError(ExtractionError):
    """Raised for image-only PDFs when no OCR binary is available."""

    pass


def find_tesseract() -> str | None:
    """Locate the tesseract binary, or None when it is not installed."""
    if settings.tesseract_cmd:
        if Path(settings.tesseract_cmd).exists():
            return settings.tesseract_cmd
        logger.warning(f"Configured tesseract_cmd {settings.tesseract_cmd} does not exist")

    for candidate in TESSERACT_PATHS:
        if Path(candidate).exists():
            return candidate

    return shutil.which("tesseract")


def _collect_form_fields(field, lines: list[str], prefix: str | None = None) -> None:
    """Walk one AcroForm field and its kids, appending "name value" lines."""
    resolved = resolve(field)
    name = ".".join(part for part in (prefix, resolve_and_decode(resolved.get("T"))) if part)

    for kid in resolved.get("Kids", []):
        _collect_form_fields(kid, lines, prefix=name)

    if "V" not in resolved:
        return
    value = str(resolve_and_decode(resolved["V"])).strip()
    if name and value and value != "Off":
        logger.debug(f"AcroForm field: {name} = {value}")
        lines.append(f"{name} {value}")


def read_form_fields(pdf: pdfplumber.PDF) -> list[str]:
    """Values of interactive form fields, as "name value" lines."""
    catalog = pdf.doc.catalog
    if "AcroForm" not in catalog:
        return []

    lines: list[str] = []
    try:
        fields = resolve(resolve(catalog["AcroForm"]).get("Fields", []))
        for field in fields:
            _collect_form_fields(field, lines)
    except (KeyError, TypeError, ValueError) as e:
        logger.debug(f"Could not read AcroForm fields: {e}")
    return lines


class TextExtractor:
    """Turns PDF bytes into newline-delimited text."""

    def extract(self, contents: bytes) -> str:
        """
        Extract text from a PDF statement.

        The text layer is read page by page in layout order, then interactive
        form field values are appended. When fewer than
        ``settings.min_text_chars`` characters come back the document is
        treated as a scan and every page is OCR'd instead.

        Raises:
            NoExtractableTextError: If there is no text layer and no tesseract binary
            ExtractionError: If the PDF cannot be read
        """
        try:
            pdf = pdfplumber.open(BytesIO(contents))
        except Exception as e:
            raise ExtractionError(f"Could not open PDF: {e}") from e

        with pdf:
            try:
                pages = [page.extract_text(layout=True) or "" for page in pdf.pages]
            except Exception as e:
                raise ExtractionError(f"PDF text extraction failed: {e}") from e
            text = "\n".join(pages)

            form_lines = read_form_fields(pdf)
            if form_lines:
                logger.info(f"Appending {len(form_lines)} AcroForm field values to extracted text")
                text = text + "\n" + "\n".join(form_lines)

            char_count = len(text.strip())
            if char_count >= settings.min_text_chars:
                logger.info(f"Extracted {char_count} chars via pdfplumber text layer")
                return text

            logger.info(f"PDF has no text layer ({char_count} chars). Attempting OCR with Tesseract...")
            return self._ocr(pdf)

    def _ocr(self, pdf: pdfplumber.PDF) -> str:
        tesseract = find_tesseract()
        if tesseract is None:
            logger.error("Tesseract OCR binary not found")
            raise NoExtractableTextError(NO_TEXT_MESSAGE)

        pytesseract.pytesseract.tesseract_cmd = tesseract
        config = f"--psm {settings.ocr_page_segmentation_mode}"
        page_count = len(pdf.pages)
        logger.info(f"Running OCR on {page_count} page(s) using {tesseract}")

        # One page image in memory at a time
        texts = []
        for number, page in enumerate(pdf.pages, start=1):
            try:
                image = page.to_image(resolution=settings.ocr_dpi).original
                page_text = pytesseract.image_to_string(image, lang=settings.ocr_language, config=config)
            except (pytesseract.TesseractError, OSError, RuntimeError) as e:
                logger.warning(f"OCR failed on page {number}/{page_count}: {e}")
                continue

            if not page_text.strip():
                logger.warning(f"OCR page {number}/{page_count} returned no text")
                continue
            logger.info(f"OCR page {number}/{page_count}: {len(page_text)} chars")
            texts.append(page_text)

        text = "\n".join(texts)
        logger.info(f"OCR complete: {len(text)} total chars across {page_count} pages")
        return text
