"""
BookBrief Backend — PDF Text Extraction Service
=================================================

What:  Reads a stored PDF and returns its plain text plus page count.
Why:   First stage of the ingestion pipeline; everything downstream works
       on plain text.
How:   pypdf page-by-page extraction, run in a worker thread because
       parsing a large PDF is CPU-bound and would otherwise block the
       event loop for every other request.

Failure mapping:
    file missing / unreadable       → ExtractionError
    pypdf rejects the file          → InvalidFormatError
    parsed, but no text on any page → EmptyDocumentError  (e.g. scanned books)

Reads only. Never touches the database.
"""

import asyncio
import logging
from dataclasses import dataclass
from pathlib import Path

from pypdf import PdfReader
from pypdf.errors import PyPdfError

from app.exceptions import EmptyDocumentError, ExtractionError, InvalidFormatError

logger = logging.getLogger(__name__)

# Below this many characters the PDF is probably mostly images
LOW_TEXT_WARNING_CHARS = 50


@dataclass(frozen=True)
class ExtractedDocument:
    text: str
    page_count: int


class PdfTextExtractor:
    """Stateless PDF → text extractor."""

    async def extract(self, pdf_path: str) -> ExtractedDocument:
        """
        Extract text from the PDF at `pdf_path` (absolute path).

        Raises:
            ExtractionError (or one of its subclasses).
        """
        name = Path(pdf_path).name
        logger.info("Starting PDF text extraction for %s", name)

        document = await asyncio.to_thread(self._read_pdf, pdf_path)

        if len(document.text) < LOW_TEXT_WARNING_CHARS:
            logger.warning(
                "Very little text extracted from %s (%d characters)",
                name,
                len(document.text),
            )
        logger.info(
            "Extracted %d characters from %d page(s) of %s",
            len(document.text),
            document.page_count,
            name,
        )
        return document

    def _read_pdf(self, pdf_path: str) -> ExtractedDocument:
        try:
            reader = PdfReader(pdf_path)
            pages = [page.extract_text() or "" for page in reader.pages]
        except FileNotFoundError:
            raise ExtractionError(
                message="The stored PDF could not be found.",
                context={"file": Path(pdf_path).name},
            )
        except PyPdfError as e:
            logger.warning("pypdf rejected %s: %s", Path(pdf_path).name, str(e))
            raise InvalidFormatError(context={"parser_error": str(e)})
        except OSError as e:
            raise ExtractionError(
                message="The stored PDF could not be read.",
                context={"file": Path(pdf_path).name, "os_error": str(e)},
            )
        except Exception as e:
            # pypdf raises assorted builtin errors on corrupt streams
            logger.warning("Unexpected parser failure on %s: %s", Path(pdf_path).name, str(e))
            raise InvalidFormatError(context={"parser_error": f"{type(e).__name__}: {e}"})

        text = "\n".join(pages).strip()
        if not text:
            raise EmptyDocumentError(context={"page_count": len(pages)})

        return ExtractedDocument(text=text, page_count=len(pages))


text_extractor = PdfTextExtractor()
