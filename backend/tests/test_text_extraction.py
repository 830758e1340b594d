"""
BookBrief Backend — PDF Text Extraction Tests
===============================================

Real pypdf on generated files for the failure paths; PdfReader patched for
the success path (generating a PDF with a text layer needs more than pypdf).
"""

from unittest.mock import MagicMock, patch

import pytest

from app.exceptions import EmptyDocumentError, ExtractionError, InvalidFormatError
from app.services.text_extraction import PdfTextExtractor


@pytest.fixture
def extractor():
    return PdfTextExtractor()


class TestPdfTextExtractor:
    @pytest.mark.asyncio
    async def test_blank_pdf_is_empty_document(self, extractor, tmp_path, blank_pdf_bytes):
        pdf = tmp_path / "blank.pdf"
        pdf.write_bytes(blank_pdf_bytes)

        with pytest.raises(EmptyDocumentError) as exc_info:
            await extractor.extract(str(pdf))
        assert exc_info.value.context["page_count"] == 1
        assert exc_info.value.error_code == "empty_document"

    @pytest.mark.asyncio
    async def test_garbage_bytes_are_invalid_format(self, extractor, tmp_path):
        pdf = tmp_path / "garbage.pdf"
        pdf.write_bytes(b"this is definitely not a pdf file")

        with pytest.raises(InvalidFormatError):
            await extractor.extract(str(pdf))

    @pytest.mark.asyncio
    async def test_missing_file_is_extraction_error(self, extractor, tmp_path):
        with pytest.raises(ExtractionError) as exc_info:
            await extractor.extract(str(tmp_path / "gone.pdf"))
        assert exc_info.value.error_code == "extraction_failed"

    @pytest.mark.asyncio
    async def test_text_pages_joined_and_counted(self, extractor):
        pages = [MagicMock(), MagicMock(), MagicMock()]
        pages[0].extract_text.return_value = "Chapter one."
        pages[1].extract_text.return_value = None  # image-only page
        pages[2].extract_text.return_value = "Chapter two.  "

        with patch("app.services.text_extraction.PdfReader") as mock_reader:
            mock_reader.return_value.pages = pages
            document = await extractor.extract("/books/novel.pdf")

        assert document.page_count == 3
        assert document.text == "Chapter one.\n\nChapter two."
