"""
Tests for text extraction and document preview.
"""

from unittest.mock import Mock, patch

import pytest

from bookbrief.core.exceptions import ExtractionError, UnsupportedFormatError
from bookbrief.ingestion.text_extractor import extract, extract_file, preview


class TestExtract:
    
    @pytest.mark.parametrize("kind", ["text/plain", ".txt", "TXT", "text/plain; charset=utf-8"])
    def test_plain_text(self, kind):
        assert extract("Hello, wörld".encode("utf-8"), kind) == "Hello, wörld"
    
    def test_invalid_utf8(self):
        with pytest.raises(ExtractionError):
            extract(b"\xff\xfe\xfa", "text/plain")
    
    @patch("bookbrief.ingestion.text_extractor.PdfReader")
    def test_pdf_pages_become_paragraphs(self, mock_reader):
        pages = [Mock(), Mock(), Mock()]
        pages[0].extract_text.return_value = "Page one text. "
        pages[1].extract_text.return_value = None
        pages[2].extract_text.return_value = "Page three text."
        mock_reader.return_value = Mock(pages=pages)
        
        text = extract(b"%PDF-1.4 fake", "application/pdf")
        
        assert text == "Page one text.\n\nPage three text."
    
    def test_corrupt_pdf(self):
        with pytest.raises(ExtractionError) as exc_info:
            extract(b"this is not a pdf", ".pdf")
        assert "PDF" in str(exc_info.value)
    
    def test_html(self):
        html = b"""<html><head><style>p {color: red}</style><script>var x = 1;</script></head>
        <body><h1>Title</h1><p>First paragraph.</p><p>Second   paragraph.</p></body></html>"""
        
        text = extract(html, "text/html")
        
        assert "Title" in text
        assert "First paragraph." in text
        assert "Second paragraph." in text
        assert "var x" not in text
        assert "color" not in text
    
    @pytest.mark.parametrize("kind", ["application/msword", ".docx", "", "image/png"])
    def test_unsupported_format(self, kind):
        with pytest.raises(UnsupportedFormatError):
            extract(b"data", kind)
    
    def test_unsupported_is_extraction_error(self):
        with pytest.raises(ExtractionError):
            extract(b"data", ".epub")
    
    def test_size_limit(self):
        with pytest.raises(ExtractionError):
            extract(b"x" * 11, "text/plain", max_bytes=10)


class TestExtractFile:
    
    def test_reads_by_suffix(self, tmp_path):
        path = tmp_path / "notes.TXT"
        path.write_text("Line one.\n\nLine two.", encoding="utf-8")
        
        assert extract_file(path) == "Line one.\n\nLine two."
    
    def test_missing_file(self, tmp_path):
        with pytest.raises(ExtractionError):
            extract_file(tmp_path / "missing.txt")


class TestPreview:
    
    def test_preview_truncates(self):
        result = preview("a" * 5000, limit=4000)
        
        assert len(result.preview) == 4000
        assert result.full_length == 5000
    
    def test_preview_short_text(self):
        result = preview("short text", source="notes.txt")
        
        assert result.preview == "short text"
        assert result.full_length == 10
        assert result.source == "notes.txt"
