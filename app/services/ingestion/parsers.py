"""File parsers for different document types."""

import io
import logging
from typing import Any, Callable, Dict, List, Tuple

import pandas as pd
from docx import Document as DocxDocument
from pdfminer.high_level import extract_text as pdfminer_extract_text
from pptx import Presentation

from app.core.errors import ExtractionError

logger = logging.getLogger(__name__)

ParseResult = Tuple[str, Dict[str, Any]]

# Dictionary mapping MIME types to parser functions
PARSER_REGISTRY: Dict[str, Callable[[bytes, str], ParseResult]] = {}


def register_parser(content_types: List[str]):
    """Decorator to register a parser function for specific MIME types."""
    def decorator(func):
        for content_type in content_types:
            PARSER_REGISTRY[content_type] = func
        return func
    return decorator


def parse_file(data: bytes, content_type: str, filename: str) -> ParseResult:
    """Parse file bytes using the parser registered for ``content_type``.

    Args:
        data: Raw file bytes
        content_type: Declared MIME type (already validated)
        filename: Display name, used for metadata and log lines

    Returns:
        Tuple of (parsed_content, metadata)

    Raises:
        ExtractionError: if no parser exists, parsing fails or yields no text
    """
    parser = PARSER_REGISTRY.get(content_type or "")
    if parser is None:
        raise ExtractionError(f"No parser available for {content_type}")

    try:
        content, metadata = parser(data, filename)
    except ExtractionError:
        raise
    except Exception as e:
        logger.error(f"Error parsing {filename} as {content_type}: {e}")
        raise ExtractionError(f"Could not read {content_type} content: {e}") from e

    if not content or not content.strip():
        raise ExtractionError("No text content could be extracted")

    return content, metadata


def _decode_text(data: bytes) -> str:
    try:
        return data.decode("utf-8-sig")
    except UnicodeDecodeError:
        return data.decode("latin-1")


@register_parser(["text/plain"])
def parse_text(data: bytes, filename: str) -> ParseResult:
    """Parse a plain text file."""
    content = _decode_text(data)
    metadata = {
        "title": filename,
        "format": "text",
        "lines": content.count("\n") + 1
    }
    return content, metadata


@register_parser(["application/pdf"])
def parse_pdf(data: bytes, filename: str) -> ParseResult:
    """Parse a PDF file with pdfminer."""
    text = pdfminer_extract_text(io.BytesIO(data)) or ""
    # pdfminer separates pages with form feeds
    pages = text.count("\f") + 1 if text else 0
    metadata = {
        "title": filename,
        "format": "pdf",
        "pages": pages,
    }
    return text.replace("\f", "\n"), metadata


@register_parser(["application/vnd.openxmlformats-officedocument.wordprocessingml.document"])
def parse_docx(data: bytes, filename: str) -> ParseResult:
    """Parse a Word document, paragraphs first, then table cells."""
    doc = DocxDocument(io.BytesIO(data))
    parts = [paragraph.text for paragraph in doc.paragraphs if paragraph.text.strip()]
    for table in doc.tables:
        for row in table.rows:
            cells = [cell.text.strip() for cell in row.cells if cell.text.strip()]
            if cells:
                parts.append(" | ".join(cells))

    title = doc.core_properties.title or filename
    metadata = {
        "title": title,
        "format": "docx",
        "paragraphs": len(doc.paragraphs),
        "tables": len(doc.tables),
    }
    return "\n".join(parts), metadata


@register_parser(["application/vnd.openxmlformats-officedocument.presentationml.presentation"])
def parse_pptx(data: bytes, filename: str) -> ParseResult:
    """Parse a PowerPoint deck slide by slide."""
    presentation = Presentation(io.BytesIO(data))
    slides = []
    for number, slide in enumerate(presentation.slides, start=1):
        texts = []
        for shape in slide.shapes:
            if shape.has_text_frame and shape.text_frame.text.strip():
                texts.append(shape.text_frame.text.strip())
        if texts:
            slides.append(f"Slide {number}:\n" + "\n".join(texts))

    metadata = {
        "title": filename,
        "format": "pptx",
        "slides": len(presentation.slides),
    }
    return "\n\n".join(slides), metadata


@register_parser(["application/vnd.ms-powerpoint"])
def parse_ppt(data: bytes, filename: str) -> ParseResult:
    """Legacy binary PowerPoint is accepted for upload but cannot be read."""
    raise ExtractionError("Legacy PowerPoint (.ppt) files cannot be read, please convert to .pptx")


def _frames_to_text(frames: Dict[str, pd.DataFrame]) -> str:
    sections = []
    for sheet_name, frame in frames.items():
        if frame.empty:
            continue
        frame = frame.dropna(how="all").fillna("")
        sections.append(f"Sheet: {sheet_name}\n{frame.to_csv(index=False)}")
    return "\n\n".join(sections)


@register_parser(["text/csv"])
def parse_csv(data: bytes, filename: str) -> ParseResult:
    """Parse a CSV file into normalised CSV text."""
    frame = pd.read_csv(io.StringIO(_decode_text(data)))
    metadata = {
        "title": filename,
        "format": "csv",
        "rows": int(frame.shape[0]),
        "columns": [str(column) for column in frame.columns],
    }
    return frame.fillna("").to_csv(index=False), metadata


@register_parser([
    "application/vnd.openxmlformats-officedocument.spreadsheetml.sheet",
    "application/vnd.ms-excel",
])
def parse_spreadsheet(data: bytes, filename: str) -> ParseResult:
    """Parse every sheet of an Excel workbook."""
    frames = pd.read_excel(io.BytesIO(data), sheet_name=None)
    metadata = {
        "title": filename,
        "format": "spreadsheet",
        "sheets": list(frames.keys()),
    }
    return _frames_to_text(frames), metadata
