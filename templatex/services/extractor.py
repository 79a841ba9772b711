import asyncio
import io
import logging
from collections.abc import Iterator
from enum import Enum

import pdfplumber
from docx import Document
from docx.oxml.ns import qn
from docx.table import Table
from docx.text.paragraph import Paragraph

from templatex.core.exceptions import ServiceError

# Configure module logger
logger = logging.getLogger(__name__)


class ExtractorError(ServiceError):
    """Base exception for extraction-related errors"""


class UnsupportedFormat(ExtractorError):
    """Raised when a file name matches none of the recognised template suffixes"""


class TemplateFormat(str, Enum):
    DOCX = "docx"
    PDF = "pdf"

    @property
    def suffix(self) -> str:
        return "." + self.value

    @classmethod
    def from_filename(cls, fname: str) -> "TemplateFormat":
        """Resolve the format tag from the file name suffix (case-sensitive)."""
        for fmt in cls:
            if fname.endswith(fmt.suffix):
                return fmt
        raise UnsupportedFormat(f"Unsupported file format for file '{fname}'")


def _block_texts(element, parent) -> Iterator[str]:
    """Yield paragraph text in document order, descending into table cells."""
    for child in element.iterchildren():
        if child.tag == qn("w:p"):
            yield Paragraph(child, parent).text
        elif child.tag == qn("w:tbl"):
            for row in Table(child, parent).rows:
                # Merged cells repeat in row.cells; read each underlying cell once
                seen: list = []
                for cell in row.cells:
                    if cell._tc in seen:
                        continue
                    seen.append(cell._tc)
                    yield from _block_texts(cell._tc, cell)


def _docx_to_text(content: bytes) -> str:
    """Raw text of every body paragraph and table cell; styles and structure are dropped."""
    doc = Document(io.BytesIO(content))
    return "\n".join(_block_texts(doc.element.body, doc))


def _pdf_to_text(content: bytes) -> str:
    """Words of each page joined by a space, one newline-terminated line per page."""
    text = ""
    with pdfplumber.open(io.BytesIO(content)) as pdf:
        for page in pdf.pages:
            words = page.extract_words()
            text += " ".join(w["text"] for w in words) + "\n"
    return text


_HANDLERS = {
    TemplateFormat.DOCX: _docx_to_text,
    TemplateFormat.PDF: _pdf_to_text,
}


async def extract_as(content: bytes, fmt: TemplateFormat, request_id: str = "-") -> str:
    """Extract plain text from *content* using the strategy for *fmt*."""
    logger.info("[%s] EXTRACT: Starting %s extraction (%d bytes)", request_id, fmt.value.upper(), len(content))
    try:
        text = await asyncio.to_thread(_HANDLERS[fmt], content)
    except Exception as e:
        logger.error("[%s] EXTRACT: Failed to extract text from %s: %s", request_id, fmt.value.upper(), e, exc_info=True)
        raise ExtractorError(f"Failed to extract text from {fmt.value.upper()} content") from e

    logger.info("[%s] EXTRACT: Extracted %d chars", request_id, len(text))
    return text


async def extract(content: bytes, fname: str, request_id: str = "-") -> str:
    """Extract text from a file based on its name suffix.

    Raises:
        UnsupportedFormat: If *fname* ends in neither ``.docx`` nor ``.pdf``.
        ExtractorError: If the content cannot be parsed.
    """
    fmt = TemplateFormat.from_filename(fname)
    return await extract_as(content, fmt, request_id)
