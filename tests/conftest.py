import io
from types import SimpleNamespace
from unittest.mock import AsyncMock, MagicMock

import pytest
from docx import Document

from templatex.models.template_models import Template
from templatex.services.doc_builder import DocumentExporter
from templatex.services.llm import LatexGenerator
from templatex.services.storage.s3_service import TemplateStore


# Fixture factory to build real DOCX bytes with the given paragraphs
@pytest.fixture
def make_docx_bytes():
    def _make_docx_bytes(*paragraphs: str) -> bytes:
        doc = Document()
        for text in paragraphs:
            doc.add_paragraph(text)
        bio = io.BytesIO()
        doc.save(bio)
        return bio.getvalue()

    return _make_docx_bytes


# Fixture factory mimicking the chat completions response shape
@pytest.fixture
def make_llm_response():
    def _make_llm_response(content):
        return SimpleNamespace(choices=[SimpleNamespace(message=SimpleNamespace(content=content))])

    return _make_llm_response


@pytest.fixture
def templates():
    return [
        Template(id="a.docx", name="a.docx", url="https://signed.example/uploads/a.docx"),
        Template(id="b.pdf", name="b.pdf", url="https://signed.example/uploads/b.pdf"),
    ]


@pytest.fixture
def store(templates):
    """TemplateStore stand-in listing `a.docx` and `b.pdf`."""
    mock_store = MagicMock(spec=TemplateStore)
    mock_store.list_templates = AsyncMock(return_value=list(templates))
    mock_store.download = AsyncMock(return_value=b"")
    return mock_store


@pytest.fixture
def llm_client():
    client = MagicMock()
    client.chat.completions.create = AsyncMock()
    return client


@pytest.fixture
def generator(llm_client):
    return LatexGenerator(llm_client, "test-model")


@pytest.fixture
def exporter():
    return DocumentExporter(
        filename="generated-latex-content.docx",
        creator="LegalAppa",
        title="Generated LaTeX Content",
        description="This document contains LaTeX content converted to DOCX.",
    )


# Fixture factory to build a real, minimal PDF with one line of Helvetica text per page
@pytest.fixture
def make_pdf_bytes():
    def _make_pdf_bytes(*page_texts: str) -> bytes:
        count = len(page_texts)
        kids = " ".join(f"{4 + 2 * i} 0 R" for i in range(count))
        objects = [
            b"<< /Type /Catalog /Pages 2 0 R >>",
            f"<< /Type /Pages /Kids [{kids}] /Count {count} >>".encode(),
            b"<< /Type /Font /Subtype /Type1 /BaseFont /Helvetica >>",
        ]
        for i, text in enumerate(page_texts):
            stream = f"BT /F1 12 Tf 72 720 Td ({text}) Tj ET".encode()
            objects.append(
                (
                    "<< /Type /Page /Parent 2 0 R /MediaBox [0 0 612 792] "
                    f"/Resources << /Font << /F1 3 0 R >> >> /Contents {5 + 2 * i} 0 R >>"
                ).encode()
            )
            objects.append(b"<< /Length %d >>\nstream\n" % len(stream) + stream + b"\nendstream")

        out = bytearray(b"%PDF-1.4\n")
        offsets = []
        for number, body in enumerate(objects, start=1):
            offsets.append(len(out))
            out += b"%d 0 obj\n" % number + body + b"\nendobj\n"
        xref_at = len(out)
        out += b"xref\n0 %d\n" % (len(objects) + 1)
        out += b"0000000000 65535 f \n"
        for offset in offsets:
            out += b"%010d 00000 n \n" % offset
        out += b"trailer\n<< /Size %d /Root 1 0 R >>\nstartxref\n%d\n%%%%EOF\n" % (len(objects) + 1, xref_at)
        return bytes(out)

    return _make_pdf_bytes
