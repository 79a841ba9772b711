import io

import pytest
from docx import Document

from templatex.services.doc_builder import ExportError


def _read(data: bytes):
    return Document(io.BytesIO(data))


@pytest.mark.asyncio
async def test_export_embeds_text_as_single_run(exporter):
    latex = "\\documentclass{article}\n\\begin{document}\n\\centering Hello\n\\end{document}"

    data = await exporter.export_as_document(latex)

    assert data[:2] == b"PK"
    doc = _read(data)
    assert len(doc.sections) == 1
    assert len(doc.paragraphs) == 1
    assert len(doc.paragraphs[0].runs) == 1
    assert doc.paragraphs[0].runs[0].text == latex


@pytest.mark.asyncio
async def test_export_sets_document_metadata(exporter):
    doc = _read(await exporter.export_as_document("x"))

    assert doc.core_properties.author == "LegalAppa"
    assert doc.core_properties.title == "Generated LaTeX Content"
    assert doc.core_properties.comments == "This document contains LaTeX content converted to DOCX."


@pytest.mark.asyncio
async def test_export_empty_text(exporter):
    doc = _read(await exporter.export_as_document(""))

    assert [p.text for p in doc.paragraphs] == [""]


@pytest.mark.asyncio
async def test_export_twice_gives_identical_content(exporter):
    first = _read(await exporter.export_as_document("\\LaTeX"))
    second = _read(await exporter.export_as_document("\\LaTeX"))

    assert [r.text for r in first.paragraphs[0].runs] == [r.text for r in second.paragraphs[0].runs] == ["\\LaTeX"]


@pytest.mark.asyncio
async def test_export_failure_raises_export_error(exporter, monkeypatch):
    monkeypatch.setattr(
        "templatex.services.doc_builder.Document",
        lambda: (_ for _ in ()).throw(Exception("bad template")),
    )

    with pytest.raises(ExportError):
        await exporter.export_as_document("x")
