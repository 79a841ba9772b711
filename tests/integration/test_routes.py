import io
from unittest.mock import AsyncMock

import pytest
from docx import Document
from fastapi import status
from fastapi.testclient import TestClient

from templatex.generation_logic.template_session import SessionRegistry
from templatex.main import create_app
from templatex.models.template_models import GENERATION_ERROR_PLACEHOLDER
from templatex.services.doc_builder import DOCX_MEDIA_TYPE, ExportError
from templatex.services.storage.s3_service import StoreUnavailable

# ---------------------------------------------------------------------------
# Fixtures
# ---------------------------------------------------------------------------


@pytest.fixture()
def registry(store, generator, exporter):
    return SessionRegistry(store, generator, exporter)


@pytest.fixture()
def client(registry):
    """Client for an app wired to stand-in services; no real clients are built."""
    return TestClient(create_app(registry=registry))


@pytest.fixture()
def session_id(client):
    resp = client.post("/api/sessions")
    assert resp.status_code == status.HTTP_201_CREATED
    return resp.json()["session_id"]


# ---------------------------------------------------------------------------
# Sessions
# ---------------------------------------------------------------------------


def test_health(client):
    resp = client.get("/health")
    assert resp.status_code == status.HTTP_200_OK
    assert resp.json() == {"status": "ok"}


def test_open_session_lists_templates(client):
    resp = client.post("/api/sessions")

    assert resp.status_code == status.HTTP_201_CREATED
    body = resp.json()
    assert body["phase"] == "listed"
    assert [t["name"] for t in body["templates"]] == ["a.docx", "b.pdf"]
    assert body["response_text"] == ""
    assert body["in_flight"] is False


def test_open_session_with_store_down_is_idle(client, store):
    store.list_templates.side_effect = StoreUnavailable("down")

    resp = client.post("/api/sessions")

    assert resp.status_code == status.HTTP_201_CREATED
    assert resp.json()["phase"] == "idle"
    assert resp.json()["templates"] == []


def test_unknown_session_is_404(client):
    resp = client.get("/api/sessions/does-not-exist")
    assert resp.status_code == status.HTTP_404_NOT_FOUND


def test_close_session(client, session_id):
    assert client.delete(f"/api/sessions/{session_id}").status_code == status.HTTP_204_NO_CONTENT
    assert client.get(f"/api/sessions/{session_id}").status_code == status.HTTP_404_NOT_FOUND


# ---------------------------------------------------------------------------
# Selection / generation / export
# ---------------------------------------------------------------------------


def test_select_unknown_template_is_404(client, session_id):
    resp = client.post(f"/api/sessions/{session_id}/selection", json={"template_id": "nope.pdf"})
    assert resp.status_code == status.HTTP_404_NOT_FOUND


def test_select_missing_body_is_422(client, session_id):
    resp = client.post(f"/api/sessions/{session_id}/selection", json={})
    assert resp.status_code == 422
    assert resp.json()["error"] == "Input validation failed"


def test_generation_without_selection_is_noop(client, session_id, llm_client):
    resp = client.post(f"/api/sessions/{session_id}/generation")

    assert resp.status_code == status.HTTP_200_OK
    assert resp.json()["phase"] == "listed"
    llm_client.chat.completions.create.assert_not_called()


def test_full_flow_exports_generated_latex(client, session_id, store, llm_client, make_docx_bytes, make_llm_response):
    generated = "\\documentclass{article}\n\\begin{document}\nHello\n\\end{document}"
    store.download.return_value = make_docx_bytes("Hello")
    llm_client.chat.completions.create.return_value = make_llm_response(generated)

    resp = client.post(f"/api/sessions/{session_id}/selection", json={"template_id": "a.docx"})
    assert resp.json()["phase"] == "selected"
    assert resp.json()["extracted_text"] == "Hello"

    resp = client.put(f"/api/sessions/{session_id}/details", json={"details": "formal tone"})
    assert resp.json()["details"] == "formal tone"

    resp = client.post(f"/api/sessions/{session_id}/generation")
    assert resp.json()["phase"] == "generated"
    assert resp.json()["response_text"] == generated
    assert resp.json()["generation_error"] is None

    resp = client.get(f"/api/sessions/{session_id}/export")
    assert resp.status_code == status.HTTP_200_OK
    assert resp.headers["content-type"] == DOCX_MEDIA_TYPE
    assert resp.headers["content-disposition"] == "attachment; filename=generated-latex-content.docx"
    doc = Document(io.BytesIO(resp.content))
    assert [r.text for r in doc.paragraphs[0].runs] == [generated]


def test_failed_generation_reports_placeholder(client, session_id, store, llm_client, make_docx_bytes):
    store.download.return_value = make_docx_bytes("Hello")
    llm_client.chat.completions.create.side_effect = RuntimeError("network down")
    client.post(f"/api/sessions/{session_id}/selection", json={"template_id": "a.docx"})

    resp = client.post(f"/api/sessions/{session_id}/generation")

    assert resp.json()["response_text"] == GENERATION_ERROR_PLACEHOLDER
    assert resp.json()["generation_error"] == "unexpected"


def test_export_failure_returns_no_content(client, session_id, exporter, monkeypatch):
    monkeypatch.setattr(exporter, "export_as_document", AsyncMock(side_effect=ExportError("boom")))

    resp = client.get(f"/api/sessions/{session_id}/export")

    assert resp.status_code == status.HTTP_204_NO_CONTENT
    assert resp.content == b""
