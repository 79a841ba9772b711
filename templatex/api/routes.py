import logging

from fastapi import APIRouter
from fastapi import Depends
from fastapi import Request
from fastapi import Response
from fastapi import status
from fastapi.responses import StreamingResponse

from templatex.generation_logic.template_session import SessionRegistry
from templatex.generation_logic.template_session import TemplateSession
from templatex.models.template_models import DetailsPayload
from templatex.models.template_models import SelectionPayload
from templatex.models.template_models import SessionState
from templatex.services.doc_builder import DOCX_MEDIA_TYPE

# Configure module logger
logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api")


def get_registry(request: Request) -> SessionRegistry:
    return request.app.state.registry


def get_session(session_id: str, registry: SessionRegistry = Depends(get_registry)) -> TemplateSession:
    return registry.get(session_id)


@router.post("/sessions", status_code=status.HTTP_201_CREATED, tags=["Sessions"])
async def open_session(registry: SessionRegistry = Depends(get_registry)) -> SessionState:
    """Opens a session and loads the template listing.

    A listing failure is logged server-side; the session is still returned,
    in the `idle` phase with no templates.
    """
    session = await registry.open()
    logger.info("[%s] Session opened in phase %s", session.session_id, session.phase.value)
    return session.snapshot()


@router.get("/sessions/{session_id}", tags=["Sessions"])
async def read_session(session: TemplateSession = Depends(get_session)) -> SessionState:
    return session.snapshot()


@router.delete("/sessions/{session_id}", status_code=status.HTTP_204_NO_CONTENT, tags=["Sessions"])
async def close_session(session_id: str, registry: SessionRegistry = Depends(get_registry)) -> Response:
    registry.close(session_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.post("/sessions/{session_id}/selection", tags=["Templates"])
async def select_template(payload: SelectionPayload, session: TemplateSession = Depends(get_session)) -> SessionState:
    """Downloads the chosen template and extracts its text.

    Extraction failures leave the session unchanged; compare `selected_template`
    to tell whether the selection took effect.
    """
    logger.info("[%s] Selection requested: %s", session.session_id, payload.template_id)
    await session.select_template(payload.template_id)
    return session.snapshot()


@router.put("/sessions/{session_id}/details", tags=["Generation"])
async def update_details(payload: DetailsPayload, session: TemplateSession = Depends(get_session)) -> SessionState:
    session.update_details(payload.details)
    return session.snapshot()


@router.post("/sessions/{session_id}/generation", tags=["Generation"])
async def submit_generation(session: TemplateSession = Depends(get_session)) -> SessionState:
    """Sends the selected text and details to the model.

    Without selected text, or while a request is in flight, nothing happens
    and the current state is returned. A failed generation is reported as the
    fixed placeholder in `response_text`.
    """
    submitted = await session.submit()
    logger.info("[%s] Generation submit handled (issued=%s)", session.session_id, submitted)
    return session.snapshot()


@router.get(
    "/sessions/{session_id}/export",
    tags=["Export"],
    responses={204: {"description": "Document export failed; see server logs."}},
)
async def export_document(session: TemplateSession = Depends(get_session)) -> Response:
    """Returns the current result text as a DOCX attachment."""
    docx_bytes = await session.export()
    if docx_bytes is None:
        return Response(status_code=status.HTTP_204_NO_CONTENT)
    return StreamingResponse(
        iter([docx_bytes]),
        media_type=DOCX_MEDIA_TYPE,
        headers={"Content-Disposition": f"attachment; filename={session.exporter.filename}"},
    )
