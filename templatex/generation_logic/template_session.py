"""Per-user editing session driving list → select → extract → generate → export."""

import logging
import time
from uuid import uuid4

from templatex.core.exceptions import SessionNotFound
from templatex.core.exceptions import TemplateNotFound
from templatex.models.template_models import GenerationResult
from templatex.models.template_models import SessionPhase
from templatex.models.template_models import SessionState
from templatex.models.template_models import Template
from templatex.services.doc_builder import DocumentExporter
from templatex.services.doc_builder import ExportError
from templatex.services.extractor import ExtractorError
from templatex.services.extractor import TemplateFormat
from templatex.services.extractor import extract_as
from templatex.services.llm import LatexGenerator
from templatex.services.storage.s3_service import StoreUnavailable
from templatex.services.storage.s3_service import TemplateStore

__all__ = [
    "SessionRegistry",
    "TemplateSession",
]

logger = logging.getLogger(__name__)


class TemplateSession:
    """Holds the state of one single-item editing session.

    At most one extracted text and one generation result are held at a time;
    each new selection or generation overwrites the previous one.
    """

    def __init__(
        self,
        store: TemplateStore,
        generator: LatexGenerator,
        exporter: DocumentExporter,
        session_id: str | None = None,
    ) -> None:
        self.session_id = session_id or str(uuid4())
        self.store = store
        self.generator = generator
        self.exporter = exporter

        self.phase = SessionPhase.IDLE
        self.templates: list[Template] = []
        self.selected_template: str | None = None
        self.extracted_text: str | None = None
        self.details = ""
        self.result: GenerationResult | None = None
        self.in_flight = False

    @property
    def response_text(self) -> str:
        return self.result.display_text if self.result is not None else ""

    async def mount(self) -> None:
        """Load the template listing; a failure is logged and leaves the session idle."""
        try:
            self.templates = await self.store.list_templates()
        except StoreUnavailable as e:
            logger.error("[%s] Error fetching templates: %s", self.session_id, e)
            return
        self.phase = SessionPhase.LISTED
        logger.info("[%s] Session listed %d templates", self.session_id, len(self.templates))

    def _find_template(self, template_id: str) -> Template:
        for template in self.templates:
            if template.id == template_id:
                return template
        raise TemplateNotFound(f"Template '{template_id}' is not in this session's listing")

    async def select_template(self, template_id: str) -> None:
        """Download and extract a listed template.

        Store and extraction failures are logged and leave the state unchanged.

        Raises:
            TemplateNotFound: If *template_id* was not listed by this session.
        """
        template = self._find_template(template_id)
        try:
            fmt = TemplateFormat.from_filename(template.name)
            content = await self.store.download(template)
            text = await extract_as(content, fmt, self.session_id)
        except (StoreUnavailable, ExtractorError) as e:
            logger.error("[%s] Error extracting text from template %s: %s", self.session_id, template.name, e)
            return

        self.selected_template = template.name
        self.extracted_text = text
        # A pending generation keeps the session in SUBMITTING until it resolves
        if not self.in_flight:
            self.phase = SessionPhase.SELECTED

    def update_details(self, details: str) -> None:
        self.details = details

    async def submit(self) -> bool:
        """Send the selected text and details for generation.

        Returns False without touching any state when no text is selected or a
        request is already in flight.
        """
        if not self.extracted_text:
            logger.debug("[%s] Submit ignored: no template text selected", self.session_id)
            return False
        if self.in_flight:
            logger.info("[%s] Submit ignored: generation already in flight", self.session_id)
            return False

        self.in_flight = True
        self.phase = SessionPhase.SUBMITTING
        try:
            self.result = await self.generator.generate_result(self.extracted_text, self.details)
        finally:
            self.in_flight = False
        self.phase = SessionPhase.GENERATED
        return True

    async def export(self) -> bytes | None:
        """Serialize the current result text; failures are logged and yield None."""
        try:
            return await self.exporter.export_as_document(self.response_text)
        except ExportError as e:
            logger.error("[%s] Error generating DOCX: %s", self.session_id, e)
            return None

    def snapshot(self) -> SessionState:
        return SessionState(
            session_id=self.session_id,
            phase=self.phase,
            templates=list(self.templates),
            selected_template=self.selected_template,
            extracted_text=self.extracted_text,
            details=self.details,
            response_text=self.response_text,
            generation_error=self.result.error if self.result is not None else None,
            in_flight=self.in_flight,
        )


class SessionRegistry:
    """Creates, looks up and discards sessions sharing one set of service clients.

    Sessions untouched for longer than ``ttl`` seconds are evicted on the next
    ``open`` or ``get``; a session with a generation in flight is never evicted.
    """

    def __init__(
        self,
        store: TemplateStore,
        generator: LatexGenerator,
        exporter: DocumentExporter,
        ttl: int = 3600,
    ) -> None:
        self.store = store
        self.generator = generator
        self.exporter = exporter
        self.ttl = ttl
        self._sessions: dict[str, TemplateSession] = {}
        self._last_access: dict[str, float] = {}

    def _evict_expired(self) -> None:
        now = time.time()
        for session_id, seen in list(self._last_access.items()):
            if now - seen <= self.ttl or self._sessions[session_id].in_flight:
                continue
            del self._sessions[session_id]
            del self._last_access[session_id]
            logger.info("[%s] Session expired after %ds idle", session_id, self.ttl)

    async def open(self) -> TemplateSession:
        self._evict_expired()
        session = TemplateSession(self.store, self.generator, self.exporter)
        self._sessions[session.session_id] = session
        self._last_access[session.session_id] = time.time()
        await session.mount()
        return session

    def get(self, session_id: str) -> TemplateSession:
        self._evict_expired()
        try:
            session = self._sessions[session_id]
        except KeyError:
            raise SessionNotFound(f"Session '{session_id}' not found") from None
        self._last_access[session_id] = time.time()
        return session

    def close(self, session_id: str) -> None:
        if self._sessions.pop(session_id, None) is None:
            raise SessionNotFound(f"Session '{session_id}' not found")
        self._last_access.pop(session_id, None)
        logger.info("[%s] Session closed", session_id)
