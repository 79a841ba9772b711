import asyncio
import io
import logging
from uuid import uuid4

from docx import Document

from templatex.core.exceptions import ServiceError

# Configure module logger
logger = logging.getLogger(__name__)

DOCX_MEDIA_TYPE = "application/vnd.openxmlformats-officedocument.wordprocessingml.document"


class ExportError(ServiceError):
    """Raised when DOCX generation fails"""


class DocumentExporter:
    """Builds a single-paragraph DOCX holding text verbatim.

    Args:
        filename: Name the exported file is saved under.
        creator: Author written into the core properties.
        title: Title written into the core properties.
        description: Comments written into the core properties.
    """

    def __init__(self, filename: str, creator: str = "", title: str = "", description: str = "") -> None:
        self.filename = filename
        self.creator = creator
        self.title = title
        self.description = description

    def _build(self, text: str) -> bytes:
        doc = Document()
        props = doc.core_properties
        props.author = self.creator
        props.title = self.title
        props.comments = self.description

        # The default document has one section; the text goes in as one literal run
        par = doc.add_paragraph()
        par.add_run(text)

        bio = io.BytesIO()
        doc.save(bio)
        return bio.getvalue()

    async def export_as_document(self, text: str) -> bytes:
        """Serialize *text* into DOCX bytes, off the event loop."""
        rid = str(uuid4())
        logger.info("[%s] Exporting %d chars to %s", rid, len(text), self.filename)
        try:
            data = await asyncio.to_thread(self._build, text)
        except Exception as err:
            logger.exception("[%s] Document export failed", rid)
            raise ExportError("unexpected serialization error") from err
        logger.info("[%s] Document ready (%d bytes)", rid, len(data))
        return data
