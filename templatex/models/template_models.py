from enum import Enum

from pydantic import BaseModel
from pydantic import ConfigDict
from pydantic import Field

GENERATION_ERROR_PLACEHOLDER = "An error occurred while generating the LaTeX content."


class Template(BaseModel):
    """A stored source document available for extraction."""

    model_config = ConfigDict(frozen=True)

    id: str
    name: str
    url: str


class SessionPhase(str, Enum):
    IDLE = "idle"
    LISTED = "listed"
    SELECTED = "selected"
    SUBMITTING = "submitting"
    GENERATED = "generated"


class GenerationErrorKind(str, Enum):
    REMOTE = "remote"
    EMPTY_RESPONSE = "empty_response"
    UNEXPECTED = "unexpected"


class GenerationResult(BaseModel):
    """Outcome of one generation request: either generated text or an error kind."""

    model_config = ConfigDict(frozen=True)

    text: str | None = None
    error: GenerationErrorKind | None = None

    @classmethod
    def success(cls, text: str) -> "GenerationResult":
        return cls(text=text)

    @classmethod
    def failure(cls, kind: GenerationErrorKind) -> "GenerationResult":
        return cls(error=kind)

    @property
    def ok(self) -> bool:
        return self.error is None

    @property
    def display_text(self) -> str:
        """Text shown to the user; failures render as the fixed placeholder."""
        if self.error is not None:
            return GENERATION_ERROR_PLACEHOLDER
        return self.text or ""


class SessionState(BaseModel):
    """Snapshot of a template session as returned by the API."""

    session_id: str
    phase: SessionPhase
    templates: list[Template] = Field(default_factory=list)
    selected_template: str | None = None
    extracted_text: str | None = None
    details: str = ""
    response_text: str = ""
    generation_error: GenerationErrorKind | None = None
    in_flight: bool = False


class SelectionPayload(BaseModel):
    template_id: str = Field(..., description="Identifier of a listed template.")


class DetailsPayload(BaseModel):
    details: str = Field(default="", description="Free-text instructions for the generator.")
