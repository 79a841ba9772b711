import logging
import pathlib
from uuid import uuid4

import jinja2
from openai import AsyncOpenAI
from openai import OpenAIError

from templatex.core.exceptions import ServiceError
from templatex.models.template_models import GenerationErrorKind
from templatex.models.template_models import GenerationResult

# Configure module logger
logger = logging.getLogger(__name__)


class GenerationError(ServiceError):
    """Raised when the remote LaTeX generation fails"""

    def __init__(self, message: str, kind: GenerationErrorKind = GenerationErrorKind.UNEXPECTED) -> None:
        super().__init__(message)
        self.kind = kind


# --- Reusable Jinja2 Environment ---
PROMPT_DIR = pathlib.Path(__file__).parent / "prompt_templates"
PROMPT_TEMPLATE = "latex_conversion.jinja2"
env = jinja2.Environment(loader=jinja2.FileSystemLoader(PROMPT_DIR), undefined=jinja2.StrictUndefined)


def build_prompt(extracted_text: str, details: str) -> str:
    """Embed the extracted text and the user's details verbatim in the LaTeX conversion prompt."""
    try:
        template = env.get_template(PROMPT_TEMPLATE)
    except jinja2.TemplateNotFound:
        logger.error("Template not found: %s", PROMPT_TEMPLATE)
        raise GenerationError(f"Internal configuration error: Template '{PROMPT_TEMPLATE}' not found.") from None
    return template.render(extracted_text=extracted_text, details=details)


class LatexGenerator:
    """Sends the LaTeX conversion prompt to an OpenAI-compatible chat completions API.

    Args:
        client: Configured ``AsyncOpenAI`` handle.
        model_id: Model used for every request.
        max_tokens: Upper bound on generated tokens.
        temperature: Sampling temperature.
    """

    def __init__(self, client: AsyncOpenAI, model_id: str, max_tokens: int = 4000, temperature: float = 0.2) -> None:
        self.client = client
        self.model_id = model_id
        self.max_tokens = max_tokens
        self.temperature = temperature

    async def generate(self, extracted_text: str, details: str) -> str:
        """Return the model's text output for the composed prompt, unmodified.

        Raises:
            GenerationError: On API failures or a reply without text content.
        """
        request_id = str(uuid4())
        prompt = build_prompt(extracted_text, details)
        logger.info("[%s] Making LLM API call with model: %s (prompt %d chars)", request_id, self.model_id, len(prompt))

        try:
            rsp = await self.client.chat.completions.create(
                model=self.model_id,
                messages=[
                    {"role": "user", "content": prompt},
                ],
                max_tokens=self.max_tokens,
                temperature=self.temperature,
            )
        except OpenAIError as e:
            logger.error("[%s] OpenAI API error: %s", request_id, str(e), exc_info=True)
            raise GenerationError(f"OpenAI API error: {str(e)}", GenerationErrorKind.REMOTE) from e
        except Exception as e:
            logger.exception("[%s] Unexpected error in LLM call", request_id)
            raise GenerationError(f"Unexpected error in LLM call: {str(e)}") from e

        if not rsp or not getattr(rsp, "choices", None):
            logger.error("[%s] Invalid response structure from LLM API: %s", request_id, str(rsp))
            raise GenerationError("Invalid response structure from LLM API", GenerationErrorKind.EMPTY_RESPONSE)

        message = rsp.choices[0].message
        content = getattr(message, "content", None) if message is not None else None
        if content is None:
            logger.error("[%s] No content in LLM message: %s", request_id, str(message))
            raise GenerationError("No content in LLM API response", GenerationErrorKind.EMPTY_RESPONSE)

        logger.debug("[%s] LLM response received, length: %d chars", request_id, len(content))
        return content

    async def generate_result(self, extracted_text: str, details: str) -> GenerationResult:
        """Run :meth:`generate` and fold the outcome into a ``GenerationResult``."""
        try:
            return GenerationResult.success(await self.generate(extracted_text, details))
        except GenerationError as e:
            logger.error("Error generating LaTeX content: %s", e)
            return GenerationResult.failure(e.kind)
