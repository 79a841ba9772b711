"""Application configuration settings.

This module defines the application-wide settings using Pydantic's BaseSettings.
It allows for loading configurations from environment variables and .env files,
providing type validation and default values.
"""

from pydantic import Field
from pydantic import field_validator
from pydantic_settings import BaseSettings

# Default list of CORS allowed origins
DEFAULT_CORS_ORIGINS = [
    "http://localhost:3000",
    "http://localhost:8000",
    "https://localhost:3000",
    "https://localhost:8000",
    "http://0.0.0.0:8000",
]


class Settings(BaseSettings):
    """Manages application settings, loading them from environment variables or an .env file.

    Attributes:
        openrouter_api_key: API key for OpenRouter services.
        llm_base_url: Base URL of the OpenAI-compatible chat completions API.
        model_id: Identifier for the language model used for LaTeX generation.
        llm_max_tokens: Upper bound on tokens generated per request.
        llm_temperature: Sampling temperature for generation.
        LLM_CONNECT_TIMEOUT: LLM client connect timeout in seconds.
        LLM_READ_TIMEOUT: LLM client read timeout in seconds.
        aws_access_key_id: AWS access key for the template bucket.
        aws_secret_access_key: AWS secret key for the template bucket.
        aws_region: AWS region of the template bucket.
        s3_bucket_name: Bucket holding the uploaded templates.
        templates_prefix: Key prefix under which templates are listed.
        presigned_url_expiry: Lifetime in seconds of resolved download URLs.
        download_timeout: Timeout in seconds for fetching a template.
        export_filename: File name of the exported document.
        export_creator: Creator written into the exported document's metadata.
        export_title: Title written into the exported document's metadata.
        export_description: Description written into the exported document's metadata.
        session_ttl: Seconds an untouched session is kept before the registry evicts it.
        log_level: Level of the templatex loggers (DEBUG, INFO, ...).
        cors_allowed_origins: List of allowed origins for CORS.
    """

    openrouter_api_key: str | None = Field(default=None)
    llm_base_url: str = Field(default="https://openrouter.ai/api/v1")
    model_id: str = Field(default="google/gemini-flash-1.5")
    llm_max_tokens: int = Field(default=4000)
    llm_temperature: float = Field(default=0.2)

    LLM_CONNECT_TIMEOUT: float = Field(default=10.0, description="LLM client connect timeout in seconds.")
    LLM_READ_TIMEOUT: float = Field(default=180.0, description="LLM client read timeout in seconds.")

    aws_access_key_id: str | None = Field(default=None)
    aws_secret_access_key: str | None = Field(default=None)
    aws_region: str = Field(default="eu-north-1")
    s3_bucket_name: str | None = Field(default=None)
    templates_prefix: str = Field(default="uploads/")
    presigned_url_expiry: int = Field(default=3600)
    download_timeout: float = Field(default=30.0)

    export_filename: str = Field(default="generated-latex-content.docx")
    export_creator: str = Field(default="LegalAppa")
    export_title: str = Field(default="Generated LaTeX Content")
    export_description: str = Field(default="This document contains LaTeX content converted to DOCX.")

    session_ttl: int = Field(default=3600)
    log_level: str = Field(default="INFO")

    cors_allowed_origins: list[str] = Field(
        default_factory=lambda: list(DEFAULT_CORS_ORIGINS),
    )

    model_config = {
        "env_file": ".env",
        "protected_namespaces": ("settings_",),
        "env_prefix": "",
        "extra": "ignore",
    }

    @field_validator("cors_allowed_origins", mode="before")  # type: ignore
    @classmethod
    def assemble_cors_origins(cls, v: str | list[str] | None) -> list[str]:
        """Assembles the list of CORS allowed origins.

        If 'v' is a string, it splits it by commas. If 'v' is already a list,
        it's used directly. Otherwise, returns the default list of origins.
        """
        if isinstance(v, str) and v:
            return [origin.strip() for origin in v.split(",")]
        elif isinstance(v, list):
            return v
        return list(DEFAULT_CORS_ORIGINS)

    @field_validator("templates_prefix")
    @classmethod
    def normalise_prefix(cls, v: str) -> str:
        """Ensure a non-empty prefix ends with '/' so only that folder is listed."""
        if v and not v.endswith("/"):
            return v + "/"
        return v


settings = Settings()
