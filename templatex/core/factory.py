"""Builds the service clients from settings.

Every external handle (S3, HTTP, LLM) is created here and passed explicitly
into the services, so tests can hand in substitutes instead.
"""

import logging
from typing import Any

import boto3
import httpx
from botocore.client import Config
from openai import AsyncOpenAI

from templatex.core.config import Settings
from templatex.generation_logic.template_session import SessionRegistry
from templatex.services.doc_builder import DocumentExporter
from templatex.services.llm import LatexGenerator
from templatex.services.storage.s3_service import TemplateStore

logger = logging.getLogger(__name__)


def create_s3_client(settings: Settings) -> Any:
    if not all([settings.aws_access_key_id, settings.aws_secret_access_key, settings.s3_bucket_name]):
        logger.error("AWS S3 credentials or bucket name not configured. Template listing will likely fail.")
    session = boto3.session.Session(
        aws_access_key_id=settings.aws_access_key_id,
        aws_secret_access_key=settings.aws_secret_access_key,
        region_name=settings.aws_region,
    )
    client = session.client("s3", config=Config(signature_version="s3v4"))
    logger.info("S3 client initialized for bucket: %s in region: %s", settings.s3_bucket_name, settings.aws_region)
    return client


def create_http_client(settings: Settings) -> httpx.AsyncClient:
    return httpx.AsyncClient(timeout=settings.download_timeout, follow_redirects=True)


def create_llm_client(settings: Settings) -> AsyncOpenAI:
    if not settings.openrouter_api_key:
        logger.error("OPENROUTER_API_KEY not configured. LaTeX generation requests will fail.")
    return AsyncOpenAI(
        base_url=settings.llm_base_url,
        # The SDK refuses a missing key at construction; the API rejects an empty one per request
        api_key=settings.openrouter_api_key or "",
        default_headers={"X-Title": "templatex"},
        timeout=httpx.Timeout(settings.LLM_CONNECT_TIMEOUT, read=settings.LLM_READ_TIMEOUT),
        max_retries=0,
    )


def create_exporter(settings: Settings) -> DocumentExporter:
    return DocumentExporter(
        filename=settings.export_filename,
        creator=settings.export_creator,
        title=settings.export_title,
        description=settings.export_description,
    )


def create_registry(settings: Settings, http_client: httpx.AsyncClient) -> SessionRegistry:
    """Wire the store, generator and exporter into a session registry."""
    store = TemplateStore(
        create_s3_client(settings),
        settings.s3_bucket_name,
        settings.templates_prefix,
        http_client,
        url_expiry=settings.presigned_url_expiry,
    )
    generator = LatexGenerator(
        create_llm_client(settings),
        settings.model_id,
        max_tokens=settings.llm_max_tokens,
        temperature=settings.llm_temperature,
    )
    return SessionRegistry(store, generator, create_exporter(settings), ttl=settings.session_ttl)
