# templatex/services/storage/s3_service.py
import asyncio
import logging
import posixpath
from typing import Any

import httpx
from botocore.exceptions import BotoCoreError
from botocore.exceptions import ClientError

from templatex.core.exceptions import ServiceError
from templatex.models.template_models import Template

logger = logging.getLogger(__name__)


class StoreUnavailable(ServiceError):
    """Raised when the template store cannot be listed or a template cannot be fetched."""


class TemplateStore:
    """Read-only view over the templates uploaded under one prefix of an S3 bucket.

    Args:
        s3_client: A boto3 S3 client.
        bucket: Name of the bucket holding the templates.
        prefix: Key prefix to list; only direct children are returned.
        http_client: Async HTTP client used to fetch resolved addresses.
        url_expiry: Lifetime in seconds of the presigned download URLs.
    """

    def __init__(
        self,
        s3_client: Any,
        bucket: str | None,
        prefix: str,
        http_client: httpx.AsyncClient,
        url_expiry: int = 3600,
    ) -> None:
        self._s3 = s3_client
        self._bucket = bucket
        self._prefix = prefix
        self._http = http_client
        self._url_expiry = url_expiry

    def _list_keys(self) -> list[str]:
        keys: list[str] = []
        paginator = self._s3.get_paginator("list_objects_v2")
        for page in paginator.paginate(Bucket=self._bucket, Prefix=self._prefix, Delimiter="/"):
            for obj in page.get("Contents", []):
                key = obj["Key"]
                # Ignore "folder" placeholders (the prefix itself or keys ending in /)
                if key.endswith("/"):
                    continue
                keys.append(key)
        return keys

    def _resolve_address(self, key: str) -> Template:
        url = self._s3.generate_presigned_url(
            ClientMethod="get_object",
            Params={"Bucket": self._bucket, "Key": key},
            ExpiresIn=self._url_expiry,
        )
        name = posixpath.basename(key)
        return Template(id=name, name=name, url=url)

    async def list_templates(self) -> list[Template]:
        """List every template under the prefix with a resolved download URL.

        Address resolution runs for all objects at once and any single failure
        fails the whole listing.

        Raises:
            StoreUnavailable: If the bucket is not configured, the listing fails
                or any address cannot be resolved.
        """
        if not self._s3 or not self._bucket:
            logger.error("S3 client or bucket not configured. Cannot list templates.")
            raise StoreUnavailable("Template store is not configured")

        try:
            keys = await asyncio.to_thread(self._list_keys)
            logger.info("Listed %d objects under s3://%s/%s", len(keys), self._bucket, self._prefix)
            templates = await asyncio.gather(*(asyncio.to_thread(self._resolve_address, key) for key in keys))
        except (ClientError, BotoCoreError) as e:
            logger.error("Error listing templates in bucket %s: %s", self._bucket, e, exc_info=True)
            raise StoreUnavailable(f"Could not list templates: {e}") from e
        except Exception as e:
            logger.exception("Unexpected error listing templates in bucket %s", self._bucket)
            raise StoreUnavailable(f"Unexpected error listing templates: {e}") from e

        return list(templates)

    async def download(self, template: Template) -> bytes:
        """Fetch the raw bytes of *template* from its resolved address.

        Raises:
            StoreUnavailable: On transport errors or a non-success status.
        """
        try:
            response = await self._http.get(template.url)
            response.raise_for_status()
        except httpx.HTTPStatusError as e:
            logger.error("Download of template %s failed with status %d", template.name, e.response.status_code)
            raise StoreUnavailable(f"Could not download {template.name}: HTTP {e.response.status_code}") from e
        except httpx.HTTPError as e:
            logger.error("Transport error downloading template %s: %s", template.name, e)
            raise StoreUnavailable(f"Could not download {template.name}: {e}") from e

        logger.info("Successfully downloaded template %s (%d bytes)", template.name, len(response.content))
        return response.content
