"""Object storage for uploaded media (S3-compatible, e.g. Cloudflare R2)."""
import asyncio
import logging
from abc import ABC, abstractmethod
from typing import Optional

import boto3
from botocore.exceptions import BotoCoreError, ClientError

from marketplace.config import settings
from marketplace.domain.exceptions import StorageUnavailableException

logger = logging.getLogger(__name__)


class ObjectStorage(ABC):
    """Abstract object storage interface."""

    @abstractmethod
    async def put_object(self, key: str, body: bytes, content_type: str) -> str:
        """Store an object and return its public URL."""
        pass


class S3ObjectStorage(ObjectStorage):
    """boto3-backed storage; calls run in a worker thread."""

    def __init__(
        self,
        bucket: str = settings.storage_bucket,
        public_url: str = settings.storage_public_url,
        client=None,
    ):
        self.bucket = bucket
        self.public_url = public_url.rstrip("/")
        self._client = client

    @property
    def client(self):
        if self._client is None:
            self._client = boto3.client(
                "s3",
                endpoint_url=settings.storage_endpoint_url or None,
                aws_access_key_id=settings.storage_access_key_id or None,
                aws_secret_access_key=settings.storage_secret_access_key or None,
                region_name=settings.storage_region,
            )
        return self._client

    async def put_object(self, key: str, body: bytes, content_type: str) -> str:
        try:
            await asyncio.to_thread(
                self.client.put_object,
                Bucket=self.bucket,
                Key=key,
                Body=body,
                ContentType=content_type,
            )
        except (BotoCoreError, ClientError) as e:
            logger.error(f"Failed to store object {key}: {e}")
            raise StorageUnavailableException()

        logger.info(f"Stored object {key} ({len(body)} bytes)")
        return f"{self.public_url}/{key}"


_storage: Optional[ObjectStorage] = None


def get_object_storage() -> ObjectStorage:
    """Get ObjectStorage singleton."""
    global _storage
    if _storage is None:
        _storage = S3ObjectStorage()
    return _storage
