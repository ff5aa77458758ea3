"""Media upload service."""
import logging
import os
from typing import Optional
from uuid import uuid4

from marketplace.config import settings
from marketplace.domain.exceptions import ValidationException
from marketplace.domain.models import UploadResponse, User
from marketplace.infrastructure.storage import ObjectStorage
from marketplace.utils import epoch_ms

logger = logging.getLogger(__name__)


class UploadService:
    """Validates uploads and stores them in object storage."""

    def __init__(
        self,
        storage: ObjectStorage,
        max_bytes: int = settings.upload_max_bytes,
        allowed_prefixes=tuple(settings.upload_allowed_content_types),
    ):
        self.storage = storage
        self.max_bytes = max_bytes
        self.allowed_prefixes = tuple(allowed_prefixes)

    def build_key(self, user: User, filename: str) -> str:
        extension = os.path.splitext(filename or "")[1].lstrip(".").lower() or "bin"
        return f"uploads/{user.user_id}/{epoch_ms()}-{uuid4()}.{extension}"

    def check_size(self, size: Optional[int]) -> None:
        """Reject a declared or actual size above the limit; unknown sizes pass."""
        if size is not None and size > self.max_bytes:
            raise ValidationException(
                f"File exceeds the {self.max_bytes // (1024 * 1024)} MB limit", code="FILE_TOO_LARGE"
            )

    async def upload(self, user: User, filename: str, content_type: str, body: bytes) -> UploadResponse:
        if not content_type or not content_type.startswith(self.allowed_prefixes):
            raise ValidationException(
                f"Unsupported file type: {content_type}", code="UNSUPPORTED_FILE_TYPE"
            )
        if not body:
            raise ValidationException("File is empty", code="EMPTY_FILE")
        self.check_size(len(body))

        key = self.build_key(user, filename)
        url = await self.storage.put_object(key, body, content_type)
        logger.info(f"User {user.user_id} uploaded {key} ({content_type}, {len(body)} bytes)")
        return UploadResponse(url=url, key=key)
