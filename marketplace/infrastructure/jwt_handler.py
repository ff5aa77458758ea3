"""JWT handler for token creation and validation."""
import logging
from datetime import datetime, timedelta, timezone
from typing import Dict, Optional
from uuid import UUID

import jwt

from marketplace.config import settings
from marketplace.domain.exceptions import InvalidTokenException, TokenExpiredException
from marketplace.domain.models import SellerCategory, UserRole

logger = logging.getLogger(__name__)


class JWTHandler:
    """JWT handler for creating and validating access tokens."""

    def __init__(self, secret: str = settings.jwt_secret, algorithm: str = "HS256"):
        self.secret = secret
        self.algorithm = algorithm

    def create_access_token(
        self,
        user_id: UUID,
        role: UserRole,
        seller_category: Optional[SellerCategory] = None,
        expires_in_minutes: int = settings.jwt_access_token_expires_minutes,
    ) -> str:
        """Create access token."""
        now = datetime.now(timezone.utc)
        payload = {
            "sub": str(user_id),
            "role": role.value,
            "seller_category": seller_category.value if seller_category else None,
            "iat": now,
            "exp": now + timedelta(minutes=expires_in_minutes),
            "type": "access",
        }

        return jwt.encode(payload, self.secret, algorithm=self.algorithm)

    def validate_token(self, token: str) -> Dict:
        """Validate and decode token."""
        try:
            return jwt.decode(token, self.secret, algorithms=[self.algorithm])
        except jwt.ExpiredSignatureError:
            logger.warning("Token expired")
            raise TokenExpiredException()
        except jwt.InvalidTokenError as e:
            logger.warning(f"Invalid token: {e}")
            raise InvalidTokenException(f"Invalid token: {e}")

    def validate_access_token(self, token: str) -> Dict:
        """Validate access token specifically."""
        payload = self.validate_token(token)
        if payload.get("type") != "access":
            raise InvalidTokenException("Token is not an access token")
        return payload

    def get_user_id_from_token(self, token: str) -> UUID:
        """Extract user ID from token."""
        payload = self.validate_access_token(token)
        try:
            return UUID(payload["sub"])
        except (KeyError, ValueError):
            raise InvalidTokenException("Token subject is not a user id")
