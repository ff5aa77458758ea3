"""Tests for JWT Handler."""
import pytest
from datetime import datetime, timedelta, timezone
from uuid import UUID

import jwt

from marketplace.domain.exceptions import InvalidTokenException, TokenExpiredException
from marketplace.domain.models import SellerCategory, UserRole
from marketplace.infrastructure.jwt_handler import JWTHandler


@pytest.fixture
def jwt_handler() -> JWTHandler:
    """JWT handler fixture."""
    return JWTHandler(secret="test-secret-key")


@pytest.fixture
def mock_user_id() -> UUID:
    """Mock user ID."""
    return UUID("12345678-1234-5678-1234-567812345678")


def test_create_access_token(jwt_handler: JWTHandler, mock_user_id: UUID) -> None:
    """Test creating access token."""
    token = jwt_handler.create_access_token(mock_user_id, UserRole.SELLER, SellerCategory.GROSSISTE)

    payload = jwt.decode(token, jwt_handler.secret, algorithms=[jwt_handler.algorithm])
    assert payload["sub"] == str(mock_user_id)
    assert payload["role"] == "seller"
    assert payload["seller_category"] == "grossiste"
    assert payload["type"] == "access"
    assert "iat" in payload
    assert "exp" in payload


def test_create_access_token_without_category(jwt_handler: JWTHandler, mock_user_id: UUID) -> None:
    """Test customers carry no seller category."""
    token = jwt_handler.create_access_token(mock_user_id, UserRole.CUSTOMER)

    payload = jwt_handler.validate_token(token)
    assert payload["seller_category"] is None


def test_create_access_token_with_custom_expiry(jwt_handler: JWTHandler, mock_user_id: UUID) -> None:
    """Test creating access token with custom expiry."""
    token = jwt_handler.create_access_token(mock_user_id, UserRole.ADMIN, expires_in_minutes=30)

    payload = jwt.decode(token, jwt_handler.secret, algorithms=[jwt_handler.algorithm])
    exp_time = datetime.fromtimestamp(payload["exp"], timezone.utc)
    iat_time = datetime.fromtimestamp(payload["iat"], timezone.utc)

    # Should be approximately 30 minutes
    diff = exp_time - iat_time
    assert 29 <= diff.total_seconds() / 60 <= 31


def test_validate_token_invalid(jwt_handler: JWTHandler) -> None:
    """Test validating invalid token."""
    with pytest.raises(InvalidTokenException):
        jwt_handler.validate_token("invalid-token")


def test_validate_token_wrong_secret(jwt_handler: JWTHandler, mock_user_id: UUID) -> None:
    """Test validating token with wrong secret."""
    token = jwt_handler.create_access_token(mock_user_id, UserRole.CUSTOMER)

    other_handler = JWTHandler(secret="different-secret")
    with pytest.raises(InvalidTokenException):
        other_handler.validate_token(token)


def test_validate_token_expired(jwt_handler: JWTHandler, mock_user_id: UUID) -> None:
    """Test validating expired token."""
    now = datetime.now(timezone.utc)
    payload = {
        "sub": str(mock_user_id),
        "role": "customer",
        "iat": now - timedelta(minutes=20),
        "exp": now - timedelta(minutes=1),
        "type": "access",
    }
    expired_token = jwt.encode(payload, jwt_handler.secret, algorithm=jwt_handler.algorithm)

    with pytest.raises(TokenExpiredException):
        jwt_handler.validate_token(expired_token)


def test_validate_access_token_wrong_type(jwt_handler: JWTHandler, mock_user_id: UUID) -> None:
    """Test a token of another type is not an access token."""
    token = jwt.encode(
        {"sub": str(mock_user_id), "type": "refresh"}, jwt_handler.secret, algorithm=jwt_handler.algorithm
    )

    with pytest.raises(InvalidTokenException) as exc_info:
        jwt_handler.validate_access_token(token)

    assert "not an access token" in str(exc_info.value).lower()


def test_get_user_id_from_token(jwt_handler: JWTHandler, mock_user_id: UUID) -> None:
    """Test extracting user ID from token."""
    token = jwt_handler.create_access_token(mock_user_id, UserRole.SELLER, SellerCategory.IMPORTATEUR)

    assert jwt_handler.get_user_id_from_token(token) == mock_user_id


def test_get_user_id_from_malformed_subject(jwt_handler: JWTHandler) -> None:
    """Test a subject that is not a UUID."""
    token = jwt.encode({"sub": "admin", "type": "access"}, jwt_handler.secret, algorithm=jwt_handler.algorithm)

    with pytest.raises(InvalidTokenException):
        jwt_handler.get_user_id_from_token(token)
