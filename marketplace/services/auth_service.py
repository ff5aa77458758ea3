"""Authentication service."""
import logging
from typing import Optional
from uuid import UUID

import bcrypt

from marketplace.domain.exceptions import (
    EmailAlreadyRegisteredException,
    InvalidCredentialsException,
    PermissionDeniedException,
    UserNotFoundException,
    ValidationException,
)
from marketplace.domain.models import (
    LoginRequest,
    LoginResponse,
    RegisterRequest,
    User,
    UserRole,
)
from marketplace.infrastructure.jwt_handler import JWTHandler
from marketplace.infrastructure.repositories import UserRepository

logger = logging.getLogger(__name__)


def hash_password(password: str) -> str:
    """Hash password using bcrypt."""
    salt = bcrypt.gensalt(rounds=12)
    return bcrypt.hashpw(password.encode("utf-8"), salt).decode("utf-8")


def verify_password(password: str, password_hash: str) -> bool:
    """Verify password against hash."""
    return bcrypt.checkpw(password.encode("utf-8"), password_hash.encode("utf-8"))


class AuthService:
    """Service for registration, login and token resolution."""

    def __init__(self, user_repository: UserRepository, jwt_handler: JWTHandler):
        self.user_repository = user_repository
        self.jwt_handler = jwt_handler

    async def _create_user(
        self,
        email: str,
        password: str,
        role: UserRole,
        full_name: Optional[str] = None,
        phone: Optional[str] = None,
        seller_category=None,
    ) -> User:
        email = email.strip().lower()
        if not email or "@" not in email:
            raise ValidationException("A valid email is required")
        if await self.user_repository.get_by_email(email):
            raise EmailAlreadyRegisteredException(email)

        user = User(
            email=email,
            password_hash=hash_password(password),
            full_name=full_name,
            phone=phone,
            role=role,
            seller_category=seller_category,
        )
        return await self.user_repository.create(user)

    async def register(self, request: RegisterRequest) -> User:
        """Register a customer, seller or freelancer account."""
        logger.info(f"Registration attempt for email: {request.email}")

        if request.role == UserRole.ADMIN:
            raise PermissionDeniedException("Admin accounts cannot be self-registered")
        if request.role == UserRole.SELLER and request.seller_category is None:
            raise ValidationException("Sellers must choose a seller category")
        seller_category = request.seller_category if request.role == UserRole.SELLER else None

        user = await self._create_user(
            request.email,
            request.password,
            request.role,
            full_name=request.full_name,
            phone=request.phone,
            seller_category=seller_category,
        )
        logger.info(f"User registered: {user.user_id}")
        return user

    async def create_admin(
        self, email: str, password: str, full_name: str, phone: Optional[str] = None
    ) -> User:
        """Create an admin account (used by the admin CLI)."""
        if not password or not full_name:
            raise ValidationException("Email, password and full name are required")
        user = await self._create_user(email, password, UserRole.ADMIN, full_name=full_name, phone=phone)
        logger.info(f"Admin user created: {user.user_id}")
        return user

    async def login(self, request: LoginRequest) -> LoginResponse:
        """Authenticate user and return an access token."""
        logger.info(f"Login attempt for email: {request.email}")

        user = await self.user_repository.get_by_email(request.email.strip())
        if not user:
            logger.warning(f"User not found: {request.email}")
            raise InvalidCredentialsException()

        if not verify_password(request.password, user.password_hash):
            logger.warning(f"Invalid password for user: {user.user_id}")
            raise InvalidCredentialsException()

        access_token = self.jwt_handler.create_access_token(user.user_id, user.role, user.seller_category)
        logger.info(f"User logged in successfully: {user.user_id}")

        return LoginResponse(access_token=access_token, user_id=user.user_id)

    async def get_user_from_token(self, token: str) -> User:
        """Resolve a bearer token to a stored user."""
        user_id: UUID = self.jwt_handler.get_user_id_from_token(token)
        user = await self.user_repository.get_by_id(user_id)
        if user is None:
            raise UserNotFoundException(user_id=str(user_id))
        return user
