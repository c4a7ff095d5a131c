"""
Authentication service for credentials and JWT token management.

Provides:
- Password hashing and verification (passlib + bcrypt)
- Access and refresh token issuing, each signed with its own secret
- Token verification that resolves the embedded user id against the store
- Registration, login and token refresh
"""

import structlog
from typing import Any, Dict, Optional, Tuple
from datetime import datetime, timedelta, timezone
from uuid import UUID

from email_validator import EmailNotValidError, validate_email
from jose import ExpiredSignatureError, JWTError, jwt
from passlib.context import CryptContext
from pydantic import ValidationError as PydanticValidationError

from todo_api.src.config import get_settings
from todo_api.src.errors import (
    Conflict, ErrorCode, NotFound, TokenExpired, TokenInvalid, Unauthorized, ValidationError
)
from todo_api.src.models.auth import TokenPayload, TokenType, UserDB
from todo_api.src.repositories.user_repo import UserRepository

logger = structlog.get_logger(__name__)

# (user, access token, refresh token)
Session = Tuple[UserDB, str, str]


def _lookup_email(email: str) -> str:
    """Normalize an email the way registration stores it; malformed input is returned as is."""
    try:
        return validate_email(email, check_deliverability=False).normalized
    except EmailNotValidError:
        return email


class AuthService:
    """Service for credential and token operations."""

    def __init__(self, user_repo: UserRepository):
        """
        Initialize auth service.

        Args:
            user_repo: User repository
        """
        self.user_repo = user_repo
        self.settings = get_settings()

        self.pwd_context = CryptContext(
            schemes=["bcrypt"],
            deprecated="auto",
            bcrypt__rounds=self.settings.password_bcrypt_rounds
        )

    # ========================================================================
    # PASSWORDS
    # ========================================================================

    def hash_password(self, password: str) -> str:
        """
        Hash a password using bcrypt.

        Args:
            password: Plain text password

        Returns:
            Hashed password
        """
        try:
            hashed = self.pwd_context.hash(password)
            logger.debug("password_hashed")
            return hashed
        except Exception as e:
            logger.error("password_hash_failed", error=str(e))
            raise

    def verify_password(self, plain_password: str, hashed_password: str) -> bool:
        """
        Verify a password against its hash.

        Args:
            plain_password: Plain text password
            hashed_password: Hashed password

        Returns:
            True if password matches, False otherwise (including unreadable hashes)
        """
        try:
            verified = self.pwd_context.verify(plain_password, hashed_password)
            logger.debug("password_verified", verified=verified)
            return verified
        except ValueError as e:
            logger.error("password_verify_failed", error=str(e))
            return False

    # ========================================================================
    # TOKENS
    # ========================================================================

    def _secret_for(self, token_type: TokenType) -> str:
        if token_type is TokenType.REFRESH:
            return self.settings.jwt_refresh_token_secret
        return self.settings.jwt_access_token_secret

    def _lifetime_for(self, token_type: TokenType) -> timedelta:
        if token_type is TokenType.REFRESH:
            return timedelta(days=self.settings.jwt_refresh_token_expire_days)
        return timedelta(days=self.settings.jwt_access_token_expire_days)

    def _issue_token(
        self,
        user_id: UUID,
        token_type: TokenType,
        expires_delta: Optional[timedelta] = None
    ) -> str:
        if expires_delta is None:
            expires_delta = self._lifetime_for(token_type)

        now = datetime.now(timezone.utc)
        expire = now + expires_delta

        payload: Dict[str, Any] = {
            "sub": str(user_id),
            "type": token_type.value,
            "exp": int(expire.timestamp()),
            "iat": int(now.timestamp())
        }

        token = jwt.encode(
            payload,
            self._secret_for(token_type),
            algorithm=self.settings.jwt_algorithm
        )

        logger.info(
            "token_issued",
            user_id=str(user_id),
            token_type=token_type.value,
            expires_in=expires_delta.total_seconds()
        )

        return token

    def issue_access_token(self, user_id: UUID, expires_delta: Optional[timedelta] = None) -> str:
        """
        Create a signed access token.

        Args:
            user_id: User ID embedded as ``sub``
            expires_delta: Custom lifetime (optional)

        Returns:
            JWT token string
        """
        return self._issue_token(user_id, TokenType.ACCESS, expires_delta)

    def issue_refresh_token(self, user_id: UUID, expires_delta: Optional[timedelta] = None) -> str:
        """Create a signed refresh token (refresh secret, longer lifetime)."""
        return self._issue_token(user_id, TokenType.REFRESH, expires_delta)

    def decode_token(self, token: str, token_type: TokenType) -> TokenPayload:
        """
        Decode and validate a JWT.

        Args:
            token: JWT token string
            token_type: Expected token kind; selects the verification secret

        Returns:
            Token payload

        Raises:
            TokenExpired: If the signature has expired
            TokenInvalid: On any other decode failure or a token of the wrong kind
        """
        try:
            claims = jwt.decode(
                token,
                self._secret_for(token_type),
                algorithms=[self.settings.jwt_algorithm]
            )
        except ExpiredSignatureError:
            logger.info("token_expired", token_type=token_type.value)
            raise TokenExpired()
        except JWTError as e:
            logger.warning("token_decode_failed", token_type=token_type.value, error=str(e))
            raise TokenInvalid()

        try:
            payload = TokenPayload.model_validate(claims)
        except PydanticValidationError as e:
            logger.warning("token_claims_invalid", error=str(e))
            raise TokenInvalid()

        if payload.type is not token_type:
            logger.warning("token_type_mismatch", expected=token_type.value, actual=payload.type.value)
            raise TokenInvalid()

        logger.debug("token_decoded", user_id=payload.sub)
        return payload

    async def _resolve_user(self, token: str, token_type: TokenType) -> Optional[UserDB]:
        payload = self.decode_token(token, token_type)

        try:
            user_id = UUID(payload.sub)
        except ValueError:
            logger.warning("token_subject_invalid", user_id=payload.sub)
            raise TokenInvalid()

        user = await self.user_repo.get_by_id(user_id)

        if not user:
            logger.warning("token_user_not_found", user_id=str(user_id))
            return None

        return user

    async def verify_access_token(self, token: str) -> Optional[UserDB]:
        """
        Verify an access token and load its user.

        Args:
            token: JWT token string

        Returns:
            The user, or None if the user no longer exists

        Raises:
            TokenExpired: If the token has expired
            TokenInvalid: If the token cannot be trusted
        """
        return await self._resolve_user(token, TokenType.ACCESS)

    async def verify_refresh_token(self, token: str) -> Optional[UserDB]:
        """Verify a refresh token and load its user. Same contract as access tokens."""
        return await self._resolve_user(token, TokenType.REFRESH)

    def _session(self, user: UserDB) -> Session:
        return user, self.issue_access_token(user.id), self.issue_refresh_token(user.id)

    # ========================================================================
    # ACCOUNT OPERATIONS
    # ========================================================================

    async def register(self, values: Dict[str, Any]) -> Session:
        """
        Register a new user and open a session.

        Args:
            values: Validated username, email, first_name, last_name, password

        Returns:
            (user, access token, refresh token)

        Raises:
            ValidationError: If the email address is malformed
            Conflict: If the username or email is already taken
        """
        try:
            email = validate_email(values["email"], check_deliverability=False).normalized
        except EmailNotValidError as e:
            logger.info("registration_rejected_invalid_email", error=str(e))
            raise ValidationError("Invalid email address", code=ErrorCode.INVALID_EMAIL)

        existing = await self.user_repo.get_user_by_username_or_email(values["username"], email)
        if existing:
            logger.warning("registration_rejected_user_exists", username=values["username"])
            raise Conflict("User already exists", code=ErrorCode.USER_ALREADY_EXISTS)

        user = await self.user_repo.create_user(
            username=values["username"],
            email=email,
            first_name=values["first_name"],
            last_name=values["last_name"],
            password_hash=self.hash_password(values["password"])
        )

        logger.info("user_registered", user_id=str(user.id), username=user.username)
        return self._session(user)

    async def login(self, email: str, password: str) -> Session:
        """
        Login user by email and password.

        Args:
            email: Email address
            password: Plain text password

        Returns:
            (user, access token, refresh token)

        Raises:
            NotFound: If no user has this email
            Unauthorized: If the password does not match
        """
        email = _lookup_email(email)
        user = await self.user_repo.get_user_by_email(email)

        if not user:
            logger.warning("authentication_failed_user_not_found", email=email)
            raise NotFound("User not found", code=ErrorCode.USER_NOT_FOUND)

        if not self.verify_password(password, user.password):
            logger.warning("authentication_failed_invalid_password", user_id=str(user.id))
            raise Unauthorized("Invalid credentials", code=ErrorCode.INVALID_CREDENTIALS)

        logger.info("login_success", user_id=str(user.id), username=user.username)
        return self._session(user)

    async def refresh(self, refresh_token: str) -> Session:
        """
        Exchange a refresh token for a new token pair.

        Raises:
            TokenExpired: If the refresh token has expired
            TokenInvalid: If the refresh token cannot be trusted
            Unauthorized: If the user no longer exists
        """
        user = await self.verify_refresh_token(refresh_token)

        if not user:
            raise Unauthorized("User no longer exists")

        logger.info("session_refreshed", user_id=str(user.id))
        return self._session(user)
