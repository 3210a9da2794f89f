"""
CaterHub Backend — Authentication Service
===========================================

What:  Signup, login and current-user lookup.
Why:   Keeps credential rules (required fields, email shape, password
       length, role allow-list, caterer company name) out of the routes.
How:   Validates the loose request models, hashes with bcrypt, persists
       through the request session, and issues a token via TokenService.
Who:   Built once by create_app() with the app's TokenService and bcrypt
       work factor; routes reach it through `request.app.state`.

Enumeration resistance:
    login() raises the same AuthError message whether the email is unknown
    or the password is wrong.
"""

import logging
import re
import uuid

from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from caterhub.exceptions import (
    AuthError,
    ConflictError,
    NotFoundOrForbiddenError,
    ValidationError,
)
from caterhub.models.user import Role, User
from caterhub.schemas.auth import AuthResponse, LoginRequest, SignupRequest, UserResponse
from caterhub.security import MAX_PASSWORD_BYTES, TokenService, hash_password, verify_password

logger = logging.getLogger(__name__)

EMAIL_PATTERN = re.compile(r"^[^\s@]+@[^\s@]+\.[^\s@]+$")
MIN_PASSWORD_LENGTH = 6
SIGNUP_REQUIRED_FIELDS = ("first_name", "last_name", "phone", "email", "password", "type")


class AuthService:
    """Credential checks and token issuance."""

    def __init__(self, tokens: TokenService, bcrypt_rounds: int = 10):
        self.tokens = tokens
        self.bcrypt_rounds = bcrypt_rounds

    # ── Signup ────────────────────────────────────────────────────────────

    def validate_signup(self, payload: SignupRequest) -> None:
        """
        Check a signup payload, in the order the client sees the messages.

        Raises:
            ValidationError with one of the documented signup messages
        """
        missing = [f for f in SIGNUP_REQUIRED_FIELDS if not (getattr(payload, f) or "").strip()]
        if missing:
            raise ValidationError(
                message="Missing required fields",
                context={"missing": missing},
            )

        if payload.type.strip().upper() not in {r.value for r in Role}:
            raise ValidationError(
                message="Invalid user type. Must be USER, ADMIN, or CATERER",
                field="type",
            )

        if len(payload.password) < MIN_PASSWORD_LENGTH:
            raise ValidationError(
                message=f"Password must be at least {MIN_PASSWORD_LENGTH} characters long",
                field="password",
            )
        if len(payload.password.encode("utf-8")) > MAX_PASSWORD_BYTES:
            raise ValidationError(
                message=f"Password must be at most {MAX_PASSWORD_BYTES} bytes long",
                field="password",
            )

        if not EMAIL_PATTERN.match(payload.email.strip()):
            raise ValidationError(message="Invalid email format", field="email")

        if payload.type.strip().upper() == Role.CATERER.value and not (
            payload.company_name or ""
        ).strip():
            raise ValidationError(
                message="Company name is required for caterer accounts",
                field="company_name",
            )

    async def signup(self, db: AsyncSession, payload: SignupRequest) -> AuthResponse:
        self.validate_signup(payload)

        email = payload.email.strip().lower()
        role = payload.type.strip().upper()

        existing = await self._find_by_email(db, email)
        if existing is not None:
            raise ConflictError(message="User with this email already exists")

        user = User(
            first_name=payload.first_name.strip(),
            last_name=payload.last_name.strip(),
            phone=payload.phone.strip(),
            email=email,
            password_hash=hash_password(payload.password, rounds=self.bcrypt_rounds),
            role=role,
            company_name=(payload.company_name or "").strip() or None,
        )
        db.add(user)
        try:
            await db.flush()
        except IntegrityError:
            # Concurrent signup with the same email won the unique index
            raise ConflictError(message="User with this email already exists")
        await db.refresh(user)

        logger.info("User signed up: id=%s role=%s", user.id, user.role)
        return self._auth_response(user)

    # ── Login ─────────────────────────────────────────────────────────────

    async def login(self, db: AsyncSession, payload: LoginRequest) -> AuthResponse:
        if not (payload.email or "").strip() or not payload.password:
            raise ValidationError(message="Email and password are required")

        user = await self._find_by_email(db, payload.email.strip().lower())
        if user is None or not verify_password(payload.password, user.password_hash):
            logger.info("Failed login attempt")
            raise AuthError(message="Invalid email or password")

        logger.info("User logged in: id=%s", user.id)
        return self._auth_response(user)

    # ── Lookup ────────────────────────────────────────────────────────────

    async def get_user(self, db: AsyncSession, user_id: uuid.UUID) -> User:
        user = await db.get(User, user_id)
        if user is None:
            raise NotFoundOrForbiddenError(
                resource="User", resource_id=str(user_id), message="User not found"
            )
        return user

    async def _find_by_email(self, db: AsyncSession, email: str) -> User | None:
        result = await db.execute(select(User).where(User.email == email))
        return result.scalar_one_or_none()

    def _auth_response(self, user: User) -> AuthResponse:
        token = self.tokens.issue(user.id, user.email, user.role)
        return AuthResponse(user=UserResponse.model_validate(user), token=token)
