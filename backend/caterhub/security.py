"""
CaterHub Backend — Password Hashing and Session Tokens
========================================================

What:  bcrypt password hashing and HS256 JWT issue/verify.
Why:   Signup/login store and compare salted hashes; every authenticated
       request carries a bearer token that embeds the caller's identity.
How:   `hash_password` / `verify_password` wrap the bcrypt primitives.
       `TokenService` is built from Settings by the app factory and holds
       the secret, algorithm and lifetime; nothing reads them globally.

Token payload:
    {"user_id": "<uuid>", "email": "...", "role": "CATERER", "iat": ..., "exp": ...}
"""

import logging
import uuid
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from typing import Any, Dict

import bcrypt
import jwt

from caterhub.config import Settings
from caterhub.exceptions import AuthError

logger = logging.getLogger(__name__)

BCRYPT_PREFIXES = ("$2a$", "$2b$", "$2y$")

# bcrypt only reads the first 72 bytes; bcrypt>=5 refuses longer input
MAX_PASSWORD_BYTES = 72


def hash_password(password: str, rounds: int = 10) -> str:
    """Hash a password with a fresh bcrypt salt."""
    salt = bcrypt.gensalt(rounds=rounds)
    return bcrypt.hashpw(password.encode("utf-8"), salt).decode("utf-8")


def verify_password(plain_password: str, hashed_password: str) -> bool:
    """
    Verify a password against its bcrypt hash.

    Anything that is not a bcrypt hash is rejected outright, so a row with a
    corrupted or plaintext password can never be logged into.
    """
    if not hashed_password or not hashed_password.startswith(BCRYPT_PREFIXES):
        logger.warning("Refusing password check against a non-bcrypt hash")
        return False
    if len(plain_password.encode("utf-8")) > MAX_PASSWORD_BYTES:
        return False
    return bcrypt.checkpw(plain_password.encode("utf-8"), hashed_password.encode("utf-8"))


@dataclass(frozen=True)
class Identity:
    """The authenticated caller, as decoded from a verified token."""

    user_id: uuid.UUID
    email: str
    role: str


class TokenService:
    """Issues and verifies session tokens."""

    def __init__(self, secret: str, algorithm: str = "HS256", expires_days: int = 7):
        self._secret = secret
        self._algorithm = algorithm
        self._lifetime = timedelta(days=expires_days)

    @classmethod
    def from_settings(cls, settings: Settings) -> "TokenService":
        return cls(
            secret=settings.jwt_secret,
            algorithm=settings.jwt_algorithm,
            expires_days=settings.jwt_expires_days,
        )

    def issue(self, user_id: uuid.UUID, email: str, role: str) -> str:
        now = datetime.now(timezone.utc)
        payload: Dict[str, Any] = {
            "user_id": str(user_id),
            "email": email,
            "role": role,
            "iat": now,
            "exp": now + self._lifetime,
        }
        return jwt.encode(payload, self._secret, algorithm=self._algorithm)

    def verify(self, token: str) -> Identity:
        """
        Decode and validate a token.

        Raises:
            AuthError("Invalid or expired token") for a bad signature, an
            expired token, a malformed token, or a payload missing claims.
        """
        try:
            payload = jwt.decode(
                token,
                self._secret,
                algorithms=[self._algorithm],
                options={"require": ["exp", "iat"]},
            )
        except jwt.ExpiredSignatureError:
            logger.info("Rejected expired token")
            raise AuthError()
        except jwt.InvalidTokenError as e:
            logger.info("Rejected invalid token: %s", str(e))
            raise AuthError()

        try:
            return Identity(
                user_id=uuid.UUID(payload["user_id"]),
                email=payload["email"],
                role=payload["role"],
            )
        except (KeyError, TypeError, ValueError):
            raise AuthError()
