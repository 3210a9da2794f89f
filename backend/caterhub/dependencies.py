"""
CaterHub Backend — Request Dependencies
=========================================

What:  FastAPI dependencies for authentication, role gating, and access
       to the per-app services created by `create_app()`.
How:   The authorization gate is a chain of dependencies:

       Unauthenticated ──get_identity──▶ Authenticated ──require_role──▶ Authorized

       get_identity reads `Authorization: Bearer <token>` and verifies it
       with the app's TokenService. require_role(...) builds a dependency
       that also checks the identity's role against an allow-list.

Example:
    caterer_only = require_role(Role.CATERER)

    @router.get("/caterer/dishes")
    async def list_dishes(identity: Identity = Depends(caterer_only)): ...
"""

from typing import Callable, Optional

from fastapi import Depends, Request
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer

from caterhub.exceptions import AuthError, ForbiddenError
from caterhub.models.user import Role
from caterhub.security import Identity, TokenService
from caterhub.services.auth_service import AuthService
from caterhub.services.image_storage import ImageStorage

MISSING_TOKEN_MESSAGE = (
    "No token provided. Please include 'Authorization: Bearer <token>' header"
)

# auto_error=False: a missing header must produce our 401 envelope, not FastAPI's 403
bearer_scheme = HTTPBearer(auto_error=False, description="Session token from /auth/login")


def get_token_service(request: Request) -> TokenService:
    return request.app.state.tokens


def get_auth_service(request: Request) -> AuthService:
    return request.app.state.auth_service


def get_image_storage(request: Request) -> ImageStorage:
    return request.app.state.image_storage


async def get_identity(
    request: Request,
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(bearer_scheme),
    tokens: TokenService = Depends(get_token_service),
) -> Identity:
    """
    Resolve the caller from the bearer token.

    Raises:
        AuthError: header missing, not a Bearer header, or token invalid/expired
    """
    if credentials is None or not credentials.credentials:
        raise AuthError(message=MISSING_TOKEN_MESSAGE)

    identity = tokens.verify(credentials.credentials)
    request.state.identity = identity
    return identity


def require_role(*roles: Role) -> Callable:
    """
    Build a dependency that admits only identities whose role is in `roles`.

    Raises:
        ForbiddenError("Access denied. Required role: CATERER") on mismatch
    """
    allowed = {r.value for r in roles}
    label = ", ".join(r.value for r in roles)

    async def _check_role(identity: Identity = Depends(get_identity)) -> Identity:
        if identity.role not in allowed:
            raise ForbiddenError(
                message=f"Access denied. Required role: {label}",
                context={"role": identity.role},
            )
        return identity

    return _check_role


require_caterer = require_role(Role.CATERER)
