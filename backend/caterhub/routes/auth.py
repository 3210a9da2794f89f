"""
CaterHub Backend — Authentication Routes
==========================================

What:  Signup, login, logout and current-user endpoints.
How:   Bodies are parsed leniently so AuthService can answer with its own
       validation messages. Tokens are stateless, so logout only tells the
       client to discard its copy.
"""

import logging

from fastapi import APIRouter, Depends, Request
from sqlalchemy.ext.asyncio import AsyncSession

from caterhub.database import get_db_session
from caterhub.dependencies import get_auth_service, get_identity
from caterhub.routes.payload import read_payload
from caterhub.schemas.auth import AuthResponse, LoginRequest, SignupRequest, UserResponse
from caterhub.schemas.common import Envelope, ErrorResponse
from caterhub.security import Identity
from caterhub.services.auth_service import AuthService

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/auth", tags=["Auth"])


@router.post(
    "/signup",
    status_code=201,
    response_model=Envelope[AuthResponse],
    responses={
        400: {"description": "Missing or invalid fields", "model": ErrorResponse},
        409: {"description": "Email already registered", "model": ErrorResponse},
        429: {"description": "Too many attempts", "model": ErrorResponse},
    },
    summary="Register a user or caterer",
)
async def signup(
    request: Request,
    db: AsyncSession = Depends(get_db_session, scope="function"),
    auth: AuthService = Depends(get_auth_service),
) -> Envelope[AuthResponse]:
    payload, _ = await read_payload(request, SignupRequest)
    result = await auth.signup(db, payload)
    return Envelope(data=result, message="User registered successfully")


@router.post(
    "/login",
    response_model=Envelope[AuthResponse],
    responses={
        400: {"description": "Email or password missing", "model": ErrorResponse},
        401: {"description": "Invalid email or password", "model": ErrorResponse},
        429: {"description": "Too many attempts", "model": ErrorResponse},
    },
    summary="Exchange credentials for a bearer token",
)
async def login(
    request: Request,
    db: AsyncSession = Depends(get_db_session, scope="function"),
    auth: AuthService = Depends(get_auth_service),
) -> Envelope[AuthResponse]:
    payload, _ = await read_payload(request, LoginRequest)
    result = await auth.login(db, payload)
    return Envelope(data=result, message="Login successful")


@router.post(
    "/logout",
    response_model=Envelope[None],
    responses={401: {"description": "Missing or invalid token", "model": ErrorResponse}},
    summary="Log out (client discards the token)",
)
async def logout(identity: Identity = Depends(get_identity)) -> Envelope[None]:
    logger.info("User logged out: id=%s", identity.user_id)
    return Envelope(message="Logout successful. Please remove the token from client storage.")


@router.get(
    "/me",
    response_model=Envelope[UserResponse],
    responses={
        401: {"description": "Missing or invalid token", "model": ErrorResponse},
        404: {"description": "Account no longer exists", "model": ErrorResponse},
    },
    summary="Current user",
)
async def me(
    identity: Identity = Depends(get_identity),
    db: AsyncSession = Depends(get_db_session, scope="function"),
    auth: AuthService = Depends(get_auth_service),
) -> Envelope[UserResponse]:
    user = await auth.get_user(db, identity.user_id)
    return Envelope(data=UserResponse.model_validate(user))
