"""
CaterHub Backend — Authentication Schemas
===========================================

What:  Signup/login request bodies and the user/auth response shapes.
Why loose requests:
    Every field is optional at the schema level so that AuthService can
    answer with the exact business messages ("Missing required fields",
    "Invalid email format", ...) instead of FastAPI's generic field errors.
Security:
    UserResponse has no password field; the hash cannot leak through
    serialization even if a route forgets to strip it.
"""

import uuid
from datetime import datetime
from typing import Optional

from pydantic import AliasChoices, BaseModel, Field


class SignupRequest(BaseModel):
    first_name: Optional[str] = None
    last_name: Optional[str] = None
    phone: Optional[str] = None
    email: Optional[str] = None
    password: Optional[str] = None
    type: Optional[str] = Field(
        default=None,
        validation_alias=AliasChoices("type", "role"),
        description="USER, ADMIN or CATERER",
    )
    company_name: Optional[str] = None

    model_config = {"extra": "ignore"}


class LoginRequest(BaseModel):
    email: Optional[str] = None
    password: Optional[str] = None

    model_config = {"extra": "ignore"}


class UserResponse(BaseModel):
    id: uuid.UUID
    first_name: str
    last_name: str
    email: str
    phone: str
    type: str = Field(validation_alias=AliasChoices("role", "type"))
    company_name: Optional[str] = None
    created_at: datetime
    updated_at: datetime

    model_config = {"from_attributes": True}


class AuthResponse(BaseModel):
    user: UserResponse
    token: str = Field(description="Bearer token for the Authorization header")
