"""
CaterHub Backend — Shared API Schemas
=======================================

What:  The response envelope, error body, health body, and helpers shared
       by the entity schemas.
Why:   Every endpoint answers `{success, data?, message?, error?}` so the
       front end can branch on `success` without inspecting status codes.

Envelope examples:
    {"success": true, "data": {...}}
    {"success": true, "message": "Dish deleted successfully"}
    {"success": false, "error": {"code": "not_found", "message": "...", "request_id": "a1b2c3d4"}}
"""

import json
import uuid
from datetime import datetime
from typing import Any, Generic, List, Optional, TypeVar

from pydantic import BaseModel, Field

T = TypeVar("T")


class Envelope(BaseModel, Generic[T]):
    """Successful response wrapper."""

    success: bool = Field(default=True, description="Always true for 2xx responses")
    data: Optional[T] = Field(default=None, description="Endpoint payload")
    message: Optional[str] = Field(default=None, description="Human-readable outcome")


class ErrorDetail(BaseModel):
    code: str = Field(description="Machine-readable error code")
    message: str = Field(description="Human-readable error description")
    details: Optional[dict] = Field(default=None, description="Additional error context")
    request_id: Optional[str] = Field(default=None, description="Request correlation ID")


class ErrorResponse(BaseModel):
    """
    Standardized error response returned by all exception handlers.

    Used in OpenAPI `responses=` declarations so Swagger documents the
    failure shape next to each route.
    """

    success: bool = Field(default=False)
    error: ErrorDetail


class HealthResponse(BaseModel):
    success: bool = Field(description="False when a critical dependency is down")
    message: str = Field(description="Overall status message")
    timestamp: datetime = Field(description="Server time (UTC)")
    version: str = Field(description="Application version")
    database: str = Field(description="connected | disconnected")
    uptime_seconds: float = Field(description="Seconds since process start")


class LookupRef(BaseModel):
    """Compact `{id, name}` view of a lookup row embedded in entity responses."""

    id: uuid.UUID
    name: str

    model_config = {"from_attributes": True}


# ── Payload coercion helpers ──────────────────────────────────────────────

def blank_to_none(value: Any) -> Any:
    """Multipart forms send empty strings for untouched inputs."""
    if isinstance(value, str) and value.strip() == "":
        return None
    return value


def split_id_list(value: Any) -> Any:
    """
    Accept an id list as a JSON array, a JSON-encoded string, or a
    comma-separated string (what multipart forms can express).
    """
    value = blank_to_none(value)
    if value is None or isinstance(value, list):
        return value
    if isinstance(value, str):
        text = value.strip()
        if text.startswith("["):
            try:
                return json.loads(text)
            except ValueError:
                return value
        return [part.strip() for part in text.split(",") if part.strip()]
    return value


IdList = Optional[List[str]]
