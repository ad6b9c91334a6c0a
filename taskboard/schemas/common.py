"""
Taskboard API: Shared Pydantic Schemas
=======================================

What:  Base model and the response shapes shared by every router.
How:   APIModel maps snake_case attributes to camelCase JSON keys
       (`access_token` ↔ `accessToken`, `board_id` ↔ `boardId`) and can be
       built straight from ORM objects (`from_attributes`).
"""

import uuid
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


class APIModel(BaseModel):
    """Base for request and response bodies: camelCase on the wire."""

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        from_attributes=True,
        str_strip_whitespace=True,
    )


class MessageResponse(APIModel):
    message: str = Field(description="Human-readable outcome")


class UserSummary(APIModel):
    """Compact user reference embedded in boards and notes."""

    id: uuid.UUID
    username: str
    image: Optional[str] = None


class ErrorResponse(BaseModel):
    """
    What:  Standardized error response format for all API errors.

    Fields:
        error: Machine-readable error code (e.g., "validation_error", "conflict")
        message: Human-readable description for display to users
        details: Optional extra context (e.g., which field failed validation)
        request_id: Correlation ID for tracing this error in server logs

    Example:
        {
            "error": "conflict",
            "message": "Board with title Sprint1 already exists",
            "details": {"field": "title"},
            "request_id": "a1b2c3d4"
        }
    """

    error: str = Field(description="Machine-readable error code")
    message: str = Field(description="Human-readable error description")
    details: Optional[dict] = Field(default=None, description="Additional error context")
    request_id: Optional[str] = Field(default=None, description="Request correlation ID")


class HealthResponse(APIModel):
    status: str = Field(description="Overall service status: healthy, unhealthy")
    version: str = Field(description="Application version")
    database: str = Field(description="Database connectivity: connected, disconnected")
    uptime_seconds: float = Field(description="Seconds since service started")
