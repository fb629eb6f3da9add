"""
Pydantic Schemas
================

Request/response schemas for API validation.
"""

from app.schemas.common import (
    BaseResponse,
    ErrorResponse,
    MessageResponse,
    PaginationParams,
    PaginatedResponse,
)

__all__ = [
    "BaseResponse",
    "ErrorResponse",
    "MessageResponse",
    "PaginationParams",
    "PaginatedResponse",
]
