"""Response envelopes used by every account-service endpoint."""

from __future__ import annotations

from datetime import datetime, timezone
from typing import Generic, TypeVar

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

T = TypeVar("T")


def utc_timestamp() -> str:
    return datetime.now(timezone.utc).isoformat()


class PaginationInfo(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    current_page: int
    page_size: int
    total_elements: int
    total_pages: int
    is_first: bool
    is_last: bool
    has_next: bool
    has_previous: bool


class ApiResponse(BaseModel, Generic[T]):
    """``{success, message, data?, timestamp}``."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    success: bool
    message: str
    data: T | None = None
    timestamp: str = Field(default_factory=utc_timestamp)

    @classmethod
    def ok(cls, message: str, data: T | None = None) -> "ApiResponse[T]":
        return cls(success=True, message=message, data=data)

    @classmethod
    def error(cls, message: str) -> "ApiResponse[T]":
        return cls(success=False, message=message)


class PaginatedResponse(BaseModel, Generic[T]):
    """Envelope for list endpoints: the page content plus pagination metadata."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    success: bool
    message: str
    content: list[T] | None = None
    pagination: PaginationInfo | None = None
    timestamp: str = Field(default_factory=utc_timestamp)
