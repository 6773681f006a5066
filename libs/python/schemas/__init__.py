"""Shared schema exports."""

from .account import AccountView, AuthResult
from .envelope import ApiResponse, PaginatedResponse, PaginationInfo, utc_timestamp

__all__ = [
    "AccountView",
    "AuthResult",
    "ApiResponse",
    "PaginatedResponse",
    "PaginationInfo",
    "utc_timestamp",
]
