"""Domain error taxonomy raised by account operations."""

from __future__ import annotations


class AccountError(Exception):
    """Base class for failures the API layer translates into a response."""

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message


class ValidationError(AccountError):
    """Malformed or missing input; the message names the violated rule."""


class ConflictError(AccountError):
    """Uniqueness or business-rule conflict (duplicate email/CPF, unchanged email)."""


class NotFoundError(AccountError):
    """No account matches the given identifier, email or CPF."""


class AuthError(AccountError):
    """Credentials were rejected. The message never says which field was wrong."""


class InternalError(AccountError):
    """Unexpected failure. Details are logged server-side only."""


class DuplicateKeyError(Exception):
    """Raised by the persistence layer when a unique constraint is violated."""

    def __init__(self, field: str) -> None:
        super().__init__(f"duplicate value for {field}")
        self.field = field
