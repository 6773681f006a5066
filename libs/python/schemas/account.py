"""Account-related DTOs shared across services."""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel


class AccountView(BaseModel):
    """Public projection of an account; the password hash is never part of it."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    id: str
    name: str
    last_name: str
    cpf: str
    email: str
    age: int


class AuthResult(BaseModel):
    """Payload returned by registration and login."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    token: str
    user: AccountView
