from __future__ import annotations

from dataclasses import dataclass
from datetime import date


@dataclass(slots=True)
class Account:
    """Aggregate root for a registered user identity."""

    account_id: str
    name: str
    last_name: str
    cpf: str
    date_of_birth: date
    email: str
    password_hash: str


@dataclass(slots=True, frozen=True)
class Principal:
    """Identity attached to a request after bearer-token authentication."""

    account_id: str
    email: str
