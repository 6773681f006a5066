"""Collaborator contracts injected into :class:`~app.domain.service.AccountService`."""

from __future__ import annotations

from typing import Protocol

from .account import Account
from .contracts import NewAccount, Page, PageRequest, SearchMode


class AccountStore(Protocol):
    """Persistence port. Unique-constraint violations raise ``DuplicateKeyError``."""

    def get_by_id(self, account_id: str) -> Account | None: ...

    def get_by_email(self, email: str) -> Account | None: ...

    def get_by_cpf(self, cpf: str) -> Account | None: ...

    def exists_by_id(self, account_id: str) -> bool: ...

    def exists_by_email(self, email: str) -> bool: ...

    def exists_by_cpf(self, cpf: str) -> bool: ...

    def list_accounts(self, page_request: PageRequest) -> Page[Account]: ...

    def search(
        self,
        mode: SearchMode,
        page_request: PageRequest,
        *,
        name: str | None = None,
        last_name: str | None = None,
    ) -> Page[Account]: ...

    def create(self, payload: NewAccount) -> Account: ...

    def save(self, account: Account) -> Account: ...

    def delete(self, account_id: str) -> None: ...


class PasswordHasher(Protocol):
    def hash(self, plaintext: str) -> str: ...

    def verify(self, plaintext: str, digest: str) -> bool: ...


class TokenCodec(Protocol):
    def issue(self, subject_email: str) -> str: ...

    def verify(self, token: str) -> str | None: ...
