from __future__ import annotations

import uuid
from dataclasses import replace
from datetime import date

import pytest
from fastapi import FastAPI
from fastapi.testclient import TestClient

from app.api import routes
from app.api.errors import install_exception_handlers
from app.config import Settings
from app.domain.account import Account
from app.domain.contracts import NewAccount, Page, PageRequest, RegistrationInput, SearchMode
from app.domain.errors import DuplicateKeyError
from app.domain.service import AccountService
from app.main import build_services
from app.security.authenticator import AuthenticationMiddleware
from app.security.passwords import BcryptPasswordHasher
from app.security.tokens import TokenService

TEST_SECRET = "test-secret-with-enough-entropy-for-hs256"

SORT_ATTRIBUTES = {
    "name": "name",
    "lastName": "last_name",
    "email": "email",
    "cpf": "cpf",
    "dateOfBirth": "date_of_birth",
}


class FakeRepository:
    """In-memory repository mimicking Postgres-backed behaviors, unique indexes included."""

    def __init__(self) -> None:
        self._accounts: dict[str, Account] = {}
        self.skip_prechecks = False

    def _check_unique(self, account_id: str, email: str, cpf: str) -> None:
        for other in self._accounts.values():
            if other.account_id == account_id:
                continue
            if other.email == email:
                raise DuplicateKeyError("email")
            if other.cpf == cpf:
                raise DuplicateKeyError("cpf")

    def get_by_id(self, account_id: str):
        return self._accounts.get(account_id)

    def get_by_email(self, email: str):
        return next((a for a in self._accounts.values() if a.email == email), None)

    def get_by_cpf(self, cpf: str):
        return next((a for a in self._accounts.values() if a.cpf == cpf), None)

    def exists_by_id(self, account_id: str) -> bool:
        return account_id in self._accounts

    def exists_by_email(self, email: str) -> bool:
        # simulates a concurrent writer slipping in between check and insert
        if self.skip_prechecks:
            return False
        return self.get_by_email(email) is not None

    def exists_by_cpf(self, cpf: str) -> bool:
        if self.skip_prechecks:
            return False
        return self.get_by_cpf(cpf) is not None

    def list_accounts(self, page_request: PageRequest) -> Page[Account]:
        return self._page(list(self._accounts.values()), page_request)

    def search(
        self,
        mode: SearchMode,
        page_request: PageRequest,
        *,
        name: str | None = None,
        last_name: str | None = None,
    ) -> Page[Account]:
        def contains(value: str, fragment: str | None) -> bool:
            return (fragment or "").lower() in value.lower()

        results = []
        for account in self._accounts.values():
            in_name = contains(account.name, name)
            in_last = contains(account.last_name, last_name)
            if mode is SearchMode.name:
                matched = in_name
            elif mode is SearchMode.last_name:
                matched = in_last
            elif mode is SearchMode.any:
                matched = in_name or in_last
            else:
                matched = in_name and in_last
            if matched:
                results.append(account)
        return self._page(results, page_request)

    def _page(self, accounts: list[Account], page_request: PageRequest) -> Page[Account]:
        attribute = SORT_ATTRIBUTES[page_request.sort_by]
        accounts.sort(key=lambda a: a.account_id)
        accounts.sort(key=lambda a: getattr(a, attribute), reverse=page_request.descending)
        start = page_request.offset
        return Page(
            items=accounts[start:start + page_request.size],
            request=page_request,
            total_elements=len(accounts),
        )

    def create(self, payload: NewAccount) -> Account:
        account_id = str(uuid.uuid4())
        self._check_unique(account_id, payload.email, payload.cpf)
        account = Account(
            account_id=account_id,
            name=payload.name,
            last_name=payload.last_name,
            cpf=payload.cpf,
            date_of_birth=payload.date_of_birth,
            email=payload.email,
            password_hash=payload.password_hash,
        )
        self._accounts[account_id] = account
        return replace(account)

    def save(self, account: Account) -> Account:
        self._check_unique(account.account_id, account.email, account.cpf)
        self._accounts[account.account_id] = replace(account)
        return replace(account)

    def delete(self, account_id: str) -> None:
        self._accounts.pop(account_id, None)


def registration(**overrides) -> RegistrationInput:
    data = dict(
        name="joão",
        last_name="silva",
        cpf="12345678901",
        date_of_birth=date(1990, 5, 15),
        email="Joao@Email.com",
        password="secret1",
    )
    data.update(overrides)
    return RegistrationInput(**data)


def registration_body(**overrides) -> dict:
    body = {
        "name": "joão",
        "lastName": "silva",
        "cpf": "12345678901",
        "dateOfBirth": "15/05/1990",
        "email": "Joao@Email.com",
        "password": "secret1",
    }
    body.update(overrides)
    return body


@pytest.fixture
def settings() -> Settings:
    return Settings(jwt_secret=TEST_SECRET, jwt_issuer="neoapp", bcrypt_rounds=4)


@pytest.fixture
def tokens(settings) -> TokenService:
    return TokenService(settings)


@pytest.fixture
def repository() -> FakeRepository:
    return FakeRepository()


@pytest.fixture
def service(repository, tokens, settings) -> AccountService:
    return AccountService(repository, BcryptPasswordHasher(settings.bcrypt_rounds), tokens)


@pytest.fixture
def api_client(repository, settings):
    """Provide a FastAPI test client with isolated state."""
    app = FastAPI()
    app.add_middleware(AuthenticationMiddleware)
    install_exception_handlers(app)
    app.include_router(routes.router)
    service = build_services(app, repository, settings)

    with TestClient(app) as client:
        yield client, service
