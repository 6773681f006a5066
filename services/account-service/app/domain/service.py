"""Account service orchestrating validation, persistence, hashing and token issuance."""

from __future__ import annotations

import logging
from contextlib import contextmanager
from dataclasses import replace
from typing import Iterator, Tuple

from . import validation
from .account import Account, Principal
from .contracts import NewAccount, Page, PageRequest, RegistrationInput, SearchMode, UpdateAccountInput
from .errors import (
    AccountError,
    AuthError,
    ConflictError,
    DuplicateKeyError,
    InternalError,
    NotFoundError,
    ValidationError,
)
from .ports import AccountStore, PasswordHasher, TokenCodec

logger = logging.getLogger(__name__)

INVALID_CREDENTIALS = "Invalid email or password"
DUPLICATE_MESSAGES = {
    "email": "Email already registered",
    "cpf": "CPF already registered",
}


@contextmanager
def _operation(failure_message: str) -> Iterator[None]:
    """Let domain errors through and turn anything else into ``InternalError``."""
    try:
        yield
    except AccountError:
        raise
    except Exception as exc:
        logger.exception(failure_message)
        raise InternalError(failure_message) from exc


class AccountService:
    """Account workflows over injected persistence, hashing and token ports."""

    def __init__(
        self,
        repository: AccountStore,
        hasher: PasswordHasher,
        tokens: TokenCodec,
    ) -> None:
        """Store the collaborators used by every account workflow."""
        self._repository = repository
        self._hasher = hasher
        self._tokens = tokens

    def register(self, payload: RegistrationInput) -> Tuple[Account, str]:
        """Create an account and return it with a freshly issued token.

        The email and CPF pre-checks give friendly errors; the store's unique
        constraints remain authoritative and a ``DuplicateKeyError`` raised
        on insert is reported with the same message.
        """
        with _operation("An unexpected error occurred during registration"):
            data = validation.validate_registration(payload)

            if self._repository.exists_by_email(data.email):
                logger.warning("registration rejected: email already registered")
                raise ConflictError(DUPLICATE_MESSAGES["email"])
            if self._repository.exists_by_cpf(data.cpf):
                logger.warning("registration rejected: cpf already registered")
                raise ConflictError(DUPLICATE_MESSAGES["cpf"])

            new_account = NewAccount(
                name=data.name,
                last_name=data.last_name,
                cpf=data.cpf,
                date_of_birth=data.date_of_birth,
                email=data.email,
                password_hash=self._hasher.hash(data.password),
            )
            try:
                account = self._repository.create(new_account)
            except DuplicateKeyError as exc:
                logger.warning("registration lost uniqueness race on %s", exc.field)
                raise ConflictError(
                    DUPLICATE_MESSAGES.get(exc.field, "Account already registered")
                ) from exc

            token = self._tokens.issue(account.email)
            logger.info("account registered: %s", account.account_id)
            return account, token

    def login(self, email: str | None, password: str | None) -> Tuple[Account, str]:
        """Authenticate by email and password and issue a new token.

        Unknown emails and wrong passwords fail with the same message.
        """
        with _operation("An unexpected error occurred during login"):
            if email is None or not email.strip():
                raise ValidationError("Email is required")
            if not password:
                raise ValidationError("Password is required")
            normalized = validation.validate_email(email)

            account = self._repository.get_by_email(normalized)
            if account is None or not self._hasher.verify(password, account.password_hash):
                logger.warning("login rejected for submitted credentials")
                raise AuthError(INVALID_CREDENTIALS)

            token = self._tokens.issue(account.email)
            logger.info("account logged in: %s", account.account_id)
            return account, token

    def get(self, account_id: str) -> Account:
        with _operation("Internal server error occurred while searching for user"):
            account = self._repository.get_by_id(account_id)
            if account is None:
                raise NotFoundError("User not found with the provided ID")
            return account

    def get_by_email(self, email: str | None) -> Account:
        with _operation("Internal server error occurred while searching for user"):
            normalized = validation.validate_email(email)
            account = self._repository.get_by_email(normalized)
            if account is None:
                raise NotFoundError("User not found with the provided email")
            return account

    def get_by_cpf(self, cpf: str | None) -> Account:
        with _operation("Internal server error occurred while searching for user"):
            if cpf is None or not validation.CPF_PATTERN.fullmatch(cpf):
                raise ValidationError("Invalid CPF format. Use only numbers, e.g. 00000000000")
            account = self._repository.get_by_cpf(cpf)
            if account is None:
                raise NotFoundError("User not found with the provided cpf")
            return account

    def list_accounts(self, page_request: PageRequest) -> Page[Account]:
        with _operation("Internal server error occurred while retrieving users"):
            return self._repository.list_accounts(page_request)

    def search(self, term: str | None, page_request: PageRequest) -> Page[Account]:
        """Match ``term`` against either first or last name."""
        with _operation("Internal server error occurred while searching users"):
            term = validation.validate_search_term(term)
            return self._repository.search(
                SearchMode.any, page_request, name=term, last_name=term
            )

    def search_by_name(self, name: str | None, page_request: PageRequest) -> Page[Account]:
        with _operation("Internal server error occurred while searching users"):
            name = validation.validate_search_term(name)
            return self._repository.search(SearchMode.name, page_request, name=name)

    def search_by_last_name(
        self, last_name: str | None, page_request: PageRequest
    ) -> Page[Account]:
        with _operation("Internal server error occurred while searching users"):
            last_name = validation.validate_search_term(last_name)
            return self._repository.search(SearchMode.last_name, page_request, last_name=last_name)

    def search_by_full_name(
        self, name: str | None, last_name: str | None, page_request: PageRequest
    ) -> Page[Account]:
        """Match accounts whose first name and last name both contain the given fragments."""
        with _operation("Internal server error occurred while searching users"):
            name = validation.validate_search_term(name)
            last_name = validation.validate_search_term(last_name)
            return self._repository.search(
                SearchMode.full, page_request, name=name, last_name=last_name
            )

    def update(self, account_id: str, payload: UpdateAccountInput) -> Account:
        """Apply a partial update; ``None`` or blank fields are left untouched."""
        with _operation("An unexpected error occurred during update"):
            current = self._repository.get_by_id(account_id)
            if current is None:
                logger.warning("update rejected: account %s not found", account_id)
                raise NotFoundError("User not found")

            changes: dict[str, str] = {}
            if payload.name is not None and payload.name.strip():
                changes["name"] = validation.validate_name(payload.name, "Name")
            if payload.last_name is not None and payload.last_name.strip():
                changes["last_name"] = validation.validate_name(payload.last_name, "Last name")

            if payload.email is not None and payload.email.strip():
                new_email = validation.validate_email(payload.email)
                if new_email == current.email:
                    raise ConflictError("New email must be different from current email")
                if self._repository.exists_by_email(new_email):
                    raise ConflictError("Email already in use by another user")
                changes["email"] = new_email

            password = validation.validate_optional_password(payload.password)
            if password is not None:
                changes["password_hash"] = self._hasher.hash(password)

            try:
                updated = self._repository.save(replace(current, **changes))
            except DuplicateKeyError as exc:
                logger.warning("update lost uniqueness race on %s", exc.field)
                raise ConflictError("Email already in use by another user") from exc

            logger.info("account updated: %s", account_id)
            return updated

    def delete(self, account_id: str) -> None:
        with _operation("An unexpected error occurred during deletion"):
            if not self._repository.exists_by_id(account_id):
                logger.warning("delete rejected: account %s not found", account_id)
                raise NotFoundError("User not found")
            self._repository.delete(account_id)
            logger.info("account deleted: %s", account_id)

    def load_principal(self, email: str) -> Principal:
        """Resolve the request identity for a verified token subject."""
        account = self._repository.get_by_email(email)
        if account is None:
            raise NotFoundError("User not found with the provided email")
        return Principal(account_id=account.account_id, email=account.email)
