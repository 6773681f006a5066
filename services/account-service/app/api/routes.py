"""HTTP route definitions for the account service."""

from __future__ import annotations

from datetime import date
from typing import Any
from uuid import UUID

from fastapi import APIRouter, Depends, Query, Request, status
from pydantic import BaseModel, ConfigDict, field_validator
from pydantic.alias_generators import to_camel
from schemas import AccountView, ApiResponse, AuthResult, PaginatedResponse, PaginationInfo

from ..domain import validation
from ..domain.account import Account, Principal
from ..domain.contracts import Page, PageRequest, RegistrationInput, UpdateAccountInput
from ..domain.errors import AccountError, ValidationError
from ..domain.service import AccountService
from ..security.authenticator import require_principal
from .errors import http_error_from_domain

auth_router = APIRouter(prefix="/auth/v1", tags=["auth"])
users_router = APIRouter(prefix="/users", tags=["users"])
me_router = APIRouter(tags=["me"])


class _CamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class RegisterRequest(_CamelModel):
    """Registration payload; field rules are enforced by the account service."""

    name: str | None = None
    last_name: str | None = None
    cpf: str | None = None
    date_of_birth: date | None = None
    email: str | None = None
    password: str | None = None

    @field_validator("date_of_birth", mode="before")
    @classmethod
    def _parse_date_of_birth(cls, value: Any) -> Any:
        if not isinstance(value, str):
            return value
        try:
            return validation.parse_date_of_birth(value)
        except ValidationError as exc:
            raise ValueError(exc.message) from exc

    def to_input(self) -> RegistrationInput:
        return RegistrationInput(
            name=self.name,
            last_name=self.last_name,
            cpf=self.cpf,
            date_of_birth=self.date_of_birth,
            email=self.email,
            password=self.password,
        )


class LoginRequest(_CamelModel):
    email: str | None = None
    password: str | None = None


class UpdateAccountRequest(_CamelModel):
    """Partial update; omitted, null or blank fields keep their stored values."""

    name: str | None = None
    last_name: str | None = None
    email: str | None = None
    password: str | None = None

    def to_input(self) -> UpdateAccountInput:
        return UpdateAccountInput(
            name=self.name,
            last_name=self.last_name,
            email=self.email,
            password=self.password,
        )


def get_service(request: Request) -> AccountService:
    """Resolve the `AccountService` stored on the FastAPI application state."""
    service: AccountService = request.app.state.account_service
    return service


def to_view(account: Account) -> AccountView:
    """Build the public view, formatting the CPF and deriving the age."""
    return AccountView(
        id=account.account_id,
        name=account.name,
        last_name=account.last_name,
        cpf=validation.format_cpf(account.cpf),
        email=account.email,
        age=validation.calculate_age(account.date_of_birth),
    )


def to_paginated(page: Page[Account], message: str) -> PaginatedResponse[AccountView]:
    return PaginatedResponse[AccountView](
        success=True,
        message=message,
        content=[to_view(account) for account in page.items],
        pagination=PaginationInfo(
            current_page=page.request.page,
            page_size=page.request.size,
            total_elements=page.total_elements,
            total_pages=page.total_pages,
            is_first=page.is_first,
            is_last=page.is_last,
            has_next=page.has_next,
            has_previous=page.has_previous,
        ),
    )


def _search_result(page: Page[Account], term: str, empty_message: str) -> PaginatedResponse[AccountView]:
    if not page.items:
        return to_paginated(page, empty_message)
    return to_paginated(page, f"Found {page.total_elements} users matching '{term.strip()}'")


@auth_router.post(
    "/register",
    response_model=ApiResponse[AuthResult],
    response_model_exclude_none=True,
    status_code=status.HTTP_201_CREATED,
)
def register(
    payload: RegisterRequest,
    service: AccountService = Depends(get_service),
) -> ApiResponse[AuthResult]:
    """Register an account and return it together with a bearer token."""
    try:
        account, token = service.register(payload.to_input())
    except AccountError as exc:
        raise http_error_from_domain(exc, conflict_status=status.HTTP_400_BAD_REQUEST) from exc
    return ApiResponse[AuthResult].ok(
        "User registered successfully", AuthResult(token=token, user=to_view(account))
    )


@auth_router.post("/login", response_model=ApiResponse[AuthResult], response_model_exclude_none=True)
def login(
    payload: LoginRequest,
    service: AccountService = Depends(get_service),
) -> ApiResponse[AuthResult]:
    """Exchange email and password for a bearer token."""
    try:
        account, token = service.login(payload.email, payload.password)
    except AccountError as exc:
        raise http_error_from_domain(exc) from exc
    return ApiResponse[AuthResult].ok(
        "Logged in successfully", AuthResult(token=token, user=to_view(account))
    )


@users_router.get("", response_model=None)
def list_users(
    email: str | None = Query(default=None),
    cpf: str | None = Query(default=None),
    page: int = Query(default=0),
    size: int = Query(default=10),
    sort_by: str = Query(default="name", alias="sortBy"),
    sort_direction: str = Query(default="asc", alias="sortDirection"),
    service: AccountService = Depends(get_service),
) -> ApiResponse[AccountView] | PaginatedResponse[AccountView]:
    """List accounts page by page, or look one up when ``email`` or ``cpf`` is given."""
    if email is not None:
        return find_by_email(email, service)
    if cpf is not None:
        return find_by_cpf(cpf, service)

    page_request = PageRequest.normalize(page, size, sort_by, sort_direction)
    try:
        result = service.list_accounts(page_request)
    except AccountError as exc:
        raise http_error_from_domain(exc) from exc
    if not result.items:
        return to_paginated(result, "No users found")
    return to_paginated(result, "Users retrieved successfully")


@users_router.get("/email", response_model=ApiResponse[AccountView], response_model_exclude_none=True)
def find_by_email(
    email: str = Query(...),
    service: AccountService = Depends(get_service),
) -> ApiResponse[AccountView]:
    try:
        account = service.get_by_email(email)
    except AccountError as exc:
        raise http_error_from_domain(exc) from exc
    return ApiResponse[AccountView].ok("User found successfully", to_view(account))


@users_router.get("/cpf", response_model=ApiResponse[AccountView], response_model_exclude_none=True)
def find_by_cpf(
    cpf: str = Query(...),
    service: AccountService = Depends(get_service),
) -> ApiResponse[AccountView]:
    try:
        account = service.get_by_cpf(cpf)
    except AccountError as exc:
        raise http_error_from_domain(exc) from exc
    return ApiResponse[AccountView].ok("User found successfully", to_view(account))


@users_router.get("/search", response_model=PaginatedResponse[AccountView], response_model_exclude_none=True)
def search_users(
    q: str = Query(...),
    page: int = Query(default=0),
    size: int = Query(default=10),
    sort_by: str = Query(default="name", alias="sortBy"),
    sort_direction: str = Query(default="asc", alias="sortDirection"),
    service: AccountService = Depends(get_service),
) -> PaginatedResponse[AccountView]:
    """Substring search over first or last name."""
    page_request = PageRequest.normalize(page, size, sort_by, sort_direction)
    try:
        result = service.search(q, page_request)
    except AccountError as exc:
        raise http_error_from_domain(exc) from exc
    return _search_result(result, q, "No users found with the provided search term")


@users_router.get(
    "/search/name", response_model=PaginatedResponse[AccountView], response_model_exclude_none=True
)
def search_by_name(
    name: str = Query(...),
    page: int = Query(default=0),
    size: int = Query(default=10),
    sort_by: str = Query(default="name", alias="sortBy"),
    sort_direction: str = Query(default="asc", alias="sortDirection"),
    service: AccountService = Depends(get_service),
) -> PaginatedResponse[AccountView]:
    page_request = PageRequest.normalize(page, size, sort_by, sort_direction)
    try:
        result = service.search_by_name(name, page_request)
    except AccountError as exc:
        raise http_error_from_domain(exc) from exc
    return _search_result(result, name, "No users found containing the provided name")


@users_router.get(
    "/search/lastname", response_model=PaginatedResponse[AccountView], response_model_exclude_none=True
)
def search_by_last_name(
    last_name: str = Query(..., alias="lastName"),
    page: int = Query(default=0),
    size: int = Query(default=10),
    sort_by: str = Query(default="lastName", alias="sortBy"),
    sort_direction: str = Query(default="asc", alias="sortDirection"),
    service: AccountService = Depends(get_service),
) -> PaginatedResponse[AccountView]:
    page_request = PageRequest.normalize(
        page, size, sort_by, sort_direction, default_sort="lastName"
    )
    try:
        result = service.search_by_last_name(last_name, page_request)
    except AccountError as exc:
        raise http_error_from_domain(exc) from exc
    return _search_result(result, last_name, "No users found containing the provided last name")


@users_router.get(
    "/search/fullname", response_model=PaginatedResponse[AccountView], response_model_exclude_none=True
)
def search_by_full_name(
    name: str = Query(...),
    last_name: str = Query(..., alias="lastName"),
    page: int = Query(default=0),
    size: int = Query(default=10),
    sort_by: str = Query(default="name", alias="sortBy"),
    sort_direction: str = Query(default="asc", alias="sortDirection"),
    service: AccountService = Depends(get_service),
) -> PaginatedResponse[AccountView]:
    page_request = PageRequest.normalize(page, size, sort_by, sort_direction)
    try:
        result = service.search_by_full_name(name, last_name, page_request)
    except AccountError as exc:
        raise http_error_from_domain(exc) from exc
    return _search_result(
        result, f"{name} {last_name}", "No users found containing the provided full name"
    )


@users_router.get("/{account_id}", response_model=ApiResponse[AccountView], response_model_exclude_none=True)
def get_user(
    account_id: UUID,
    service: AccountService = Depends(get_service),
) -> ApiResponse[AccountView]:
    try:
        account = service.get(str(account_id))
    except AccountError as exc:
        raise http_error_from_domain(exc) from exc
    return ApiResponse[AccountView].ok("User found successfully", to_view(account))


@users_router.put("/{account_id}", response_model=ApiResponse[AccountView], response_model_exclude_none=True)
def update_user(
    account_id: UUID,
    payload: UpdateAccountRequest,
    service: AccountService = Depends(get_service),
) -> ApiResponse[AccountView]:
    """Partially update name, last name, email or password."""
    try:
        account = service.update(str(account_id), payload.to_input())
    except AccountError as exc:
        raise http_error_from_domain(exc, conflict_status=status.HTTP_409_CONFLICT) from exc
    return ApiResponse[AccountView].ok("User updated successfully", to_view(account))


@users_router.delete("/{account_id}", response_model=ApiResponse[None], response_model_exclude_none=True)
def delete_user(
    account_id: UUID,
    service: AccountService = Depends(get_service),
) -> ApiResponse[None]:
    try:
        service.delete(str(account_id))
    except AccountError as exc:
        raise http_error_from_domain(exc) from exc
    return ApiResponse[None].ok("User deleted successfully")


@me_router.get("/me", response_model=ApiResponse[AccountView], response_model_exclude_none=True)
def current_user(
    principal: Principal = Depends(require_principal),
    service: AccountService = Depends(get_service),
) -> ApiResponse[AccountView]:
    """Return the account that owns the bearer token; requires authentication."""
    try:
        account = service.get(principal.account_id)
    except AccountError as exc:
        raise http_error_from_domain(exc) from exc
    return ApiResponse[AccountView].ok("User found successfully", to_view(account))


router = APIRouter()
router.include_router(auth_router)
router.include_router(users_router)
router.include_router(me_router)
