"""Domain-level request contracts shared by multiple layers."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import date
from enum import Enum
from typing import Generic, TypeVar

T = TypeVar("T")

DEFAULT_PAGE_SIZE = 10
MAX_PAGE_SIZE = 100
SORTABLE_FIELDS = frozenset({"name", "lastName", "email", "cpf", "dateOfBirth"})


@dataclass(slots=True)
class RegistrationInput:
    """Raw registration fields as received; validated by the service."""

    name: str | None = None
    last_name: str | None = None
    cpf: str | None = None
    date_of_birth: date | None = None
    email: str | None = None
    password: str | None = None


@dataclass(slots=True)
class NewAccount:
    """Validated, normalized inputs required to persist a new account."""

    name: str
    last_name: str
    cpf: str
    date_of_birth: date
    email: str
    password_hash: str


@dataclass(slots=True)
class UpdateAccountInput:
    """Partial update; ``None`` or blank fields leave the stored value alone."""

    name: str | None = None
    last_name: str | None = None
    email: str | None = None
    password: str | None = None


class SearchMode(str, Enum):
    name = "name"
    last_name = "last_name"
    any = "any"
    full = "full"


@dataclass(slots=True, frozen=True)
class PageRequest:
    page: int = 0
    size: int = DEFAULT_PAGE_SIZE
    sort_by: str = "name"
    descending: bool = False

    @classmethod
    def normalize(
        cls,
        page: int | None,
        size: int | None,
        sort_by: str | None,
        sort_direction: str | None,
        default_sort: str = "name",
    ) -> "PageRequest":
        """Coerce raw query parameters into a usable page request.

        Negative pages start at 0, non-positive sizes fall back to the default
        size, oversized pages are capped at ``MAX_PAGE_SIZE``, and blank or
        unknown sort fields use ``default_sort``. Only ``"desc"`` (any case)
        sorts descending.
        """
        page = page if page is not None and page >= 0 else 0
        if size is None or size <= 0:
            size = DEFAULT_PAGE_SIZE
        elif size > MAX_PAGE_SIZE:
            size = MAX_PAGE_SIZE
        if not sort_by or sort_by not in SORTABLE_FIELDS:
            sort_by = default_sort
        descending = (sort_direction or "").strip().lower() == "desc"
        return cls(page=page, size=size, sort_by=sort_by, descending=descending)

    @property
    def offset(self) -> int:
        return self.page * self.size


@dataclass(slots=True)
class Page(Generic[T]):
    """A slice of results plus the totals needed for pagination metadata."""

    items: list[T]
    request: PageRequest
    total_elements: int

    @property
    def total_pages(self) -> int:
        if self.total_elements == 0:
            return 0
        return -(-self.total_elements // self.request.size)

    @property
    def is_first(self) -> bool:
        return self.request.page == 0

    @property
    def has_next(self) -> bool:
        return self.request.page + 1 < self.total_pages

    @property
    def is_last(self) -> bool:
        return not self.has_next

    @property
    def has_previous(self) -> bool:
        return self.request.page > 0
