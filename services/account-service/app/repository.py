"""Database repository for account data.

Expects an ``accounts`` table with unique constraints named
``accounts_email_key`` and ``accounts_cpf_key``; creating it is left to the
deployment's migration tooling.
"""

from __future__ import annotations

import uuid
from typing import Any

from psycopg import errors as pg_errors
from psycopg.rows import tuple_row
from psycopg_pool import ConnectionPool

from .domain.account import Account
from .domain.contracts import NewAccount, Page, PageRequest, SearchMode
from .domain.errors import DuplicateKeyError

ACCOUNT_COLUMNS = "account_id, name, last_name, cpf, date_of_birth, email, password_hash"

SORT_COLUMNS = {
    "name": "name",
    "lastName": "last_name",
    "email": "email",
    "cpf": "cpf",
    "dateOfBirth": "date_of_birth",
}


def _duplicate_field(exc: pg_errors.UniqueViolation) -> str:
    """Map the violated constraint back to the account field it protects."""
    constraint = (exc.diag.constraint_name or "").lower()
    if "cpf" in constraint:
        return "cpf"
    if "email" in constraint:
        return "email"
    return "account_id"


def _like(fragment: str) -> str:
    escaped = fragment.replace("\\", "\\\\").replace("%", "\\%").replace("_", "\\_")
    return f"%{escaped}%"


class AccountRepository:
    """Postgres-backed account persistence."""

    def __init__(self, pool: ConnectionPool) -> None:
        """Store the connection pool used for all database interactions."""
        self._pool = pool

    def _fetch_one(self, where_sql: str, params: tuple[Any, ...]) -> Account | None:
        with self._pool.connection() as conn:
            with conn.cursor(row_factory=tuple_row) as cur:
                cur.execute(f"SELECT {ACCOUNT_COLUMNS} FROM accounts WHERE {where_sql}", params)
                row = cur.fetchone()
        if not row:
            return None
        return self._map_record(row)

    def _exists(self, where_sql: str, params: tuple[Any, ...]) -> bool:
        with self._pool.connection() as conn:
            with conn.cursor(row_factory=tuple_row) as cur:
                cur.execute(f"SELECT EXISTS (SELECT 1 FROM accounts WHERE {where_sql})", params)
                row = cur.fetchone()
        return bool(row and row[0])

    def get_by_id(self, account_id: str) -> Account | None:
        """Fetch an account by identifier or return ``None``."""
        return self._fetch_one("account_id = %s", (account_id,))

    def get_by_email(self, email: str) -> Account | None:
        return self._fetch_one("email = %s", (email,))

    def get_by_cpf(self, cpf: str) -> Account | None:
        return self._fetch_one("cpf = %s", (cpf,))

    def exists_by_id(self, account_id: str) -> bool:
        return self._exists("account_id = %s", (account_id,))

    def exists_by_email(self, email: str) -> bool:
        return self._exists("email = %s", (email,))

    def exists_by_cpf(self, cpf: str) -> bool:
        return self._exists("cpf = %s", (cpf,))

    def list_accounts(self, page_request: PageRequest) -> Page[Account]:
        """Return one page of all accounts in the requested order."""
        return self._page("TRUE", (), page_request)

    def search(
        self,
        mode: SearchMode,
        page_request: PageRequest,
        *,
        name: str | None = None,
        last_name: str | None = None,
    ) -> Page[Account]:
        """Case-insensitive substring search over first and/or last name."""
        if mode is SearchMode.name:
            return self._page("name ILIKE %s", (_like(name or ""),), page_request)
        if mode is SearchMode.last_name:
            return self._page("last_name ILIKE %s", (_like(last_name or ""),), page_request)
        joiner = "OR" if mode is SearchMode.any else "AND"
        return self._page(
            f"(name ILIKE %s {joiner} last_name ILIKE %s)",
            (_like(name or ""), _like(last_name or "")),
            page_request,
        )

    def _page(
        self, where_sql: str, params: tuple[Any, ...], page_request: PageRequest
    ) -> Page[Account]:
        column = SORT_COLUMNS.get(page_request.sort_by, "name")
        direction = "DESC" if page_request.descending else "ASC"
        with self._pool.connection() as conn:
            with conn.cursor(row_factory=tuple_row) as cur:
                cur.execute(f"SELECT count(*) FROM accounts WHERE {where_sql}", params)
                total = cur.fetchone()[0]
                cur.execute(
                    f"""
                    SELECT {ACCOUNT_COLUMNS}
                    FROM accounts
                    WHERE {where_sql}
                    ORDER BY {column} {direction}, account_id ASC
                    LIMIT %s OFFSET %s
                    """,
                    (*params, page_request.size, page_request.offset),
                )
                rows = cur.fetchall()
        return Page(
            items=[self._map_record(row) for row in rows],
            request=page_request,
            total_elements=total,
        )

    def create(self, payload: NewAccount) -> Account:
        """Insert a new account, assigning its identifier."""
        account_id = str(uuid.uuid4())
        try:
            with self._pool.connection() as conn:
                with conn.cursor(row_factory=tuple_row) as cur:
                    cur.execute(
                        f"""
                        INSERT INTO accounts ({ACCOUNT_COLUMNS})
                        VALUES (%s, %s, %s, %s, %s, %s, %s)
                        RETURNING {ACCOUNT_COLUMNS}
                        """,
                        (
                            account_id,
                            payload.name,
                            payload.last_name,
                            payload.cpf,
                            payload.date_of_birth,
                            payload.email,
                            payload.password_hash,
                        ),
                    )
                    record = cur.fetchone()
                conn.commit()
        except pg_errors.UniqueViolation as exc:
            raise DuplicateKeyError(_duplicate_field(exc)) from exc
        return self._map_record(record)

    def save(self, account: Account) -> Account:
        """Insert or update the account identified by ``account.account_id``."""
        try:
            with self._pool.connection() as conn:
                with conn.cursor(row_factory=tuple_row) as cur:
                    cur.execute(
                        f"""
                        INSERT INTO accounts ({ACCOUNT_COLUMNS})
                        VALUES (%s, %s, %s, %s, %s, %s, %s)
                        ON CONFLICT (account_id) DO UPDATE SET
                            name = EXCLUDED.name,
                            last_name = EXCLUDED.last_name,
                            cpf = EXCLUDED.cpf,
                            date_of_birth = EXCLUDED.date_of_birth,
                            email = EXCLUDED.email,
                            password_hash = EXCLUDED.password_hash
                        RETURNING {ACCOUNT_COLUMNS}
                        """,
                        (
                            account.account_id,
                            account.name,
                            account.last_name,
                            account.cpf,
                            account.date_of_birth,
                            account.email,
                            account.password_hash,
                        ),
                    )
                    record = cur.fetchone()
                conn.commit()
        except pg_errors.UniqueViolation as exc:
            raise DuplicateKeyError(_duplicate_field(exc)) from exc
        return self._map_record(record)

    def delete(self, account_id: str) -> None:
        with self._pool.connection() as conn:
            with conn.cursor() as cur:
                cur.execute("DELETE FROM accounts WHERE account_id = %s", (account_id,))
                conn.commit()

    def _map_record(self, row: tuple) -> Account:
        """Convert a raw database tuple into the domain ``Account`` dataclass."""
        return Account(
            account_id=str(row[0]),
            name=row[1],
            last_name=row[2],
            cpf=row[3],
            date_of_birth=row[4],
            email=row[5],
            password_hash=row[6],
        )
