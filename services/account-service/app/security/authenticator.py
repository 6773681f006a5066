"""Per-request bearer-token authentication.

The authenticator never rejects a request on its own: it either attaches a
:class:`~app.domain.account.Principal` to ``request.state.principal`` or leaves
it ``None``. Routes that need an identity depend on :func:`require_principal`.

Paths on the public skip-list are never inspected. With the default
configuration that list covers ``/users/**``, so every user resource route is
reachable without a token and only routes outside the list (``/me``) are gated.
"""

from __future__ import annotations

import fnmatch
import logging
from typing import Callable, Iterable

from fastapi import HTTPException, Request, status
from starlette.concurrency import run_in_threadpool
from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.responses import Response

from ..domain.account import Principal
from ..domain.ports import TokenCodec

logger = logging.getLogger(__name__)

BEARER_PREFIX = "Bearer "


def path_matches(pattern: str, path: str) -> bool:
    """Match ``path`` against an Ant-style ``/**`` suffix or a shell-style glob."""
    if pattern.endswith("/**"):
        base = pattern[:-3]
        return path == base or path.startswith(base + "/")
    return fnmatch.fnmatchcase(path, pattern)


def extract_bearer_token(authorization: str | None) -> str | None:
    if authorization is None or not authorization.startswith(BEARER_PREFIX):
        return None
    return authorization[len(BEARER_PREFIX):] or None


class RequestAuthenticator:
    """Resolve the request principal from the ``Authorization`` header."""

    def __init__(
        self,
        tokens: TokenCodec,
        load_principal: Callable[[str], Principal],
        public_paths: Iterable[str],
    ) -> None:
        self._tokens = tokens
        self._load_principal = load_principal
        self._public_paths = tuple(public_paths)

    def is_public(self, path: str) -> bool:
        return any(path_matches(pattern, path) for pattern in self._public_paths)

    def authenticate(self, method: str, path: str, authorization: str | None) -> Principal | None:
        """Return the authenticated principal, or ``None`` to continue anonymously."""
        if self.is_public(path):
            logger.debug("skipping token validation for public endpoint %s", path)
            return None
        if method.upper() == "OPTIONS":
            logger.debug("skipping token validation for OPTIONS request")
            return None

        token = extract_bearer_token(authorization)
        if token is None:
            logger.debug("no bearer token on %s %s", method, path)
            return None

        subject = self._tokens.verify(token)
        if subject is None:
            logger.debug("invalid or expired token on %s %s", method, path)
            return None

        try:
            principal = self._load_principal(subject)
        except Exception:
            logger.exception("failed to load principal for verified token")
            return None
        logger.debug("authenticated request for account %s", principal.account_id)
        return principal


class AuthenticationMiddleware(BaseHTTPMiddleware):
    """Attach the outcome of ``app.state.authenticator`` to every request."""

    async def dispatch(self, request: Request, call_next: RequestResponseEndpoint) -> Response:
        authenticator: RequestAuthenticator | None = getattr(
            request.app.state, "authenticator", None
        )
        principal = None
        if authenticator is not None:
            principal = await run_in_threadpool(
                authenticator.authenticate,
                request.method,
                request.url.path,
                request.headers.get("Authorization"),
            )
        request.state.principal = principal
        return await call_next(request)


def get_principal(request: Request) -> Principal | None:
    return getattr(request.state, "principal", None)


def require_principal(request: Request) -> Principal:
    """FastAPI dependency for gated routes."""
    principal = get_principal(request)
    if principal is None:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED, detail="Authentication required"
        )
    return principal
