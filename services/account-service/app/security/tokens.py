"""Utilities for issuing and validating application JWTs."""

from __future__ import annotations

import logging
import time
from typing import Any

import jwt

from ..config import Settings
from ..domain.errors import InternalError

logger = logging.getLogger(__name__)

ALGORITHM = "HS256"


class TokenService:
    """Issue and verify HS256 bearer tokens whose subject is an account email."""

    def __init__(self, settings: Settings) -> None:
        """Capture the signing secret, issuer and TTL from ``settings``."""
        self._secret = settings.jwt_secret
        self._issuer = settings.jwt_issuer
        self._ttl_seconds = settings.jwt_ttl_seconds

    @property
    def ttl_seconds(self) -> int:
        return self._ttl_seconds

    def issue(self, subject_email: str) -> str:
        """Create a signed JWT for ``subject_email``.

        Parameters
        ----------
        subject_email:
            Normalized account email embedded in the ``sub`` claim.

        Returns
        -------
        str
            The encoded token, valid for the configured TTL.

        Raises
        ------
        InternalError
            When the token cannot be signed.
        """

        now = int(time.time())
        payload: dict[str, Any] = {
            "iss": self._issuer,
            "sub": subject_email,
            "iat": now,
            "exp": now + self._ttl_seconds,
        }
        try:
            return jwt.encode(payload, self._secret, algorithm=ALGORITHM)
        except (jwt.PyJWTError, TypeError, ValueError) as exc:
            logger.error("token signing failed: %s", exc)
            raise InternalError("Error while generating token") from exc

    def verify(self, token: str) -> str | None:
        """Return the token subject, or ``None`` when the token is not acceptable.

        Bad signatures, foreign issuers, expired or malformed tokens all
        produce ``None``; this method never raises for untrusted input.
        """

        if not isinstance(token, str) or not token:
            return None
        try:
            claims = jwt.decode(
                token,
                self._secret,
                algorithms=[ALGORITHM],
                issuer=self._issuer,
                options={"require": ["exp", "iss", "sub"]},
            )
        except (jwt.PyJWTError, ValueError, TypeError) as exc:
            logger.debug("rejected bearer token: %s", exc)
            return None
        subject = claims.get("sub")
        if not isinstance(subject, str) or not subject:
            return None
        return subject
