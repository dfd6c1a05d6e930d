"""Bearer credential issuing and verification.

Credentials are HS256-signed JWTs carrying the user id in ``sub`` and an
expiry in ``exp``. Verification is pure: no database access happens here and
the embedded user id is trusted for the duration of the request.

Two verification capabilities share one contract (``authenticate``):

- :class:`RequiredAuth` raises :class:`Unauthenticated` on any problem.
- :class:`OptionalAuth` returns ``None`` instead, for routes readable by
  anonymous viewers.
"""

from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from collections.abc import Mapping
from dataclasses import dataclass, field
from datetime import UTC, datetime, timedelta
from typing import Any
from uuid import uuid4

from jose import ExpiredSignatureError, JWTError, jwt

from spatial_showcase.exceptions import Unauthenticated

logger = logging.getLogger(__name__)

DEFAULT_ALGORITHM = "HS256"


@dataclass(frozen=True)
class Identity:
    """The authenticated caller."""

    user_id: str
    claims: Mapping[str, Any] = field(default_factory=dict, compare=False, repr=False)


def extract_bearer_token(authorization: str | None) -> str | None:
    """Return the token from an ``Authorization: Bearer <token>`` header value."""
    if not authorization:
        return None
    parts = authorization.split()
    if len(parts) == 2 and parts[0].lower() == "bearer" and parts[1]:
        return parts[1]
    return None


class CredentialVerifier:
    """Issue and verify signed bearer credentials."""

    def __init__(
        self,
        secret: str | None,
        algorithm: str = DEFAULT_ALGORITHM,
        expires_in: timedelta = timedelta(days=7),
    ) -> None:
        if not secret:
            raise RuntimeError(
                "JWT_SECRET environment variable is required. "
                "Set it to a secure random string (e.g., openssl rand -hex 32)"
            )
        self._secret = secret
        self._algorithm = algorithm
        self._expires_in = expires_in

    def issue(self, user_id: str, expires_in: timedelta | None = None) -> str:
        """Create a signed credential for ``user_id``."""
        now = datetime.now(UTC)
        claims = {
            "sub": str(user_id),
            "iat": now,
            "exp": now + (expires_in if expires_in is not None else self._expires_in),
            "jti": str(uuid4()),
        }
        return jwt.encode(claims, self._secret, algorithm=self._algorithm)

    def verify(self, credential: str | None) -> Identity:
        """Return the caller identity or raise :class:`Unauthenticated`."""
        if not credential:
            raise Unauthenticated("Access token required")

        try:
            claims = jwt.decode(
                credential,
                self._secret,
                algorithms=[self._algorithm],
                options={"require_exp": True, "require_sub": True},
            )
        except ExpiredSignatureError as exc:
            raise Unauthenticated("Token expired") from exc
        except JWTError as exc:
            raise Unauthenticated("Invalid token") from exc

        user_id = claims.get("sub")
        if not isinstance(user_id, str) or not user_id:
            raise Unauthenticated("Invalid token payload")
        return Identity(user_id=user_id, claims=claims)

    def verify_optional(self, credential: str | None) -> Identity | None:
        """Return the caller identity, or ``None`` for anonymous/invalid credentials."""
        if not credential:
            return None
        try:
            return self.verify(credential)
        except Unauthenticated as exc:
            logger.debug("Ignoring unusable optional credential: %s", exc.message)
            return None


class AuthCapability(ABC):
    """Extract an identity from an ``Authorization`` header value."""

    def __init__(self, verifier: CredentialVerifier) -> None:
        self.verifier = verifier

    @abstractmethod
    def authenticate(self, authorization: str | None) -> Identity | None: ...


class RequiredAuth(AuthCapability):
    def authenticate(self, authorization: str | None) -> Identity:
        return self.verifier.verify(extract_bearer_token(authorization))


class OptionalAuth(AuthCapability):
    def authenticate(self, authorization: str | None) -> Identity | None:
        return self.verifier.verify_optional(extract_bearer_token(authorization))
