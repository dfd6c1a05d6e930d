"""User accounts: registration, password login and lookup.

Passwords are stored as salted PBKDF2 hashes that record their own work
factor. Successful registration and login return the user; minting the
bearer credential is left to
:class:`~spatial_showcase.services.credentials.CredentialVerifier`.
"""

from __future__ import annotations

import hashlib
import hmac
import logging
import os

from sqlalchemy import select, update
from sqlalchemy.exc import IntegrityError

from spatial_showcase.data.db import Database
from spatial_showcase.data.models import User
from spatial_showcase.exceptions import Conflict, NotFound, Unauthenticated, ValidationFailed

logger = logging.getLogger(__name__)

DEFAULT_PBKDF2_ITERATIONS = 600_000
_LEGACY_ITERATIONS = 100_000
_SCHEME = "pbkdf2_sha256"
_SALT_BYTES = 16


def _derive(password: str, salt: bytes, iterations: int) -> bytes:
    return hashlib.pbkdf2_hmac("sha256", password.encode("utf-8"), salt, iterations)


def hash_password(password: str, iterations: int = DEFAULT_PBKDF2_ITERATIONS) -> str:
    """Return a salted PBKDF2 hash for the given password.

    The result is stored as ``pbkdf2_sha256$<iterations>$<salt_hex>$<hash_hex>``
    so the work factor can be raised without invalidating existing hashes.
    """
    salt = os.urandom(_SALT_BYTES)
    derived = _derive(password, salt, iterations)
    return f"{_SCHEME}${iterations}${salt.hex()}${derived.hex()}"


def _parse_hash(stored_hash: str) -> tuple[int, bytes, bytes] | None:
    """Split a stored hash into (iterations, salt, hash).

    Hashes written before the work factor was recorded use ``<salt>:<hash>``.
    """
    try:
        if stored_hash.startswith(f"{_SCHEME}$"):
            _, iterations, salt_hex, hash_hex = stored_hash.split("$")
            rounds = int(iterations)
        else:
            salt_hex, hash_hex = stored_hash.split(":", 1)
            rounds = _LEGACY_ITERATIONS
        return rounds, bytes.fromhex(salt_hex), bytes.fromhex(hash_hex)
    except ValueError:
        return None


def verify_password(password: str, stored_hash: str) -> bool:
    """Verify a password against a stored hash in either format."""
    parsed = _parse_hash(stored_hash)
    if parsed is None:
        return False
    rounds, salt, expected = parsed
    if rounds < 1 or not expected:
        return False
    return hmac.compare_digest(_derive(password, salt, rounds), expected)


def needs_rehash(stored_hash: str, iterations: int = DEFAULT_PBKDF2_ITERATIONS) -> bool:
    """Return True if the hash uses the legacy format or a different work factor."""
    parsed = _parse_hash(stored_hash)
    return parsed is None or not stored_hash.startswith(f"{_SCHEME}$") or parsed[0] != iterations


def _normalize_email(email: str) -> str:
    return email.strip().lower()


async def register_user(
    database: Database,
    email: str,
    password: str,
    name: str | None = None,
    *,
    iterations: int = DEFAULT_PBKDF2_ITERATIONS,
) -> User:
    """Create a new user account.

    Raises:
        ValidationFailed: Email or password is empty.
        Conflict: The email is already registered.
    """
    email_clean = _normalize_email(email)
    if not email_clean:
        raise ValidationFailed("Email cannot be empty")
    if not password:
        raise ValidationFailed("Password cannot be empty")

    try:
        async with database.session() as session:
            existing = await session.scalar(select(User.id).where(User.email == email_clean))
            if existing is not None:
                raise Conflict("User already exists")

            user = User(
                email=email_clean,
                password_hash=hash_password(password, iterations),
                name=name,
            )
            session.add(user)
    except IntegrityError as exc:
        raise Conflict("User already exists") from exc

    logger.info("Registered user %s", user.id)
    return user


async def authenticate_user(
    database: Database,
    email: str,
    password: str,
    *,
    iterations: int = DEFAULT_PBKDF2_ITERATIONS,
) -> User:
    """Return the user matching the credentials.

    A hash stored with an outdated format or work factor is replaced on
    successful login.

    Raises:
        Unauthenticated: Unknown email or wrong password.
    """
    email_clean = _normalize_email(email)
    if not email_clean or not password:
        raise Unauthenticated("Invalid email or password")

    async with database.session() as session:
        user = await session.scalar(select(User).where(User.email == email_clean))

    if user is None or not verify_password(password, user.password_hash):
        raise Unauthenticated("Invalid email or password")

    if needs_rehash(user.password_hash, iterations):
        new_hash = hash_password(password, iterations)
        async with database.session() as session:
            await session.execute(
                update(User).where(User.id == user.id).values(password_hash=new_hash)
            )
        user.password_hash = new_hash
        logger.info("Rehashed password for user %s", user.id)
    return user


async def get_user(database: Database, user_id: str) -> User:
    """Return the user with ``user_id``.

    Raises:
        NotFound: No such user.
    """
    async with database.session() as session:
        user = await session.get(User, user_id)
    if user is None:
        raise NotFound("User not found")
    return user
