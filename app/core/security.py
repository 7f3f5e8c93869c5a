"""Password hashing (bcrypt) and bearer token issuance/verification (PyJWT)."""

from datetime import UTC, datetime, timedelta
from typing import Any

import bcrypt
import jwt

from app.core.config import settings

BCRYPT_ROUNDS = 12
# bcrypt only looks at the first 72 bytes of the secret.
BCRYPT_MAX_BYTES = 72

NAME_MIN_LEN = 1
NAME_MAX_LEN = 100
EMAIL_MAX_LEN = 255
PASSWORD_MIN_LEN = 8
PASSWORD_MAX_LEN = 128

REQUIRED_CLAIMS = ["sub", "exp", "iat"]


def _password_bytes(plain_password: str) -> bytes:
    return plain_password.encode("utf-8")[:BCRYPT_MAX_BYTES]


def hash_password(plain_password: str) -> str:
    return bcrypt.hashpw(_password_bytes(plain_password), bcrypt.gensalt(rounds=BCRYPT_ROUNDS)).decode("utf-8")


def verify_password(plain_password: str, hashed: str) -> bool:
    """False for a wrong password and for anything that is not a bcrypt hash."""
    try:
        return bcrypt.checkpw(_password_bytes(plain_password), hashed.encode("utf-8"))
    except (ValueError, TypeError):
        return False


def create_access_token(user_id: int, role: str, expires_delta: timedelta | None = None) -> str:
    """
    Signed token for the Authorization header. Claims: sub (user id as a
    string), role, iat and exp (JWT_EXPIRE_MINUTES unless expires_delta).
    """
    issued_at = datetime.now(UTC)
    lifetime = expires_delta if expires_delta is not None else timedelta(minutes=settings.JWT_EXPIRE_MINUTES)
    claims: dict[str, Any] = {
        "sub": str(user_id),
        "role": role,
        "iat": issued_at,
        "exp": issued_at + lifetime,
    }
    return jwt.encode(claims, settings.JWT_SECRET.get_secret_value(), algorithm=settings.JWT_ALGORITHM)


def decode_access_token(token: str) -> dict[str, Any]:
    """Verified claims. Raises jwt.PyJWTError when the token is forged, expired or incomplete."""
    return jwt.decode(
        token,
        settings.JWT_SECRET.get_secret_value(),
        algorithms=[settings.JWT_ALGORITHM],
        options={"require": REQUIRED_CLAIMS},
    )


def user_id_from_token(token: str) -> int:
    """The user id a valid token was issued for; jwt.InvalidTokenError if sub is not an id."""
    sub = decode_access_token(token)["sub"]
    try:
        return int(sub)
    except (TypeError, ValueError) as e:
        raise jwt.InvalidTokenError("Token subject is not a user id") from e
