# PURPOSE: password hashing and bearer-token minting/verification.
#
# Verification is stateless: a valid signature + unexpired `exp` is enough to
# trust the `sub` claim as the caller's owner id. No database lookup.

from datetime import datetime, timedelta, timezone
from typing import Any, Dict

import bcrypt
from fastapi import Depends
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from jose import JWTError, jwt

from .config import settings
from .errors import Unauthenticated

# auto_error=False: we raise our own Unauthenticated so the error body is uniform
bearer_scheme = HTTPBearer(auto_error=False)


# --- Password helpers (bcrypt, no passlib) ---

def hash_password(password: str) -> str:
    """Return a bcrypt hash for the given plain password."""
    if not isinstance(password, str):
        raise TypeError("password must be a string")
    salt = bcrypt.gensalt()
    return bcrypt.hashpw(password.encode("utf-8"), salt).decode("utf-8")


def verify_password(plain_password: str, password_hash: str) -> bool:
    """Verify a plain password against its bcrypt hash."""
    try:
        return bcrypt.checkpw(
            plain_password.encode("utf-8"),
            password_hash.encode("utf-8"),
        )
    except ValueError:
        # malformed stored hash
        return False


# --- JWT helpers ---

def _now_utc() -> datetime:
    return datetime.now(timezone.utc)


def create_access_token(user_id: str, *, expires_delta: timedelta | None = None) -> str:
    """
    Create a signed JWT whose subject is the user id.
    Expiration defaults to settings.JWT_EXPIRE_MIN (7 days).
    """
    now = _now_utc()
    expire = now + (expires_delta if expires_delta is not None else timedelta(minutes=settings.JWT_EXPIRE_MIN))
    payload: Dict[str, Any] = {"sub": str(user_id), "iat": now, "exp": expire}
    return jwt.encode(payload, settings.JWT_SECRET, algorithm=settings.JWT_ALGORITHM)


def decode_access_token(token: str) -> str:
    """Return the subject (user id) of a valid token, else raise Unauthenticated."""
    if not token:
        raise Unauthenticated()
    try:
        payload = jwt.decode(token, settings.JWT_SECRET, algorithms=[settings.JWT_ALGORITHM])
    except JWTError as exc:
        # bad signature, malformed token, expired, wrong alg
        raise Unauthenticated() from exc

    subject = payload.get("sub")
    if not isinstance(subject, str) or not subject:
        raise Unauthenticated()
    return subject


def get_current_owner_id(
    credentials: HTTPAuthorizationCredentials | None = Depends(bearer_scheme),
) -> str:
    """FastAPI dependency: resolve `Authorization: Bearer <token>` to an owner id."""
    if credentials is None or credentials.scheme.lower() != "bearer":
        raise Unauthenticated()
    return decode_access_token(credentials.credentials)
