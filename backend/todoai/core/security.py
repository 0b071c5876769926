"""Password hashing and bearer-token helpers."""
from __future__ import annotations

from datetime import datetime, timedelta, timezone
from uuid import UUID

from jose import ExpiredSignatureError, JWTError, jwt
from passlib.context import CryptContext

from todoai.core.config import settings
from todoai.core.errors import AuthenticationFailed, InvalidInput, SessionExpired

pwd_context = CryptContext(schemes=["bcrypt"], deprecated="auto")

# bcrypt silently ignores anything past 72 bytes.
MAX_PASSWORD_BYTES = 72


def hash_password(password: str) -> str:
    if len(password.encode("utf-8")) > MAX_PASSWORD_BYTES:
        raise InvalidInput("Password must be at most 72 bytes.")
    return pwd_context.hash(password)


def verify_password(plain: str, hashed: str) -> bool:
    """Check a password; over-long input simply fails to verify."""
    try:
        return pwd_context.verify(plain, hashed)
    except ValueError:
        return False


def create_access_token(user_id: UUID, *, now: datetime | None = None) -> str:
    issued = now or datetime.now(timezone.utc)
    expire = issued + timedelta(minutes=settings.access_token_expire_minutes)
    claims = {
        "sub": str(user_id),
        "iat": int(issued.timestamp()),
        "exp": int(expire.timestamp()),
    }
    return jwt.encode(claims, settings.jwt_secret_key, algorithm=settings.jwt_algorithm)


def decode_access_token(token: str) -> UUID:
    """Return the owner id carried by a token.

    Raises SessionExpired for stale tokens and AuthenticationFailed for anything
    that does not decode to a user id.
    """
    try:
        claims = jwt.decode(token, settings.jwt_secret_key, algorithms=[settings.jwt_algorithm])
    except ExpiredSignatureError as exc:
        raise SessionExpired(detail=str(exc)) from exc
    except JWTError as exc:
        raise AuthenticationFailed("Invalid authentication token.", detail=str(exc)) from exc

    subject = claims.get("sub")
    try:
        return UUID(str(subject))
    except ValueError as exc:
        raise AuthenticationFailed("Invalid authentication token.", detail="sub is not a user id") from exc
