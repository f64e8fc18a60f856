from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
import uuid
from typing import Any, Dict, Optional
from jose import jwt, JWTError, ExpiredSignatureError
from passlib.context import CryptContext

from .config import get_settings
from .errors import AuthError

# Use pbkdf2_sha256 to avoid native bcrypt backend issues and keep portability
pwd_context = CryptContext(schemes=["pbkdf2_sha256"], deprecated="auto")

LIBRARIAN_ROLE = "librarian"


@dataclass(frozen=True)
class Principal:
    subject_id: str
    role: str


def hash_password(raw: str) -> str:
    return pwd_context.hash(raw)


def verify_password(raw: str, hashed: str) -> bool:
    return pwd_context.verify(raw, hashed)


def create_access_token(subject: str | int, role: str, expires_delta: Optional[timedelta] = None) -> str:
    settings = get_settings()
    if expires_delta is None:
        expires_delta = timedelta(minutes=settings.access_token_exp_minutes)
    # Use timezone-aware UTC to avoid local-time offset issues on .timestamp()
    now = datetime.now(timezone.utc)
    to_encode: Dict[str, Any] = {
        "sub": str(subject),
        "role": role,
        "iat": int(now.timestamp()),
        "exp": int((now + expires_delta).timestamp()),
        "type": "access",
        # ensure uniqueness even within the same second
        "jti": uuid.uuid4().hex,
    }
    return jwt.encode(to_encode, settings.secret_key, algorithm=settings.jwt_algorithm)


def decode_token(token: str) -> Principal:
    """Verify signature and expiry, and return who the token speaks for.

    Expired tokens and otherwise unusable ones fail with different
    ``AuthError.reason`` values so callers can tell them apart.
    """
    settings = get_settings()
    try:
        payload = jwt.decode(token, settings.secret_key, algorithms=[settings.jwt_algorithm])
    except ExpiredSignatureError:
        raise AuthError("expired")
    except JWTError:
        raise AuthError("invalid")
    if payload.get("type") != "access":
        raise AuthError("invalid", "Invalid token type")
    subject, role = payload.get("sub"), payload.get("role")
    if not subject or not isinstance(role, str) or not role:
        raise AuthError("invalid")
    return Principal(subject_id=str(subject), role=role)
