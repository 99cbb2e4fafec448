from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from typing import Optional

from fastapi import Depends, HTTPException, Request, status
from jose import JWTError, jwt

from mangareader.config import Settings, get_settings
from mangareader.models.user_model import User

ADMIN_ROLE = "admin"


@dataclass(frozen=True)
class Identity:
    """Who is making the request, as decoded from the bearer token."""

    user_id: int
    email: str
    role: str

    @property
    def is_admin(self) -> bool:
        return self.role == ADMIN_ROLE


def _get_secret_key(settings: Settings) -> str:
    if not settings.secret_key:
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Token is not configured",
        )
    return settings.secret_key


def create_access_token(user: User, settings: Settings) -> str:
    expire = datetime.now(timezone.utc) + timedelta(minutes=settings.access_token_expire_minutes)
    to_encode = {
        "id": user.id,         # what get_current_identity expects
        "sub": user.username,  # helpful for auditing/logs
        "email": user.email,
        "role": user.role,
        "exp": expire,
    }
    return jwt.encode(to_encode, _get_secret_key(settings), algorithm=settings.algorithm)


def extract_token(request: Request) -> Optional[str]:
    """
    Accepts `Authorization: Bearer <token>` and the legacy `auth-token`
    header (with or without the Bearer prefix).
    """
    auth = request.headers.get("Authorization")
    if auth:
        scheme, _, token = auth.partition(" ")
        if scheme.lower() != "bearer" or not token.strip():
            return None
        return token.strip()

    legacy = request.headers.get("auth-token")
    if legacy:
        if legacy.lower().startswith("bearer "):
            legacy = legacy.split(" ", 1)[1]
        return legacy.strip() or None
    return None


def decode_access_token(token: str, settings: Settings) -> Identity:
    invalid = HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail="Invalid token",
        headers={"WWW-Authenticate": "Bearer"},
    )
    secret = _get_secret_key(settings)
    try:
        payload = jwt.decode(token, secret, algorithms=[settings.algorithm])
    except JWTError:
        raise invalid

    user_id = payload.get("id")
    if user_id is None:
        raise invalid
    try:
        user_id = int(user_id)
    except (TypeError, ValueError):
        raise invalid

    return Identity(
        user_id=user_id,
        email=str(payload.get("email") or ""),
        role=str(payload.get("role") or "user"),
    )


async def get_current_identity(
    request: Request,
    settings: Settings = Depends(get_settings),
) -> Identity:
    token = extract_token(request)
    if not token:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Unauthorized",
            headers={"WWW-Authenticate": "Bearer"},
        )
    return decode_access_token(token, settings)
