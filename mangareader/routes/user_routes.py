import logging

from fastapi import APIRouter, Depends, HTTPException, Request, status
from passlib.hash import bcrypt
from sqlalchemy import func, or_, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from mangareader.config import Settings, get_settings
from mangareader.database import get_async_session
from mangareader.deps.admin import require_user
from mangareader.limiter import limiter
from mangareader.models.user_model import User
from mangareader.schemas.manga_schemas import MessageResponse
from mangareader.schemas.user_schemas import (
    AuthResponse,
    LoginRequest,
    PublicUserOut,
    PublicUserResponse,
    RegisterRequest,
)
from mangareader.utils.token_utils import Identity, create_access_token

logger = logging.getLogger(__name__)

router = APIRouter(tags=["users"])

# Same answer for unknown identifier and wrong password.
LOGIN_FAILED = "email or password is incorrect"

# unknown identifiers are checked against this so both failures hash once
_DUMMY_HASH = bcrypt.hash("not-a-real-password")


async def _find_conflicts(db: AsyncSession, username: str, email: str) -> list:
    # Check username OR email conflict in a single round-trip
    result = await db.execute(
        select(User).where(
            (func.lower(User.username) == username.lower()) | (func.lower(User.email) == email)
        )
    )
    return list(result.scalars().all())


@router.post("/register", response_model=MessageResponse, status_code=status.HTTP_201_CREATED)
@limiter.limit("5/minute")
async def register(
    request: Request,
    payload: RegisterRequest,
    db: AsyncSession = Depends(get_async_session),
):
    username_norm = payload.user.username.strip()
    email_norm = str(payload.user.email).strip().lower()

    existing = await _find_conflicts(db, username_norm, email_norm)

    if any((u.email or "").strip().lower() == email_norm for u in existing):
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail="Email already exists")

    if any(u.username.lower() == username_norm.lower() for u in existing):
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail="Username already exists")

    new_user = User(
        username=username_norm,
        email=email_norm,
        password=bcrypt.hash(payload.user.password),
    )
    db.add(new_user)
    try:
        await db.commit()
    except IntegrityError:
        # lost a race with a concurrent registration
        await db.rollback()
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail="Username or email already exists")
    logger.info("Registered user %s (id=%s)", new_user.username, new_user.id)

    return {"message": "User registered successfully"}


@router.post("/login", response_model=AuthResponse)
@limiter.limit("5/minute")
async def login(
    request: Request,
    payload: LoginRequest,
    db: AsyncSession = Depends(get_async_session),
    settings: Settings = Depends(get_settings),
):
    identifier = payload.user.identifier.strip()

    result = await db.execute(
        select(User).where(
            or_(func.lower(User.username) == identifier.lower(), func.lower(User.email) == identifier.lower())
        )
    )
    db_user = result.scalars().first()

    if db_user is None:
        bcrypt.verify(payload.user.password, _DUMMY_HASH)
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail=LOGIN_FAILED)
    if not bcrypt.verify(payload.user.password, db_user.password):
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail=LOGIN_FAILED)

    token = create_access_token(db_user, settings)
    return {"user": db_user.to_user_response(token)}


@router.get("/getme", response_model=AuthResponse)
async def get_current_user(
    identity: Identity = Depends(require_user),
    db: AsyncSession = Depends(get_async_session),
    settings: Settings = Depends(get_settings),
):
    user = await db.get(User, identity.user_id)
    if not user:
        raise HTTPException(status_code=404, detail="User not found")

    return {"user": user.to_user_response(create_access_token(user, settings))}


@router.get("/userid/{user_id}", response_model=PublicUserResponse)
async def get_user_by_id(user_id: int, db: AsyncSession = Depends(get_async_session)):
    user = await db.get(User, user_id)
    if not user:
        raise HTTPException(status_code=404, detail="User not found")

    return {"user": PublicUserOut.model_validate(user)}
