"""Identity read path, ownership checks, registration and login."""

import enum
import uuid
from typing import Optional, Union

from libs.auth.models import AuthUser
from libs.auth.passwords import hash_password, verify_password
from libs.common.config import get_settings
from libs.common.errors import (
    ConflictError,
    ForbiddenError,
    NotFoundError,
    UnauthorizedError,
)
from libs.common.logging import get_logger
from services.store_service.models import User
from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

logger = get_logger(__name__)
settings = get_settings()


class UserProjection(str, enum.Enum):
    FULL = "full"
    ADDRESS = "address"


def normalize_email(email: str) -> str:
    return email.strip().lower()


# ---------------------------------------------------------------------------
# Ownership
# ---------------------------------------------------------------------------


def belongs_to(user: User, identity: AuthUser) -> bool:
    """True when ``user`` is the record of the authenticated ``identity``.

    Compares the email identity claim, never the record id.
    """
    return normalize_email(user.email) == normalize_email(str(identity.email))


def ensure_owner(user: User, identity: AuthUser) -> None:
    if not belongs_to(user, identity):
        logger.warning(
            "Identity %s denied access to user %s", identity.user_id, user.id
        )
        raise ForbiddenError("User not authorized to access this resource")


# ---------------------------------------------------------------------------
# Lookups
# ---------------------------------------------------------------------------


def _parse_uuid(value: Union[str, uuid.UUID]) -> Optional[uuid.UUID]:
    if isinstance(value, uuid.UUID):
        return value
    try:
        return uuid.UUID(str(value))
    except ValueError:
        return None


async def get_user_by_id(
    db: AsyncSession, user_id: Union[str, uuid.UUID]
) -> User:
    """Get a user by id. Raises NotFound for unknown or malformed ids."""
    parsed = _parse_uuid(user_id)
    if parsed is None:
        raise NotFoundError("User not found")

    result = await db.execute(select(User).where(User.id == parsed))
    user = result.scalar_one_or_none()
    if not user:
        raise NotFoundError("User not found")
    return user


async def get_owned_user(
    db: AsyncSession,
    user_id: Union[str, uuid.UUID],
    identity: AuthUser,
) -> User:
    """Get a user the caller owns. NotFound first, then Forbidden."""
    user = await get_user_by_id(db, user_id)
    ensure_owner(user, identity)
    return user


async def get_user_by_email(db: AsyncSession, email: str) -> Optional[User]:
    result = await db.execute(select(User).where(User.email == normalize_email(email)))
    return result.scalar_one_or_none()


async def get_user_for_identity(
    db: AsyncSession, identity: AuthUser, *, fresh: bool = False
) -> User:
    """Resolve the authenticated identity to its user record.

    A valid token whose user no longer exists is treated as unauthenticated.
    """
    query = select(User).where(User.email == normalize_email(str(identity.email)))
    if fresh:
        query = query.execution_options(populate_existing=True)
    result = await db.execute(query)
    user = result.scalar_one_or_none()
    if not user:
        raise UnauthorizedError("Please authenticate")
    return user


async def get_user(
    db: AsyncSession,
    user_id: Union[str, uuid.UUID],
    identity: AuthUser,
    projection: UserProjection = UserProjection.FULL,
) -> Union[User, dict]:
    """Return the caller's own record, or just its legacy address."""
    user = await get_owned_user(db, user_id, identity)
    if projection == UserProjection.ADDRESS:
        return {"address": user.address}

    # Saved addresses may have changed since the user was loaded
    await db.refresh(user, attribute_names=["addresses"])
    return user


# ---------------------------------------------------------------------------
# Registration / login
# ---------------------------------------------------------------------------


async def register_user(
    db: AsyncSession, *, name: str, email: str, password: str
) -> User:
    """Create a user with a fresh wallet. Emails are unique case-insensitively."""
    email = normalize_email(email)
    if await get_user_by_email(db, email):
        raise ConflictError("Email already taken")

    user = User(
        name=name.strip(),
        email=email,
        password_hash=hash_password(password),
        wallet_money=settings.DEFAULT_WALLET_MONEY,
        address=None,
    )
    db.add(user)
    try:
        await db.commit()
    except IntegrityError:
        # Lost a race against a concurrent registration for the same email
        await db.rollback()
        raise ConflictError("Email already taken")

    await db.refresh(user, attribute_names=["addresses"])
    logger.info("Registered user %s (wallet=%s)", user.id, user.wallet_money)
    return user


async def authenticate(db: AsyncSession, *, email: str, password: str) -> User:
    user = await get_user_by_email(db, email)
    if not user or not verify_password(password, user.password_hash):
        raise UnauthorizedError("Incorrect email or password")
    await db.refresh(user, attribute_names=["addresses"])
    return user
