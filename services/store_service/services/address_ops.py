"""Address manager: saved addresses and the legacy single address."""

import uuid
from typing import Optional, Union

from libs.auth.models import AuthUser
from libs.common.config import get_settings
from libs.common.errors import DomainValidationError, NotFoundError
from libs.common.logging import get_logger
from services.store_service.models import User, UserAddress
from services.store_service.services.identity_ops import get_owned_user
from sqlalchemy import delete, func, select
from sqlalchemy.ext.asyncio import AsyncSession

logger = get_logger(__name__)
settings = get_settings()


def validate_address_text(text: Optional[str]) -> str:
    """Return the trimmed address, or raise if it is too short."""
    cleaned = (text or "").strip()
    if len(cleaned) < settings.ADDRESS_MIN_LENGTH:
        raise DomainValidationError(
            f"Address should be at least {settings.ADDRESS_MIN_LENGTH} characters"
        )
    return cleaned


async def _addresses_for(db: AsyncSession, user: User) -> list[UserAddress]:
    result = await db.execute(
        select(UserAddress)
        .where(UserAddress.user_id == user.id)
        .order_by(UserAddress.created_at, UserAddress.id)
    )
    return list(result.scalars().all())


async def list_addresses(
    db: AsyncSession, user_id: Union[str, uuid.UUID], identity: AuthUser
) -> list[UserAddress]:
    """Saved addresses of the caller, oldest first."""
    user = await get_owned_user(db, user_id, identity)
    return await _addresses_for(db, user)


async def add_address(
    db: AsyncSession, user_id: Union[str, uuid.UUID], identity: AuthUser, text: str
) -> UserAddress:
    """Append a saved address with a fresh id."""
    user = await get_owned_user(db, user_id, identity)
    cleaned = validate_address_text(text)

    address = UserAddress(user_id=user.id, text=cleaned)
    db.add(address)
    await db.commit()

    logger.info("Added address %s for user %s", address.id, user.id)
    return address


async def delete_address(
    db: AsyncSession,
    user_id: Union[str, uuid.UUID],
    identity: AuthUser,
    address_id: Union[str, uuid.UUID],
) -> None:
    """Delete a saved address by id. Positions of the others are not stable."""
    user = await get_owned_user(db, user_id, identity)

    try:
        parsed = (
            address_id
            if isinstance(address_id, uuid.UUID)
            else uuid.UUID(str(address_id))
        )
    except ValueError:
        raise NotFoundError("Address to delete was not found")

    result = await db.execute(
        delete(UserAddress)
        .where(UserAddress.id == parsed, UserAddress.user_id == user.id)
        .execution_options(synchronize_session=False)
    )
    if result.rowcount == 0:
        raise NotFoundError("Address to delete was not found")

    await db.commit()
    logger.info("Deleted address %s for user %s", parsed, user.id)


async def set_legacy_address(
    db: AsyncSession, user_id: Union[str, uuid.UUID], identity: AuthUser, text: str
) -> str:
    """Overwrite the legacy single address and return the stored value.

    Kept for older clients only; it never counts as a saved address.
    """
    user = await get_owned_user(db, user_id, identity)
    user.address = validate_address_text(text)
    await db.commit()
    logger.info("Updated legacy address for user %s", user.id)
    return user.address


async def has_saved_address(db: AsyncSession, user: User) -> bool:
    """Whether the user saved at least one address. Ignores the legacy field."""
    result = await db.execute(
        select(func.count())
        .select_from(UserAddress)
        .where(UserAddress.user_id == user.id)
    )
    return (result.scalar() or 0) > 0
