"""Cart mutation engine: line items keyed by (user, product)."""

import enum
from decimal import Decimal
from typing import Iterable, Optional

from libs.common.config import get_settings
from libs.common.errors import ConflictError, DomainValidationError, NotFoundError
from libs.common.logging import get_logger
from services.store_service.models import CartItem, User
from services.store_service.services.catalog_ops import get_product
from sqlalchemy import delete, select, update
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

logger = get_logger(__name__)
settings = get_settings()

ALREADY_IN_CART = "Product already in cart. Update the quantity or remove the product."


class CartIntent(str, enum.Enum):
    """What the caller means by writing a line: a new line, or a new quantity."""

    ADD = "add"
    UPDATE = "update"


def validate_quantity(quantity) -> int:
    cap = settings.CART_MAX_QUANTITY_PER_LINE
    if isinstance(quantity, bool) or not isinstance(quantity, int):
        raise DomainValidationError("Quantity must be a whole number")
    if quantity < 1:
        raise DomainValidationError("Quantity must be at least 1")
    if quantity > cap:
        raise DomainValidationError(f"Quantity cannot exceed {cap} per product")
    return quantity


def compute_total(items: Iterable) -> Decimal:
    """Sum of cost x quantity over cart lines, using each line's live product."""
    return sum(
        (Decimal(str(item.product.cost)) * item.quantity for item in items),
        Decimal("0"),
    )


async def get_cart(db: AsyncSession, user: User) -> list[CartItem]:
    """All lines of the user's cart with their current product rows."""
    result = await db.execute(
        select(CartItem)
        .where(CartItem.user_id == user.id)
        .order_by(CartItem.created_at, CartItem.product_id)
        .execution_options(populate_existing=True)
    )
    return list(result.unique().scalars().all())


async def _get_line(
    db: AsyncSession, user_id, product_id: str, *, for_update: bool = False
) -> Optional[CartItem]:
    query = select(CartItem).where(
        CartItem.user_id == user_id, CartItem.product_id == product_id
    )
    if for_update:
        query = query.with_for_update(of=CartItem).execution_options(
            populate_existing=True
        )
    result = await db.execute(query)
    return result.unique().scalar_one_or_none()


async def upsert_item(
    db: AsyncSession,
    user: User,
    product_id: str,
    quantity: int,
    intent: CartIntent = CartIntent.ADD,
) -> CartItem:
    """Write one cart line.

    ``ADD`` refuses a product already in the cart. ``UPDATE`` replaces the
    quantity, inserting the line if needed. Quantities are absolute.
    """
    user_id = user.id
    product = await get_product(db, product_id)
    product_id = product.id
    validate_quantity(quantity)

    line = await _get_line(db, user_id, product_id, for_update=True)
    if line is not None:
        if intent == CartIntent.ADD:
            raise ConflictError(ALREADY_IN_CART)
        line.quantity = quantity
    else:
        line = CartItem(user_id=user_id, product=product, quantity=quantity)
        db.add(line)

    try:
        await db.commit()
    except IntegrityError:
        # A concurrent request inserted the same line first
        await db.rollback()
        # Rollback expired the caller's user, which routers read afterwards
        await db.refresh(user)
        if intent == CartIntent.ADD:
            raise ConflictError(ALREADY_IN_CART)
        await db.execute(
            update(CartItem)
            .where(CartItem.user_id == user_id, CartItem.product_id == product_id)
            .values(quantity=quantity)
            .execution_options(synchronize_session=False)
        )
        await db.commit()
        line = await _get_line(db, user_id, product_id)

    logger.info(
        "Cart line %s for user %s set to %d (%s)",
        product_id,
        user_id,
        quantity,
        intent.value,
    )
    return line


async def set_quantity(
    db: AsyncSession, user: User, product_id: str, quantity: int
) -> Optional[CartItem]:
    """Set a line to an absolute quantity. Zero removes the line.

    Returns the written line, or ``None`` when the line was removed.
    """
    product = await get_product(db, product_id)
    if quantity == 0:
        await remove_item(db, user, product.id)
        return None
    return await upsert_item(db, user, product.id, quantity, intent=CartIntent.UPDATE)


async def remove_item(db: AsyncSession, user: User, product_id: str) -> None:
    result = await db.execute(
        delete(CartItem)
        .where(CartItem.user_id == user.id, CartItem.product_id == product_id)
        .execution_options(synchronize_session=False)
    )
    if result.rowcount == 0:
        raise NotFoundError("Product not in cart")

    await db.commit()
    logger.info("Removed cart line %s for user %s", product_id, user.id)
