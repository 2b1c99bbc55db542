"""Catalog read path."""

from typing import Optional

from libs.common.errors import NotFoundError
from services.store_service.models import Product
from sqlalchemy import or_, select
from sqlalchemy.ext.asyncio import AsyncSession


async def find_product(db: AsyncSession, product_id: str) -> Optional[Product]:
    result = await db.execute(select(Product).where(Product.id == product_id))
    return result.scalar_one_or_none()


async def get_product(db: AsyncSession, product_id: str) -> Product:
    """Get a product by id. Raises NotFound if it is not in the catalog."""
    product = await find_product(db, product_id)
    if not product:
        raise NotFoundError("Product doesn't exist in database")
    return product


async def list_products(db: AsyncSession) -> list[Product]:
    result = await db.execute(select(Product).order_by(Product.name, Product.id))
    return list(result.scalars().all())


def _contains_pattern(value: str) -> str:
    """LIKE pattern matching ``value`` literally anywhere in the column."""
    escaped = (
        value.strip().replace("\\", "\\\\").replace("%", "\\%").replace("_", "\\_")
    )
    return f"%{escaped}%"


async def search_products(db: AsyncSession, value: str) -> list[Product]:
    """Case-insensitive substring match on name or category."""
    term = _contains_pattern(value)
    result = await db.execute(
        select(Product)
        .where(
            or_(
                Product.name.ilike(term, escape="\\"),
                Product.category.ilike(term, escape="\\"),
            )
        )
        .order_by(Product.name, Product.id)
    )
    return list(result.scalars().all())
