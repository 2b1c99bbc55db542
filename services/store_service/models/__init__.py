"""Store Service models package."""

from services.store_service.models.cart import CartItem
from services.store_service.models.catalog import Product
from services.store_service.models.identity import User, UserAddress

__all__ = [
    "CartItem",
    "Product",
    "User",
    "UserAddress",
]
