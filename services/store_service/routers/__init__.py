"""Store service routers package."""

from services.store_service.routers.auth import router as auth_router
from services.store_service.routers.cart import router as cart_router
from services.store_service.routers.catalog import router as catalog_router
from services.store_service.routers.users import router as users_router

__all__ = [
    "auth_router",
    "cart_router",
    "catalog_router",
    "users_router",
]
