"""FastAPI application for the Store Service."""

from fastapi import FastAPI
from libs.common.error_handler import add_exception_handlers
from libs.common.middleware import add_observability_middleware
from services.store_service.routers import (
    auth_router,
    cart_router,
    catalog_router,
    users_router,
)


def create_app() -> FastAPI:
    """Create and configure the Store Service FastAPI app."""
    app = FastAPI(
        title="Storefront Service",
        version="0.1.0",
        description="Storefront backend - catalog, users and addresses, cart, wallet checkout.",
    )

    add_observability_middleware(app)
    add_exception_handlers(app)

    @app.get("/health", tags=["system"])
    async def health_check() -> dict[str, str]:
        """Health check endpoint."""
        return {"status": "ok", "service": "store"}

    app.include_router(auth_router)
    app.include_router(catalog_router)
    app.include_router(users_router)
    app.include_router(cart_router)

    return app


app = create_app()
