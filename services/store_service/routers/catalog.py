"""Catalog router: product listing, search and lookup."""

from fastapi import APIRouter, Depends, Query
from libs.db.session import get_async_db
from services.store_service.schemas import ProductResponse
from services.store_service.services import catalog_ops
from sqlalchemy.ext.asyncio import AsyncSession

router = APIRouter(prefix="/products", tags=["catalog"])


@router.get("", response_model=list[ProductResponse])
async def list_products(db: AsyncSession = Depends(get_async_db)):
    return await catalog_ops.list_products(db)


# Declared before /{product_id} so "search" is not taken for an id
@router.get("/search", response_model=list[ProductResponse])
async def search_products(
    value: str = Query("", max_length=100),
    db: AsyncSession = Depends(get_async_db),
):
    """Products whose name or category contains ``value``."""
    return await catalog_ops.search_products(db, value)


@router.get("/{product_id}", response_model=ProductResponse)
async def get_product(product_id: str, db: AsyncSession = Depends(get_async_db)):
    return await catalog_ops.get_product(db, product_id)
