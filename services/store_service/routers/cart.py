"""Cart router: line item mutations and checkout."""

from fastapi import APIRouter, Depends, Response, status
from libs.auth.dependencies import get_current_user
from libs.auth.models import AuthUser
from libs.db.session import get_async_db
from services.store_service.models import User
from services.store_service.schemas import (
    CartItemRequest,
    CartLineResponse,
    CheckoutResponse,
)
from services.store_service.services import cart_ops, checkout_ops
from services.store_service.services.cart_ops import CartIntent
from services.store_service.services.identity_ops import get_user_for_identity
from sqlalchemy.ext.asyncio import AsyncSession

router = APIRouter(prefix="/cart", tags=["cart"])


async def _cart_lines(db: AsyncSession, user: User) -> list[CartLineResponse]:
    items = await cart_ops.get_cart(db, user)
    return [CartLineResponse.model_validate(item) for item in items]


@router.get("", response_model=list[CartLineResponse])
async def get_cart(
    current_user: AuthUser = Depends(get_current_user),
    db: AsyncSession = Depends(get_async_db),
):
    """Cart lines of the caller with live product details."""
    user = await get_user_for_identity(db, current_user)
    return await _cart_lines(db, user)


@router.post("", response_model=list[CartLineResponse])
async def add_item(
    payload: CartItemRequest,
    current_user: AuthUser = Depends(get_current_user),
    db: AsyncSession = Depends(get_async_db),
):
    """Add a product that is not in the cart yet."""
    user = await get_user_for_identity(db, current_user)
    await cart_ops.upsert_item(
        db, user, payload.product_id, payload.quantity, intent=CartIntent.ADD
    )
    return await _cart_lines(db, user)


@router.put(
    "",
    response_model=list[CartLineResponse],
    responses={204: {"description": "Line removed"}},
)
async def set_item_quantity(
    payload: CartItemRequest,
    current_user: AuthUser = Depends(get_current_user),
    db: AsyncSession = Depends(get_async_db),
):
    """Set the quantity of a line. Quantity 0 removes it."""
    user = await get_user_for_identity(db, current_user)
    line = await cart_ops.set_quantity(db, user, payload.product_id, payload.quantity)
    if line is None:
        return Response(status_code=status.HTTP_204_NO_CONTENT)
    return await _cart_lines(db, user)


@router.put("/checkout", response_model=CheckoutResponse)
async def checkout(
    current_user: AuthUser = Depends(get_current_user),
    db: AsyncSession = Depends(get_async_db),
):
    """Pay for the cart from the wallet and empty it."""
    result = await checkout_ops.checkout(db, current_user)
    return CheckoutResponse(wallet_money=result.wallet_money)


@router.delete("/{product_id}", status_code=status.HTTP_204_NO_CONTENT)
async def remove_item(
    product_id: str,
    current_user: AuthUser = Depends(get_current_user),
    db: AsyncSession = Depends(get_async_db),
):
    user = await get_user_for_identity(db, current_user)
    await cart_ops.remove_item(db, user, product_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)
