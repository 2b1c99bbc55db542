"""Users router: user record, legacy address and saved addresses."""

from typing import Optional

from fastapi import APIRouter, Depends, Query
from fastapi.responses import JSONResponse
from libs.auth.dependencies import get_current_user
from libs.auth.models import AuthUser
from libs.db.session import get_async_db
from services.store_service.schemas import (
    AddAddressRequest,
    AddressListResponse,
    AddressResponse,
    LegacyAddressResponse,
    SetLegacyAddressRequest,
    SuccessResponse,
    UserResponse,
)
from services.store_service.services import address_ops, identity_ops
from services.store_service.services.identity_ops import UserProjection
from sqlalchemy.ext.asyncio import AsyncSession

router = APIRouter(prefix="/users", tags=["users"])


@router.get(
    "/{user_id}",
    responses={200: {"model": UserResponse}},
    response_model=None,
)
async def get_user(
    user_id: str,
    q: Optional[str] = Query(None, description="Pass 'address' for the address only"),
    current_user: AuthUser = Depends(get_current_user),
    db: AsyncSession = Depends(get_async_db),
):
    """Get the caller's own user record, or only its legacy address."""
    projection = UserProjection.ADDRESS if q == "address" else UserProjection.FULL
    found = await identity_ops.get_user(db, user_id, current_user, projection)

    # Two response shapes share the route, so serialize explicitly
    if projection == UserProjection.ADDRESS:
        body = LegacyAddressResponse.model_validate(found)
    else:
        body = UserResponse.model_validate(found)
    return JSONResponse(content=body.model_dump(mode="json", by_alias=True))


@router.put("/{user_id}", response_model=LegacyAddressResponse)
async def set_legacy_address(
    user_id: str,
    payload: SetLegacyAddressRequest,
    current_user: AuthUser = Depends(get_current_user),
    db: AsyncSession = Depends(get_async_db),
):
    address = await address_ops.set_legacy_address(
        db, user_id, current_user, payload.address
    )
    return LegacyAddressResponse(address=address)


@router.get("/{user_id}/addresses", response_model=AddressListResponse)
async def list_addresses(
    user_id: str,
    current_user: AuthUser = Depends(get_current_user),
    db: AsyncSession = Depends(get_async_db),
):
    addresses = await address_ops.list_addresses(db, user_id, current_user)
    return AddressListResponse(
        addresses=[AddressResponse.model_validate(a) for a in addresses]
    )


@router.post("/{user_id}/addresses", response_model=SuccessResponse)
async def add_address(
    user_id: str,
    payload: AddAddressRequest,
    current_user: AuthUser = Depends(get_current_user),
    db: AsyncSession = Depends(get_async_db),
):
    """Save a new address for the caller."""
    await address_ops.add_address(db, user_id, current_user, payload.address)
    return SuccessResponse()


@router.delete("/{user_id}/addresses/{address_id}", response_model=SuccessResponse)
async def delete_address(
    user_id: str,
    address_id: str,
    current_user: AuthUser = Depends(get_current_user),
    db: AsyncSession = Depends(get_async_db),
):
    await address_ops.delete_address(db, user_id, current_user, address_id)
    return SuccessResponse()
