"""Pydantic schemas for store service.

Wire format is camelCase (``productId``, ``walletMoney``); Python attributes
stay snake_case.
"""

import uuid
from datetime import datetime
from decimal import Decimal
from typing import Annotated, Optional

from pydantic import (
    BaseModel,
    ConfigDict,
    EmailStr,
    Field,
    PlainSerializer,
    field_validator,
)
from pydantic.alias_generators import to_camel


# Exact Decimal in Python, a plain number on the wire
Money = Annotated[
    Decimal, PlainSerializer(float, return_type=float, when_used="json")
]


class StoreModel(BaseModel):
    model_config = ConfigDict(
        alias_generator=to_camel, populate_by_name=True, from_attributes=True
    )


# ============================================================================
# AUTH SCHEMAS
# ============================================================================


class RegisterRequest(StoreModel):
    name: str = Field(..., min_length=1, max_length=255)
    email: EmailStr
    password: str = Field(..., min_length=8, max_length=128)

    @field_validator("password")
    @classmethod
    def password_has_letter_and_digit(cls, v: str) -> str:
        if not any(c.isdigit() for c in v) or not any(c.isalpha() for c in v):
            raise ValueError("Password must contain at least one letter and one number")
        return v


class LoginRequest(StoreModel):
    email: EmailStr
    password: str = Field(..., min_length=1)


class AccessToken(StoreModel):
    token: str
    expires: int


class TokenBundle(StoreModel):
    access: AccessToken


# ============================================================================
# USER SCHEMAS
# ============================================================================


class AddressResponse(StoreModel):
    id: uuid.UUID
    address: str = Field(..., validation_alias="text")
    created_at: datetime


class UserResponse(StoreModel):
    id: uuid.UUID
    name: str
    email: str
    wallet_money: Money
    address: Optional[str] = None  # legacy single address, None when never set
    addresses: list[AddressResponse] = []
    created_at: datetime
    updated_at: datetime


class AuthResponse(StoreModel):
    user: UserResponse
    tokens: TokenBundle


class LegacyAddressResponse(StoreModel):
    address: Optional[str] = None


class SetLegacyAddressRequest(StoreModel):
    # Length rule is enforced by the address manager so it can trim first
    address: str = Field(..., max_length=500)


class AddressListResponse(StoreModel):
    addresses: list[AddressResponse]


class AddAddressRequest(StoreModel):
    # Length rule is enforced by the address manager so it can trim first
    address: str = Field(..., max_length=500)


class SuccessResponse(StoreModel):
    success: bool = True


# ============================================================================
# CATALOG SCHEMAS
# ============================================================================


class ProductResponse(StoreModel):
    id: str
    name: str
    category: str
    cost: Money
    rating: int
    image: str


class ProductSnapshot(StoreModel):
    """Product fields embedded in each cart line, read at request time."""

    name: str
    category: str
    cost: Money
    image: str


# ============================================================================
# CART SCHEMAS
# ============================================================================


class CartItemRequest(StoreModel):
    product_id: str = Field(..., min_length=1, max_length=64)
    quantity: int = Field(..., ge=0)


class CartLineResponse(StoreModel):
    product_id: str
    quantity: int
    product: ProductSnapshot


class CheckoutResponse(StoreModel):
    wallet_money: Money
