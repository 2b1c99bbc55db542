"""Domain error taxonomy shared by store operations.

Every error is an ``HTTPException`` so FastAPI renders it even without the
custom handlers, and carries a stable machine-readable ``kind``.
"""

from typing import Optional

from fastapi import HTTPException, status


class StoreError(HTTPException):
    """Base class for domain errors raised by store operations."""

    kind: str = "StoreError"
    status_code: int = status.HTTP_400_BAD_REQUEST
    default_message: str = "Request could not be completed"

    def __init__(self, message: Optional[str] = None):
        self.message = message or self.default_message
        super().__init__(status_code=type(self).status_code, detail=self.message)

    def __repr__(self) -> str:
        return f"<{type(self).__name__} kind={self.kind} message={self.message!r}>"


class NotFoundError(StoreError):
    kind = "NotFound"
    status_code = status.HTTP_404_NOT_FOUND
    default_message = "Resource not found"


class ForbiddenError(StoreError):
    kind = "Forbidden"
    status_code = status.HTTP_403_FORBIDDEN
    default_message = "User not authorized to access this resource"


class UnauthorizedError(StoreError):
    kind = "Unauthorized"
    status_code = status.HTTP_401_UNAUTHORIZED
    default_message = "Please authenticate"


class DomainValidationError(StoreError):
    kind = "ValidationError"
    status_code = status.HTTP_400_BAD_REQUEST
    default_message = "Invalid value"


class ConflictError(StoreError):
    kind = "Conflict"
    status_code = status.HTTP_409_CONFLICT
    default_message = "Conflicting state"


class CheckoutRejectedError(StoreError):
    """A checkout precondition did not hold. Nothing was committed."""

    kind = "CheckoutRejected"
    status_code = status.HTTP_400_BAD_REQUEST


class EmptyCartError(CheckoutRejectedError):
    kind = "EmptyCart"
    default_message = "Cart is empty"


class NoAddressError(CheckoutRejectedError):
    kind = "NoAddress"
    default_message = "Address not set"


class InsufficientBalanceError(CheckoutRejectedError):
    kind = "InsufficientBalance"
    default_message = "Wallet balance not sufficient to place order"
