"""Checkout engine: validate the cart, then debit the wallet and clear the
cart in one transaction.

Flow per attempt:
1. Read the caller's user row and cart (no locks held)
2. Reject: empty cart, no saved address, insufficient balance
3. Conditional wallet UPDATE keyed on the version stamp read in 1
4. Conditional DELETE of each checked-out line keyed on its quantity
5. Commit

A row-count mismatch in 3 or 4 means the state moved after it was read. The
attempt is rolled back; if the wallet can no longer cover the total the
checkout is rejected, otherwise it is retried from scratch. Rejections write
nothing.
"""

import enum
import uuid
from dataclasses import dataclass
from decimal import Decimal

from libs.auth.models import AuthUser
from libs.common.config import get_settings
from libs.common.errors import (
    ConflictError,
    EmptyCartError,
    InsufficientBalanceError,
    NoAddressError,
    StoreError,
)
from libs.common.logging import get_logger
from services.store_service.models import CartItem, User
from services.store_service.services.address_ops import has_saved_address
from services.store_service.services.cart_ops import compute_total, get_cart
from services.store_service.services.identity_ops import get_user_for_identity
from sqlalchemy import delete, select, update
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm.attributes import set_committed_value

logger = get_logger(__name__)
settings = get_settings()


class CheckoutState(str, enum.Enum):
    IDLE = "idle"
    VALIDATING = "validating"
    COMMITTING = "committing"
    DONE = "done"
    REJECTED = "rejected"


@dataclass
class CheckoutResult:
    user_id: uuid.UUID
    total: Decimal
    wallet_money: Decimal
    lines: int
    state: CheckoutState = CheckoutState.DONE


class StaleCheckoutError(Exception):
    """The wallet or cart changed between read and commit."""


class StaleWalletError(StaleCheckoutError):
    pass


def _transition(user_id, state: CheckoutState, **details) -> None:
    logger.info(
        "Checkout for user %s -> %s",
        user_id,
        state.value,
        extra={"extra_fields": {"checkout_state": state.value, **details}},
    )


async def _debit_wallet(
    db: AsyncSession, *, user_id: uuid.UUID, version: int, total: Decimal
) -> None:
    result = await db.execute(
        update(User)
        .where(
            User.id == user_id,
            User.version == version,
            User.wallet_money >= total,
        )
        .values(wallet_money=User.wallet_money - total, version=User.version + 1)
        .execution_options(synchronize_session=False)
    )
    if result.rowcount != 1:
        raise StaleWalletError(f"wallet of user {user_id} changed")


async def _clear_checked_out_lines(
    db: AsyncSession, *, user_id: uuid.UUID, lines: list[tuple[uuid.UUID, int]]
) -> None:
    for line_id, quantity in lines:
        result = await db.execute(
            delete(CartItem)
            .where(
                CartItem.id == line_id,
                CartItem.user_id == user_id,
                CartItem.quantity == quantity,
            )
            .execution_options(synchronize_session=False)
        )
        if result.rowcount != 1:
            raise StaleCheckoutError(f"cart line {line_id} changed")


async def _current_balance(db: AsyncSession, user_id: uuid.UUID) -> Decimal:
    result = await db.execute(select(User.wallet_money).where(User.id == user_id))
    return Decimal(str(result.scalar_one()))


async def _attempt_checkout(db: AsyncSession, identity: AuthUser) -> CheckoutResult:
    user = await get_user_for_identity(db, identity, fresh=True)
    user_id = user.id
    _transition(user_id, CheckoutState.VALIDATING)

    cart = await get_cart(db, user)
    if not cart:
        raise EmptyCartError("Cart is empty")

    if not await has_saved_address(db, user):
        raise NoAddressError("Address not set")

    total = compute_total(cart)
    balance = Decimal(str(user.wallet_money))
    if balance < total:
        raise InsufficientBalanceError(
            f"Wallet balance not sufficient to place order: need {total}, have {balance}"
        )

    _transition(user_id, CheckoutState.COMMITTING, total=str(total), lines=len(cart))
    version = user.version
    checked_out = [(line.id, line.quantity) for line in cart]

    try:
        await _debit_wallet(db, user_id=user_id, version=version, total=total)
    except StaleWalletError:
        current = await _current_balance(db, user_id)
        if current < total:
            await db.rollback()
            raise InsufficientBalanceError(
                f"Wallet balance not sufficient to place order: need {total}, have {current}"
            )
        raise

    await _clear_checked_out_lines(db, user_id=user_id, lines=checked_out)
    await db.commit()

    new_balance = balance - total
    set_committed_value(user, "wallet_money", new_balance)
    set_committed_value(user, "version", version + 1)
    for line in cart:
        db.expunge(line)

    logger.info(
        "Debit %s from wallet of user %s, balance %s -> %s",
        total,
        user_id,
        balance,
        new_balance,
    )
    return CheckoutResult(
        user_id=user_id, total=total, wallet_money=new_balance, lines=len(cart)
    )


async def checkout(db: AsyncSession, identity: AuthUser) -> CheckoutResult:
    """Place the caller's order, paying from their wallet.

    Returns the post-commit wallet balance. On any rejection or storage fault
    nothing is persisted.
    """
    attempts = max(1, settings.CHECKOUT_MAX_ATTEMPTS)
    _transition(identity.user_id, CheckoutState.IDLE)

    for attempt in range(1, attempts + 1):
        try:
            result = await _attempt_checkout(db, identity)
        except StaleCheckoutError as exc:
            await db.rollback()
            logger.warning(
                "Checkout attempt %d/%d for %s raced a concurrent write: %s",
                attempt,
                attempts,
                identity.user_id,
                exc,
            )
            continue
        except StoreError as exc:
            _transition(identity.user_id, CheckoutState.REJECTED, reason=exc.kind)
            raise
        except SQLAlchemyError:
            await db.rollback()
            logger.exception("Checkout for %s failed in storage", identity.user_id)
            raise

        _transition(result.user_id, CheckoutState.DONE, total=str(result.total))
        return result

    _transition(identity.user_id, CheckoutState.REJECTED, reason="Conflict")
    raise ConflictError("Cart or wallet changed during checkout, please retry")
