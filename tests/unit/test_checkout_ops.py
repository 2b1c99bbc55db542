"""Unit tests for the checkout engine.

Tests call checkout_ops directly with sessions from the per-test database.
Persisted state is always re-read through a fresh session.
"""

import asyncio
from decimal import Decimal

import pytest
from libs.common.errors import (
    ConflictError,
    EmptyCartError,
    InsufficientBalanceError,
    NoAddressError,
)
from services.store_service.models import CartItem, User
from services.store_service.services import checkout_ops
from services.store_service.services.checkout_ops import (
    CheckoutState,
    StaleCheckoutError,
    checkout,
)
from sqlalchemy import func, select, update
from sqlalchemy.exc import OperationalError
from tests.conftest import make_auth_user
from tests.factories import (
    AddressFactory,
    CartItemFactory,
    ProductFactory,
    UserFactory,
)


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


async def _seed_shopper(db, *, wallet, lines=(), addresses=1, legacy_address=None):
    """Insert a user with saved addresses and cart lines of (cost, quantity)."""
    user = UserFactory.create(
        wallet_money=Decimal(str(wallet)), address=legacy_address
    )
    db.add(user)
    for _ in range(addresses):
        db.add(AddressFactory.create(user.id))
    for cost, quantity in lines:
        product = ProductFactory.create(cost=Decimal(str(cost)))
        db.add(product)
        db.add(CartItemFactory.create(user.id, product.id, quantity=quantity))
    await db.commit()
    return user


async def _persisted_state(session_factory, user_id):
    """(wallet_money, version, cart line count) as stored."""
    async with session_factory() as db:
        user = (await db.execute(select(User).where(User.id == user_id))).scalar_one()
        lines = (
            await db.execute(
                select(func.count())
                .select_from(CartItem)
                .where(CartItem.user_id == user_id)
            )
        ).scalar()
        return Decimal(str(user.wallet_money)), user.version, lines


# ---------------------------------------------------------------------------
# Success path
# ---------------------------------------------------------------------------


@pytest.mark.asyncio
@pytest.mark.unit
async def test_checkout_debits_wallet_and_empties_cart(db_session, session_factory):
    """Balance 500, total 300, one saved address -> balance 200, empty cart."""
    user = await _seed_shopper(db_session, wallet=500, lines=[(100, 2), (50, 2)])

    result = await checkout(db_session, make_auth_user(user))

    assert result.state == CheckoutState.DONE
    assert result.total == Decimal("300")
    assert result.wallet_money == Decimal("200")
    assert result.lines == 2
    assert await _persisted_state(session_factory, user.id) == (Decimal("200"), 1, 0)


@pytest.mark.asyncio
@pytest.mark.unit
async def test_checkout_can_spend_entire_balance(db_session, session_factory):
    user = await _seed_shopper(db_session, wallet=500, lines=[(250, 2)])

    result = await checkout(db_session, make_auth_user(user))

    assert result.wallet_money == Decimal("0")
    assert await _persisted_state(session_factory, user.id) == (Decimal("0"), 1, 0)


@pytest.mark.asyncio
@pytest.mark.unit
async def test_checkout_uses_current_catalog_cost(db_session, session_factory):
    """Prices are read at checkout time, not when the line was added."""
    user = await _seed_shopper(db_session, wallet=500, lines=[(100, 1)])
    line = (
        await db_session.execute(select(CartItem).where(CartItem.user_id == user.id))
    ).scalar_one()
    line.product.cost = Decimal("120")
    await db_session.commit()

    async with session_factory() as db:
        result = await checkout(db, make_auth_user(user))

    assert result.total == Decimal("120")
    assert result.wallet_money == Decimal("380")


# ---------------------------------------------------------------------------
# Rejections leave no trace
# ---------------------------------------------------------------------------


@pytest.mark.asyncio
@pytest.mark.unit
async def test_checkout_rejects_insufficient_balance(db_session, session_factory):
    """Balance 100, total 150: rejected, balance stays 100, cart stays."""
    user = await _seed_shopper(db_session, wallet=100, lines=[(150, 1)])

    with pytest.raises(InsufficientBalanceError) as exc_info:
        await checkout(db_session, make_auth_user(user))

    assert exc_info.value.kind == "InsufficientBalance"
    assert exc_info.value.status_code == 400
    assert await _persisted_state(session_factory, user.id) == (Decimal("100"), 0, 1)


@pytest.mark.asyncio
@pytest.mark.unit
@pytest.mark.parametrize(
    "wallet,addresses",
    [(500, 1), (0, 1), (500, 0), (0, 0)],
)
async def test_checkout_rejects_empty_cart(
    db_session, session_factory, wallet, addresses
):
    """Empty cart wins over every other precondition."""
    user = await _seed_shopper(db_session, wallet=wallet, addresses=addresses)

    with pytest.raises(EmptyCartError):
        await checkout(db_session, make_auth_user(user))

    assert await _persisted_state(session_factory, user.id) == (
        Decimal(str(wallet)),
        0,
        0,
    )


@pytest.mark.asyncio
@pytest.mark.unit
async def test_checkout_rejects_without_saved_address(db_session, session_factory):
    """Only the legacy address is set: it does not count."""
    user = await _seed_shopper(
        db_session,
        wallet=500,
        lines=[(250, 2)],
        addresses=0,
        legacy_address="12 Old Legacy Road, Springfield",
    )

    with pytest.raises(NoAddressError):
        await checkout(db_session, make_auth_user(user))

    assert await _persisted_state(session_factory, user.id) == (Decimal("500"), 0, 1)


@pytest.mark.asyncio
@pytest.mark.unit
async def test_no_address_is_checked_before_balance(db_session):
    user = await _seed_shopper(db_session, wallet=10, lines=[(250, 2)], addresses=0)

    with pytest.raises(NoAddressError):
        await checkout(db_session, make_auth_user(user))


# ---------------------------------------------------------------------------
# Concurrency
# ---------------------------------------------------------------------------


@pytest.mark.asyncio
@pytest.mark.unit
async def test_concurrent_checkouts_cannot_overdraw(
    db_session, session_factory, monkeypatch
):
    """Two checkouts validate against balance 100 with total 60.

    Both pass validation on the same stale read; the second debit is held
    until the first checkout has committed. Exactly one succeeds.
    """
    user = await _seed_shopper(db_session, wallet=100, lines=[(60, 1)])
    identity = make_auth_user(user)

    original_debit = checkout_ops._debit_wallet
    arrivals = []
    both_validated = asyncio.Event()
    first_finished = asyncio.Event()

    async def gated_debit(db, **kwargs):
        arrivals.append(db)
        if len(arrivals) == 2:
            both_validated.set()
        await both_validated.wait()
        if db is arrivals[1]:
            await first_finished.wait()
        return await original_debit(db, **kwargs)

    monkeypatch.setattr(checkout_ops, "_debit_wallet", gated_debit)

    async def attempt():
        async with session_factory() as db:
            try:
                return await checkout(db, identity)
            finally:
                first_finished.set()

    results = await asyncio.gather(attempt(), attempt(), return_exceptions=True)

    successes = [r for r in results if isinstance(r, checkout_ops.CheckoutResult)]
    rejections = [r for r in results if isinstance(r, InsufficientBalanceError)]
    assert len(successes) == 1, results
    assert len(rejections) == 1, results
    assert successes[0].wallet_money == Decimal("40")
    assert await _persisted_state(session_factory, user.id) == (Decimal("40"), 1, 0)


@pytest.mark.asyncio
@pytest.mark.unit
async def test_checkout_retries_when_version_moves(
    db_session, session_factory, monkeypatch
):
    """A concurrent write that leaves enough balance causes a clean retry."""
    user = await _seed_shopper(db_session, wallet=500, lines=[(100, 1)])

    original_debit = checkout_ops._debit_wallet
    calls = []

    async def debit_after_foreign_write(db, **kwargs):
        calls.append(kwargs["version"])
        if len(calls) == 1:
            async with session_factory() as other:
                await other.execute(
                    update(User)
                    .where(User.id == user.id)
                    .values(version=User.version + 1)
                )
                await other.commit()
        return await original_debit(db, **kwargs)

    monkeypatch.setattr(checkout_ops, "_debit_wallet", debit_after_foreign_write)

    async with session_factory() as db:
        result = await checkout(db, make_auth_user(user))

    assert calls == [0, 1]
    assert result.wallet_money == Decimal("400")
    assert await _persisted_state(session_factory, user.id) == (Decimal("400"), 2, 0)


@pytest.mark.asyncio
@pytest.mark.unit
async def test_checkout_gives_up_after_max_attempts(
    db_session, session_factory, monkeypatch
):
    user = await _seed_shopper(db_session, wallet=500, lines=[(100, 1)])
    attempts = []

    async def always_stale(db, **kwargs):
        attempts.append(kwargs["version"])
        raise StaleCheckoutError("moved")

    monkeypatch.setattr(checkout_ops, "_debit_wallet", always_stale)
    monkeypatch.setattr(checkout_ops.settings, "CHECKOUT_MAX_ATTEMPTS", 2)

    async with session_factory() as db:
        with pytest.raises(ConflictError):
            await checkout(db, make_auth_user(user))

    assert len(attempts) == 2
    assert await _persisted_state(session_factory, user.id) == (Decimal("500"), 0, 1)


# ---------------------------------------------------------------------------
# Store faults
# ---------------------------------------------------------------------------


@pytest.mark.asyncio
@pytest.mark.unit
async def test_fault_after_debit_rolls_back_everything(
    db_session, session_factory, monkeypatch
):
    """The wallet is debited in the transaction, then clearing the cart fails."""
    user = await _seed_shopper(db_session, wallet=500, lines=[(100, 3)])

    async def failing_clear(db, **kwargs):
        raise OperationalError("DELETE FROM store_cart_items", {}, Exception("disk I/O error"))

    monkeypatch.setattr(checkout_ops, "_clear_checked_out_lines", failing_clear)

    async with session_factory() as db:
        with pytest.raises(OperationalError):
            await checkout(db, make_auth_user(user))

    assert await _persisted_state(session_factory, user.id) == (Decimal("500"), 0, 1)
