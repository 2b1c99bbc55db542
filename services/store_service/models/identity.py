"""Store identity models: customers, their wallet, and saved addresses."""

import uuid
from datetime import datetime
from decimal import Decimal
from typing import Optional

from libs.common.datetime_utils import utc_now
from libs.db.base import Base
from sqlalchemy import CheckConstraint, DateTime, ForeignKey, Integer, Numeric
from sqlalchemy import String, Text, Uuid
from sqlalchemy.orm import Mapped, mapped_column, relationship


class User(Base):
    """A storefront customer.

    ``address`` is the legacy single address; ``None`` means it was never
    set. Saved addresses live in ``addresses``. ``wallet_money`` only changes
    through checkout, which bumps ``version`` on every commit.
    """

    __tablename__ = "store_users"

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    name: Mapped[str] = mapped_column(String(255), nullable=False)
    email: Mapped[str] = mapped_column(
        String(320), unique=True, index=True, nullable=False
    )
    password_hash: Mapped[str] = mapped_column(String(255), nullable=False)

    wallet_money: Mapped[Decimal] = mapped_column(
        Numeric(12, 2), default=Decimal("500"), nullable=False
    )
    address: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    version: Mapped[int] = mapped_column(
        Integer, default=0, server_default="0", nullable=False
    )

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=utc_now
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=utc_now, onupdate=utc_now
    )

    # Relationships
    addresses: Mapped[list["UserAddress"]] = relationship(
        back_populates="user",
        cascade="all, delete-orphan",
        order_by="UserAddress.created_at",
        lazy="selectin",
    )

    __table_args__ = (
        CheckConstraint("wallet_money >= 0", name="ck_store_user_wallet_non_negative"),
    )

    def __repr__(self) -> str:
        return f"<User {self.id} email={self.email} wallet={self.wallet_money}>"


class UserAddress(Base):
    """A saved delivery address. Created and deleted, never edited."""

    __tablename__ = "store_user_addresses"

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    user_id: Mapped[uuid.UUID] = mapped_column(
        Uuid,
        ForeignKey("store_users.id", ondelete="CASCADE"),
        index=True,
        nullable=False,
    )
    text: Mapped[str] = mapped_column(Text, nullable=False)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=utc_now
    )

    user: Mapped["User"] = relationship(back_populates="addresses")

    def __repr__(self) -> str:
        return f"<UserAddress {self.id} user={self.user_id}>"
