"""Store cart model: one row per (user, product) line item."""

import uuid
from datetime import datetime

from libs.common.datetime_utils import utc_now
from libs.db.base import Base
from sqlalchemy import CheckConstraint, DateTime, ForeignKey, Integer, String
from sqlalchemy import UniqueConstraint, Uuid
from sqlalchemy.orm import Mapped, mapped_column, relationship


class CartItem(Base):
    """Cart line items. A user's cart is the set of their rows."""

    __tablename__ = "store_cart_items"

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    user_id: Mapped[uuid.UUID] = mapped_column(
        Uuid,
        ForeignKey("store_users.id", ondelete="CASCADE"),
        index=True,
        nullable=False,
    )
    product_id: Mapped[str] = mapped_column(
        String(64),
        ForeignKey("store_products.id"),
        nullable=False,
    )
    quantity: Mapped[int] = mapped_column(Integer, nullable=False)

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=utc_now
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=utc_now, onupdate=utc_now
    )

    __table_args__ = (
        UniqueConstraint("user_id", "product_id", name="uq_store_cart_line"),
        CheckConstraint("quantity > 0", name="ck_store_cart_quantity_positive"),
    )

    # Relationships
    product = relationship("Product", lazy="joined")

    def __repr__(self):
        return f"<CartItem {self.product_id} x{self.quantity} user={self.user_id}>"
