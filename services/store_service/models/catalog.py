"""Store catalog model: the read-only product reference data."""

import uuid
from datetime import datetime
from decimal import Decimal

from libs.common.datetime_utils import utc_now
from libs.db.base import Base
from sqlalchemy import CheckConstraint, DateTime, Integer, Numeric, String, Text
from sqlalchemy.orm import Mapped, mapped_column


def _product_id() -> str:
    return uuid.uuid4().hex


class Product(Base):
    """A sellable product. Imported ids are kept as-is."""

    __tablename__ = "store_products"

    id: Mapped[str] = mapped_column(String(64), primary_key=True, default=_product_id)
    name: Mapped[str] = mapped_column(String(255), nullable=False, index=True)
    category: Mapped[str] = mapped_column(String(100), nullable=False, index=True)
    cost: Mapped[Decimal] = mapped_column(Numeric(12, 2), nullable=False)
    rating: Mapped[int] = mapped_column(Integer, default=0, nullable=False)
    image: Mapped[str] = mapped_column(Text, nullable=False, default="")

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=utc_now
    )

    __table_args__ = (
        CheckConstraint("cost > 0", name="ck_store_product_cost_positive"),
        CheckConstraint(
            "rating >= 0 AND rating <= 5", name="ck_store_product_rating_range"
        ),
    )

    def __repr__(self):
        return f"<Product {self.id} {self.name!r} cost={self.cost}>"
