"""SQLAlchemy models for database tables.

Provides ORM models for orders, order items and the order status history.
Money columns are integer cents; tax rates are stored as fractions.
"""

from datetime import datetime, timezone
from uuid import uuid4

from sqlalchemy import (
    JSON,
    Column,
    DateTime,
    ForeignKey,
    Integer,
    Numeric,
    String,
    Text,
)
from sqlalchemy.orm import relationship

from salonshop.infrastructure.database import Base


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


# ============================================================================
# Order Models
# ============================================================================


class OrderModel(Base):
    """Order model for database persistence.

    Holds the order header. Items are written once with the order and
    never updated afterwards.
    """

    __tablename__ = "orders"

    id = Column(String(36), primary_key=True, default=lambda: str(uuid4()))
    salon_id = Column(String(36), nullable=False, index=True)
    order_number = Column(String(32), nullable=False, unique=True)
    status = Column(String(20), nullable=False, default="pending", index=True)
    payment_status = Column(String(20), nullable=False, default="pending")
    payment_method = Column(String(20), nullable=True)
    payment_session_id = Column(String(255), nullable=True)
    source = Column(String(20), nullable=False, default="online")

    # Customer info
    customer_id = Column(String(36), nullable=True, index=True)
    customer_email = Column(String(255), nullable=False)
    customer_name = Column(String(255), nullable=True)
    customer_phone = Column(String(50), nullable=True)
    customer_notes = Column(Text, nullable=True)
    internal_notes = Column(Text, nullable=True)

    # Shipping
    shipping_method = Column(String(20), nullable=True)
    shipping_address = Column(JSON, nullable=True)
    tracking_number = Column(String(100), nullable=True)

    # Totals
    subtotal_cents = Column(Integer, nullable=False)
    discount_cents = Column(Integer, nullable=False, default=0)
    shipping_cents = Column(Integer, nullable=False, default=0)
    tax_cents = Column(Integer, nullable=False, default=0)
    total_cents = Column(Integer, nullable=False)
    refunded_amount_cents = Column(Integer, nullable=False, default=0)

    # Voucher
    voucher_id = Column(String(36), nullable=True)
    voucher_code = Column(String(50), nullable=True)
    voucher_discount_cents = Column(Integer, nullable=False, default=0)

    # Timestamps
    created_at = Column(DateTime(timezone=True), nullable=False, default=_utcnow)
    updated_at = Column(DateTime(timezone=True), nullable=False, default=_utcnow)
    paid_at = Column(DateTime(timezone=True), nullable=True)
    shipped_at = Column(DateTime(timezone=True), nullable=True)
    delivered_at = Column(DateTime(timezone=True), nullable=True)
    completed_at = Column(DateTime(timezone=True), nullable=True)
    cancelled_at = Column(DateTime(timezone=True), nullable=True)
    refunded_at = Column(DateTime(timezone=True), nullable=True)

    # Optimistic locking
    version = Column(Integer, nullable=False, default=1)

    # Relationships
    items = relationship(
        "OrderItemModel",
        back_populates="order",
        cascade="all, delete-orphan",
        lazy="selectin",
        order_by="OrderItemModel.position",
    )
    status_history = relationship(
        "OrderStatusHistoryModel",
        back_populates="order",
        cascade="all, delete-orphan",
        order_by="OrderStatusHistoryModel.created_at",
    )


class OrderItemModel(Base):
    """Order item model for database persistence."""

    __tablename__ = "order_items"

    id = Column(String(36), primary_key=True, default=lambda: str(uuid4()))
    order_id = Column(
        String(36),
        ForeignKey("orders.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    position = Column(Integer, nullable=False, default=0)
    item_type = Column(String(20), nullable=False)
    item_name = Column(String(500), nullable=False)
    product_id = Column(String(100), nullable=True)
    variant_id = Column(String(100), nullable=True)
    item_sku = Column(String(100), nullable=True)
    item_description = Column(Text, nullable=True)
    quantity = Column(Integer, nullable=False)
    unit_price_cents = Column(Integer, nullable=False)
    discount_cents = Column(Integer, nullable=False, default=0)
    total_cents = Column(Integer, nullable=False)
    tax_rate = Column(Numeric(6, 4, asdecimal=False), nullable=False)
    tax_cents = Column(Integer, nullable=False)

    # Voucher-specific
    voucher_type = Column(String(20), nullable=True)
    recipient_email = Column(String(255), nullable=True)
    recipient_name = Column(String(255), nullable=True)
    personal_message = Column(Text, nullable=True)

    # Relationships
    order = relationship("OrderModel", back_populates="items")


class OrderStatusHistoryModel(Base):
    """Order status history model for audit trail.

    Tracks all status transitions for an order.
    """

    __tablename__ = "order_status_history"

    id = Column(String(36), primary_key=True, default=lambda: str(uuid4()))
    order_id = Column(
        String(36),
        ForeignKey("orders.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    from_status = Column(String(20), nullable=True)
    to_status = Column(String(20), nullable=False)
    reason = Column(Text, nullable=True)
    actor = Column(String(100), nullable=True)
    details = Column(JSON, nullable=True)
    created_at = Column(DateTime(timezone=True), nullable=False, default=_utcnow)

    # Relationships
    order = relationship("OrderModel", back_populates="status_history")
