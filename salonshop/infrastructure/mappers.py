"""Mapping between ORM rows and domain orders.

Every field is mapped explicitly. The only defaults applied are the
ones the domain defines (zero cents, ONLINE source); anything else that
is missing or unknown fails loudly.
"""

from datetime import datetime, timezone
from decimal import Decimal
from typing import Any

from salonshop.domain.order import Order, OrderItem, OrderItemType, OrderSource
from salonshop.domain.state_machines import OrderStatus, PaymentMethod, PaymentStatus
from salonshop.domain.value_objects import ShippingAddress, ShippingMethodType
from salonshop.infrastructure.models import OrderItemModel, OrderModel


def _aware(value: datetime | None) -> datetime | None:
    # SQLite drops tzinfo; everything is stored in UTC
    if value is None or value.tzinfo is not None:
        return value
    return value.replace(tzinfo=timezone.utc)


# ============================================================================
# Shipping Address
# ============================================================================


def address_to_dict(address: ShippingAddress | None) -> dict[str, Any] | None:
    if address is None:
        return None
    return {
        "name": address.name,
        "street": address.street,
        "zip": address.zip,
        "city": address.city,
        "country": address.country,
        "company": address.company,
        "street2": address.street2,
        "canton": address.canton,
        "phone": address.phone,
    }


def address_from_dict(data: dict[str, Any] | None) -> ShippingAddress | None:
    if data is None:
        return None
    return ShippingAddress(
        name=data["name"],
        street=data["street"],
        zip=data["zip"],
        city=data["city"],
        country=data.get("country") or "CH",
        company=data.get("company"),
        street2=data.get("street2"),
        canton=data.get("canton"),
        phone=data.get("phone"),
    )


# ============================================================================
# Order Items
# ============================================================================


def order_item_to_model(item: OrderItem, position: int) -> OrderItemModel:
    return OrderItemModel(
        id=item.id,
        order_id=item.order_id,
        position=position,
        item_type=item.item_type.value,
        item_name=item.item_name,
        product_id=item.product_id,
        variant_id=item.variant_id,
        item_sku=item.item_sku,
        item_description=item.item_description,
        quantity=item.quantity,
        unit_price_cents=item.unit_price_cents,
        discount_cents=item.discount_cents,
        total_cents=item.total_cents,
        tax_rate=item.tax_rate,
        tax_cents=item.tax_cents,
        voucher_type=item.voucher_type,
        recipient_email=item.recipient_email,
        recipient_name=item.recipient_name,
        personal_message=item.personal_message,
    )


def order_item_from_model(row: OrderItemModel) -> OrderItem:
    return OrderItem(
        id=row.id,
        order_id=row.order_id,
        item_type=OrderItemType(row.item_type),
        item_name=row.item_name,
        quantity=row.quantity,
        unit_price_cents=row.unit_price_cents,
        discount_cents=row.discount_cents or 0,
        total_cents=row.total_cents,
        # column returns a float; str() keeps 0.081 exact
        tax_rate=Decimal(str(row.tax_rate)).normalize(),
        tax_cents=row.tax_cents,
        product_id=row.product_id,
        variant_id=row.variant_id,
        item_sku=row.item_sku,
        item_description=row.item_description,
        voucher_type=row.voucher_type,
        recipient_email=row.recipient_email,
        recipient_name=row.recipient_name,
        personal_message=row.personal_message,
    )


# ============================================================================
# Orders
# ============================================================================


def order_header_values(order: Order) -> dict[str, Any]:
    """Column values of the order header, for inserts and updates.

    Args:
        order: Domain order.

    Returns:
        Mapping of ``orders`` column names to values.
    """
    return {
        "salon_id": order.salon_id,
        "order_number": order.order_number,
        "status": order.status.value,
        "payment_status": order.payment_status.value,
        "payment_method": order.payment_method.value if order.payment_method else None,
        "payment_session_id": order.payment_session_id,
        "source": order.source.value,
        "customer_id": order.customer_id,
        "customer_email": order.customer_email,
        "customer_name": order.customer_name,
        "customer_phone": order.customer_phone,
        "customer_notes": order.customer_notes,
        "internal_notes": order.internal_notes,
        "shipping_method": order.shipping_method.value if order.shipping_method else None,
        "shipping_address": address_to_dict(order.shipping_address),
        "tracking_number": order.tracking_number,
        "subtotal_cents": order.subtotal_cents,
        "discount_cents": order.discount_cents,
        "shipping_cents": order.shipping_cents,
        "tax_cents": order.tax_cents,
        "total_cents": order.total_cents,
        "refunded_amount_cents": order.refunded_amount_cents,
        "voucher_id": order.voucher_id,
        "voucher_code": order.voucher_code,
        "voucher_discount_cents": order.voucher_discount_cents,
        "created_at": order.created_at,
        "updated_at": order.updated_at,
        "paid_at": order.paid_at,
        "shipped_at": order.shipped_at,
        "delivered_at": order.delivered_at,
        "completed_at": order.completed_at,
        "cancelled_at": order.cancelled_at,
        "refunded_at": order.refunded_at,
        "version": order.version,
    }


def order_to_model(order: Order) -> OrderModel:
    """Build a new ORM row, including items, from a domain order."""
    model = OrderModel(id=order.id, **order_header_values(order))
    model.items = [order_item_to_model(item, index) for index, item in enumerate(order.items)]
    return model


def order_from_model(row: OrderModel) -> Order:
    """Rebuild a domain order from its ORM row.

    Args:
        row: Order row with items loaded.

    Returns:
        Domain Order.

    Raises:
        ValueError: If a stored enum column holds an unknown value.
    """
    return Order(
        id=row.id,
        salon_id=row.salon_id,
        order_number=row.order_number,
        status=OrderStatus(row.status),
        payment_status=PaymentStatus(row.payment_status),
        payment_method=PaymentMethod(row.payment_method) if row.payment_method else None,
        payment_session_id=row.payment_session_id,
        source=OrderSource(row.source) if row.source else OrderSource.ONLINE,
        customer_id=row.customer_id,
        customer_email=row.customer_email,
        customer_name=row.customer_name,
        customer_phone=row.customer_phone,
        customer_notes=row.customer_notes,
        internal_notes=row.internal_notes,
        shipping_method=ShippingMethodType(row.shipping_method) if row.shipping_method else None,
        shipping_address=address_from_dict(row.shipping_address),
        tracking_number=row.tracking_number,
        items=tuple(order_item_from_model(item) for item in row.items),
        subtotal_cents=row.subtotal_cents,
        discount_cents=row.discount_cents or 0,
        shipping_cents=row.shipping_cents or 0,
        tax_cents=row.tax_cents or 0,
        total_cents=row.total_cents,
        refunded_amount_cents=row.refunded_amount_cents or 0,
        voucher_id=row.voucher_id,
        voucher_code=row.voucher_code,
        voucher_discount_cents=row.voucher_discount_cents or 0,
        created_at=_aware(row.created_at),
        updated_at=_aware(row.updated_at),
        paid_at=_aware(row.paid_at),
        shipped_at=_aware(row.shipped_at),
        delivered_at=_aware(row.delivered_at),
        completed_at=_aware(row.completed_at),
        cancelled_at=_aware(row.cancelled_at),
        refunded_at=_aware(row.refunded_at),
        version=row.version,
    )
