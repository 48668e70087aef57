"""Order engine.

Turns validated checkout input into an immutable ``Order``, prices it,
applies vouchers and drives the order status state machine. Functions
never perform I/O: they receive an order, compute a new copy and hand it
back for the caller to persist.
"""

import re
from dataclasses import dataclass, field, replace
from datetime import datetime
from decimal import Decimal
from enum import Enum

from salonshop.domain.base import ValidationResult, ValueObject
from salonshop.domain.cart import Cart, CartItemType
from salonshop.domain.exceptions import (
    InvalidStateTransitionError,
    NegativeMoneyError,
    OrderNotRefundableError,
    OrderValidationError,
    ValidationError,
)
from salonshop.domain.money import (
    VAT_RATE,
    calculate_tax_from_gross,
    ensure_non_negative,
    format_price,
    to_tax_rate,
    utcnow,
)
from salonshop.domain.state_machines import (
    OrderStatus,
    PaymentMethod,
    PaymentStatus,
    coerce_order_status,
    get_payment_status_text,
    get_status_text,
    order_transition_error,
)
from salonshop.domain.value_objects import (
    DEFAULT_SHIPPING_OPTIONS,
    DIGITAL_SHIPPING_OPTION,
    FREE_SHIPPING_THRESHOLD_CENTS,
    ShippingAddress,
    ShippingMethodType,
    ShippingOption,
    generate_order_id,
)

__all__ = [
    "ApplyVoucherInput",
    "CreateOrderInput",
    "CreateOrderItemInput",
    "Order",
    "OrderItem",
    "OrderItemType",
    "OrderSource",
    "OrderTotals",
    "OrderTransition",
    "add_tracking_number",
    "apply_voucher",
    "calculate_order_totals",
    "can_cancel",
    "can_refund",
    "cart_to_order_items",
    "create_order",
    "create_order_item",
    "format_order_number",
    "format_price",
    "generate_order_number_prefix",
    "get_available_shipping_options",
    "get_item_count",
    "get_payment_status_text",
    "get_shipping_cents",
    "get_status_text",
    "get_voucher_items",
    "has_voucher_items",
    "is_digital_only_order",
    "is_paid",
    "parse_order_sequence",
    "refund_order",
    "remove_voucher",
    "transition_order_status",
    "update_payment_status",
    "validate_order_for_payment",
    "validate_order_input",
]

_EMAIL_RE = re.compile(r"^[^\s@]+@[^\s@]+\.[^\s@]+$")

ORDER_NUMBER_PREFIX = "SW"


# ============================================================================
# Order Types
# ============================================================================


class OrderItemType(str, Enum):
    """Kinds of order lines."""

    PRODUCT = "product"
    VOUCHER = "voucher"


class OrderSource(str, Enum):
    """Channel through which an order was placed."""

    ONLINE = "online"
    IN_PERSON = "in_person"
    PHONE = "phone"


@dataclass(frozen=True)
class CreateOrderItemInput:
    """Line data for creating an order.

    Attributes:
        item_type: Product or voucher.
        item_name: Name snapshot.
        quantity: Number of units.
        unit_price_cents: Gross unit price.
        discount_cents: Discount on this line.
        tax_rate: VAT rate as a fraction.
        product_id: Catalog product.
        variant_id: Product variant.
        item_sku: SKU snapshot.
        item_description: Description snapshot.
        voucher_type: "value" or "service" for voucher lines.
        recipient_email: Voucher recipient email.
        recipient_name: Voucher recipient name.
        personal_message: Voucher message.
    """

    item_type: OrderItemType
    item_name: str
    quantity: int
    unit_price_cents: int
    discount_cents: int = 0
    tax_rate: Decimal = VAT_RATE
    product_id: str | None = None
    variant_id: str | None = None
    item_sku: str | None = None
    item_description: str | None = None
    voucher_type: str | None = None
    recipient_email: str | None = None
    recipient_name: str | None = None
    personal_message: str | None = None


@dataclass(frozen=True)
class CreateOrderInput:
    """Checkout data for creating an order.

    ``salon_id`` has no default: every order belongs to an explicitly
    named tenant.
    """

    salon_id: str
    customer_email: str
    items: tuple[CreateOrderItemInput, ...]
    customer_id: str | None = None
    customer_name: str | None = None
    customer_phone: str | None = None
    customer_notes: str | None = None
    shipping_method: ShippingMethodType | None = None
    shipping_address: ShippingAddress | None = None
    payment_method: PaymentMethod | None = None
    source: OrderSource = OrderSource.ONLINE


@dataclass(frozen=True)
class OrderItem(ValueObject):
    """Immutable snapshot of a purchased line.

    ``total_cents == unit_price_cents * quantity - discount_cents``.
    """

    id: str
    order_id: str
    item_type: OrderItemType
    item_name: str
    quantity: int
    unit_price_cents: int
    discount_cents: int
    total_cents: int
    tax_rate: Decimal
    tax_cents: int
    product_id: str | None = None
    variant_id: str | None = None
    item_sku: str | None = None
    item_description: str | None = None
    voucher_type: str | None = None
    recipient_email: str | None = None
    recipient_name: str | None = None
    personal_message: str | None = None


@dataclass(frozen=True)
class OrderTotals(ValueObject):
    """Totals breakdown for an order.

    Attributes:
        subtotal_cents: Sum of line totals (line discounts already netted).
        discount_cents: Sum of line discounts, informational.
        voucher_discount_cents: Applied voucher, capped at subtotal + shipping.
        shipping_cents: Effective shipping after the free-shipping rule.
        tax_cents: VAT included in the total.
        total_cents: Amount payable.
        item_count: Sum of quantities.
    """

    subtotal_cents: int = 0
    discount_cents: int = 0
    voucher_discount_cents: int = 0
    shipping_cents: int = 0
    tax_cents: int = 0
    total_cents: int = 0
    item_count: int = 0


@dataclass(frozen=True)
class Order:
    """Order aggregate.

    Created once at checkout and afterwards changed only through the
    status, payment, voucher and refund functions of this module.
    ``version`` is the optimistic locking counter of the stored row and
    does not take part in equality.
    """

    id: str
    salon_id: str
    order_number: str
    status: OrderStatus
    payment_status: PaymentStatus
    customer_email: str
    created_at: datetime
    updated_at: datetime
    items: tuple[OrderItem, ...] = field(default_factory=tuple)
    payment_method: PaymentMethod | None = None
    subtotal_cents: int = 0
    discount_cents: int = 0
    shipping_cents: int = 0
    tax_cents: int = 0
    total_cents: int = 0
    voucher_id: str | None = None
    voucher_code: str | None = None
    voucher_discount_cents: int = 0
    refunded_amount_cents: int = 0
    shipping_method: ShippingMethodType | None = None
    shipping_address: ShippingAddress | None = None
    customer_id: str | None = None
    customer_name: str | None = None
    customer_phone: str | None = None
    customer_notes: str | None = None
    internal_notes: str | None = None
    tracking_number: str | None = None
    payment_session_id: str | None = None
    source: OrderSource = OrderSource.ONLINE
    paid_at: datetime | None = None
    shipped_at: datetime | None = None
    delivered_at: datetime | None = None
    completed_at: datetime | None = None
    cancelled_at: datetime | None = None
    refunded_at: datetime | None = None
    version: int = field(default=1, compare=False)


@dataclass(frozen=True)
class ApplyVoucherInput:
    """An already validated voucher to apply to an order."""

    voucher_id: str
    voucher_code: str
    discount_cents: int


@dataclass(frozen=True)
class OrderTransition:
    """Result of a status transition.

    On failure ``order`` is the unchanged input order and ``error``
    describes the rejected transition.
    """

    success: bool
    order: Order
    error: InvalidStateTransitionError | None = None


# ============================================================================
# Order Numbers
# ============================================================================


def generate_order_number_prefix(prefix: str = ORDER_NUMBER_PREFIX, year: int | None = None) -> str:
    """Prefix for this year's order numbers, e.g. ``SW-2026-``."""
    return f"{prefix}-{year or utcnow().year}-"


def format_order_number(prefix: str, year: int, sequence: int) -> str:
    """Format a full order number.

    Args:
        prefix: Shop prefix, e.g. "SW".
        year: Order year.
        sequence: Running number within the year.

    Returns:
        Order number, e.g. ``SW-2026-00001``.
    """
    return f"{generate_order_number_prefix(prefix, year)}{sequence:05d}"


def parse_order_sequence(order_number: str) -> int | None:
    """Extract the running number from an order number, if it has one."""
    _, _, tail = order_number.rpartition("-")
    return int(tail) if tail.isdigit() else None


# ============================================================================
# Create Order
# ============================================================================


def create_order_item(order_id: str, item: CreateOrderItemInput) -> OrderItem:
    """Snapshot a line for an order.

    Args:
        order_id: Owning order.
        item: Line input.

    Returns:
        OrderItem with total and included VAT.

    Raises:
        NegativeMoneyError: If the discount is negative.
        ValidationError: If the discount exceeds the line gross.
    """
    if item.discount_cents < 0:
        raise NegativeMoneyError(item.discount_cents, "discount_cents")
    gross_cents = item.unit_price_cents * item.quantity
    if item.discount_cents > gross_cents:
        raise ValidationError(
            [f"discount_cents {item.discount_cents} exceeds line total {gross_cents}"],
            entity_type="OrderItem",
        )

    tax_rate = to_tax_rate(item.tax_rate)
    total_cents = gross_cents - item.discount_cents
    return OrderItem(
        id=generate_order_id(),
        order_id=order_id,
        item_type=item.item_type,
        item_name=item.item_name,
        quantity=item.quantity,
        unit_price_cents=item.unit_price_cents,
        discount_cents=item.discount_cents,
        total_cents=total_cents,
        tax_rate=tax_rate,
        tax_cents=calculate_tax_from_gross(total_cents, tax_rate),
        product_id=item.product_id,
        variant_id=item.variant_id,
        item_sku=item.item_sku,
        item_description=item.item_description,
        voucher_type=item.voucher_type,
        recipient_email=item.recipient_email,
        recipient_name=item.recipient_name,
        personal_message=item.personal_message,
    )


def create_order(
    data: CreateOrderInput,
    order_number: str,
    now: datetime | None = None,
) -> Order:
    """Create a new order from checkout input.

    Pay-at-venue orders start in PROCESSING since no online payment
    follows; all others start PENDING.

    Args:
        data: Checkout input.
        order_number: Allocated order number.
        now: Creation time.

    Returns:
        New Order.

    Raises:
        OrderValidationError: If ``validate_order_input`` rejects the input.
    """
    validation = validate_order_input(data)
    if not validation.valid:
        raise OrderValidationError(validation.errors)

    order_id = generate_order_id()
    created_at = now or utcnow()
    items = tuple(create_order_item(order_id, item) for item in data.items)
    totals = calculate_order_totals(
        items,
        shipping_candidate_cents=get_shipping_cents(data.shipping_method),
        shipping_method=data.shipping_method,
    )

    status = (
        OrderStatus.PROCESSING
        if data.payment_method == PaymentMethod.PAY_AT_VENUE
        else OrderStatus.PENDING
    )

    return Order(
        id=order_id,
        salon_id=data.salon_id,
        order_number=order_number,
        status=status,
        payment_status=PaymentStatus.PENDING,
        payment_method=data.payment_method,
        customer_email=data.customer_email,
        customer_id=data.customer_id,
        customer_name=data.customer_name,
        customer_phone=data.customer_phone,
        customer_notes=data.customer_notes,
        items=items,
        subtotal_cents=totals.subtotal_cents,
        discount_cents=totals.discount_cents,
        shipping_cents=totals.shipping_cents,
        tax_cents=totals.tax_cents,
        total_cents=totals.total_cents,
        shipping_method=data.shipping_method,
        shipping_address=data.shipping_address,
        source=data.source,
        created_at=created_at,
        updated_at=created_at,
    )


# ============================================================================
# Calculations
# ============================================================================


def get_shipping_cents(method: ShippingMethodType | str | None) -> int:
    """List price of a shipping method; zero when there is none.

    Raises:
        ValueError: If ``method`` is not a known shipping method.
    """
    if not method:
        return 0
    method_type = ShippingMethodType(method)
    for option in DEFAULT_SHIPPING_OPTIONS:
        if option.type == method_type:
            return option.price_cents
    return 0


def calculate_order_totals(
    items: tuple[OrderItem, ...] | list[OrderItem],
    voucher_discount_cents: int = 0,
    shipping_candidate_cents: int = 0,
    shipping_method: ShippingMethodType | None = None,
) -> OrderTotals:
    """Calculate order totals.

    Shipping is free at or above ``FREE_SHIPPING_THRESHOLD_CENTS`` and
    always free for pickup or no shipping. The voucher is capped at
    subtotal plus shipping, so the total never goes negative.

    Args:
        items: Order lines.
        voucher_discount_cents: Requested voucher amount.
        shipping_candidate_cents: Shipping price before the free-shipping rule.
        shipping_method: Selected shipping method.

    Returns:
        OrderTotals for the given inputs.
    """
    subtotal_cents = sum(item.total_cents for item in items)
    discount_cents = sum(item.discount_cents for item in items)

    if shipping_method is not None and shipping_method.is_free():
        shipping_cents = 0
    elif subtotal_cents >= FREE_SHIPPING_THRESHOLD_CENTS:
        shipping_cents = 0
    else:
        shipping_cents = shipping_candidate_cents

    total_before_voucher = subtotal_cents + shipping_cents
    voucher_cents = min(max(voucher_discount_cents, 0), total_before_voucher)
    total_cents = ensure_non_negative("total_cents", total_before_voucher - voucher_cents)

    return OrderTotals(
        subtotal_cents=subtotal_cents,
        discount_cents=discount_cents,
        voucher_discount_cents=voucher_cents,
        shipping_cents=shipping_cents,
        tax_cents=calculate_tax_from_gross(total_cents, VAT_RATE),
        total_cents=total_cents,
        item_count=sum(item.quantity for item in items),
    )


def get_available_shipping_options(
    subtotal_cents: int,
    digital_only: bool,
) -> tuple[ShippingOption, ...]:
    """Shipping options offered at checkout.

    Args:
        subtotal_cents: Current subtotal.
        digital_only: Whether the order only contains vouchers.

    Returns:
        Options with prices already adjusted for free shipping.
    """
    if digital_only:
        return (DIGITAL_SHIPPING_OPTION,)

    if subtotal_cents < FREE_SHIPPING_THRESHOLD_CENTS:
        return DEFAULT_SHIPPING_OPTIONS

    return tuple(
        option
        if option.type.is_free()
        else replace(option, price_cents=0, description="Kostenlos (ab CHF 50)")
        for option in DEFAULT_SHIPPING_OPTIONS
    )


# ============================================================================
# Validation
# ============================================================================


def is_valid_email(email: str) -> bool:
    return bool(_EMAIL_RE.match(email))


def validate_order_input(data: CreateOrderInput) -> ValidationResult:
    """Validate checkout input before creating an order.

    Args:
        data: Checkout input.

    Returns:
        ValidationResult with German, user-facing messages.
    """
    errors: list[str] = []

    if not (data.salon_id or "").strip():
        errors.append("Salon-ID ist erforderlich")

    if not data.customer_email:
        errors.append("E-Mail-Adresse ist erforderlich")
    elif not is_valid_email(data.customer_email):
        errors.append("Ungültige E-Mail-Adresse")

    if not data.items:
        errors.append("Mindestens ein Artikel ist erforderlich")

    for index, item in enumerate(data.items, start=1):
        if not item.item_name:
            errors.append(f"Artikel {index}: Name ist erforderlich")
        if item.quantity < 1:
            errors.append(f"Artikel {index}: Menge muss mindestens 1 sein")
        if item.unit_price_cents < 0:
            errors.append(f"Artikel {index}: Preis darf nicht negativ sein")
        elif not 0 <= item.discount_cents <= item.unit_price_cents * max(item.quantity, 0):
            errors.append(f"Artikel {index}: Rabatt ist ungültig")
        if item.item_type == OrderItemType.VOUCHER:
            if not item.recipient_email:
                errors.append(f"Artikel {index}: Empfänger-E-Mail für Gutschein erforderlich")
            if not item.recipient_name:
                errors.append(f"Artikel {index}: Empfängername für Gutschein erforderlich")

    if any(item.item_type == OrderItemType.PRODUCT for item in data.items):
        errors.extend(_validate_shipping(data))

    return ValidationResult.from_errors(errors)


def _validate_shipping(data: CreateOrderInput) -> list[str]:
    errors: list[str] = []
    if data.shipping_method is None:
        errors.append("Versandart ist erforderlich")
    elif data.shipping_method.requires_address() and data.shipping_address is None:
        errors.append("Lieferadresse ist erforderlich")

    address = data.shipping_address
    if address is not None:
        if not address.name:
            errors.append("Name in Lieferadresse erforderlich")
        if not address.street:
            errors.append("Strasse in Lieferadresse erforderlich")
        if not address.zip:
            errors.append("PLZ in Lieferadresse erforderlich")
        if not address.city:
            errors.append("Ort in Lieferadresse erforderlich")
    return errors


def validate_order_for_payment(order: Order) -> ValidationResult:
    """Check that an order can be sent to online payment."""
    errors: list[str] = []

    if order.status != OrderStatus.PENDING:
        errors.append('Bestellung ist nicht im Status "ausstehend"')
    if not order.items:
        errors.append("Bestellung enthält keine Artikel")
    if order.total_cents <= 0:
        errors.append("Bestellwert muss grösser als 0 sein")

    return ValidationResult.from_errors(errors)


# ============================================================================
# Status Transitions
# ============================================================================

_STATUS_TIMESTAMPS: dict[OrderStatus, str] = {
    OrderStatus.SHIPPED: "shipped_at",
    OrderStatus.DELIVERED: "delivered_at",
    OrderStatus.COMPLETED: "completed_at",
    OrderStatus.CANCELLED: "cancelled_at",
    OrderStatus.REFUNDED: "refunded_at",
}


def transition_order_status(
    order: Order,
    new_status: OrderStatus | str,
    now: datetime | None = None,
) -> OrderTransition:
    """Move an order to a new status.

    Re-applying the current status returns the order unchanged. A
    forbidden transition is reported in the result, never raised.

    Args:
        order: Order to transition.
        new_status: Target status.
        now: Transition time, stamped on the matching timestamp field.

    Returns:
        OrderTransition with the new order or the rejection.

    Raises:
        ValueError: If ``new_status`` is not a known status value.
    """
    target = coerce_order_status(new_status)
    if target == order.status:
        return OrderTransition(success=True, order=order)

    error = order_transition_error(order.id, order.status, target)
    if error is not None:
        return OrderTransition(success=False, order=order, error=error)

    moment = now or utcnow()
    changes: dict[str, object] = {"status": target, "updated_at": moment}
    if target in _STATUS_TIMESTAMPS:
        changes[_STATUS_TIMESTAMPS[target]] = moment
    return OrderTransition(success=True, order=replace(order, **changes))


def update_payment_status(
    order: Order,
    payment_status: PaymentStatus | str,
    now: datetime | None = None,
) -> Order:
    """Record a payment status reported by the payment provider.

    Stamps ``paid_at`` on success and ``refunded_at`` on refund.
    """
    status = PaymentStatus(payment_status)
    if status == order.payment_status:
        return order

    moment = now or utcnow()
    changes: dict[str, object] = {"payment_status": status, "updated_at": moment}
    if status == PaymentStatus.SUCCEEDED:
        changes["paid_at"] = moment
    elif status == PaymentStatus.REFUNDED:
        changes["refunded_at"] = moment
    return replace(order, **changes)


def add_tracking_number(
    order: Order,
    tracking_number: str,
    now: datetime | None = None,
) -> OrderTransition:
    """Record a parcel tracking number and mark the order shipped."""
    result = transition_order_status(order, OrderStatus.SHIPPED, now)
    if not result.success:
        return result
    if result.order.tracking_number == tracking_number:
        return result
    updated = replace(result.order, tracking_number=tracking_number, updated_at=now or utcnow())
    return OrderTransition(success=True, order=updated)


def refund_order(order: Order, now: datetime | None = None) -> Order:
    """Fully refund a paid order.

    A cancelled order keeps its status and only has its payment marked
    refunded; any other order also transitions to REFUNDED.

    Args:
        order: Order to refund.
        now: Refund time.

    Returns:
        Refunded order.

    Raises:
        OrderNotRefundableError: If the order cannot be refunded.
    """
    if not can_refund(order):
        raise OrderNotRefundableError(order.id, order.status.value, order.payment_status.value)

    moment = now or utcnow()
    refunded = order
    if order.status != OrderStatus.CANCELLED:
        result = transition_order_status(order, OrderStatus.REFUNDED, moment)
        if not result.success:
            raise OrderNotRefundableError(
                order.id, order.status.value, order.payment_status.value
            )
        refunded = result.order

    refunded = update_payment_status(refunded, PaymentStatus.REFUNDED, moment)
    return replace(refunded, refunded_amount_cents=order.total_cents)


# ============================================================================
# Vouchers
# ============================================================================


def apply_voucher(order: Order, voucher: ApplyVoucherInput, now: datetime | None = None) -> Order:
    """Apply an already validated voucher amount.

    The amount is capped at subtotal plus shipping. Re-applying the same
    voucher with the same amount returns the order unchanged.

    Raises:
        NegativeMoneyError: If the voucher amount is negative.
    """
    if voucher.discount_cents < 0:
        raise NegativeMoneyError(voucher.discount_cents, "discount_cents")

    totals = calculate_order_totals(
        order.items,
        voucher_discount_cents=voucher.discount_cents,
        shipping_candidate_cents=order.shipping_cents,
        shipping_method=order.shipping_method,
    )
    if (
        order.voucher_id == voucher.voucher_id
        and order.voucher_discount_cents == totals.voucher_discount_cents
    ):
        return order

    return replace(
        order,
        voucher_id=voucher.voucher_id,
        voucher_code=voucher.voucher_code,
        voucher_discount_cents=totals.voucher_discount_cents,
        total_cents=totals.total_cents,
        tax_cents=totals.tax_cents,
        updated_at=now or utcnow(),
    )


def remove_voucher(order: Order, now: datetime | None = None) -> Order:
    if order.voucher_id is None and order.voucher_discount_cents == 0:
        return order

    totals = calculate_order_totals(
        order.items,
        shipping_candidate_cents=order.shipping_cents,
        shipping_method=order.shipping_method,
    )
    return replace(
        order,
        voucher_id=None,
        voucher_code=None,
        voucher_discount_cents=0,
        total_cents=totals.total_cents,
        tax_cents=totals.tax_cents,
        updated_at=now or utcnow(),
    )


# ============================================================================
# Queries
# ============================================================================


def is_digital_only_order(order: Order) -> bool:
    return all(item.item_type == OrderItemType.VOUCHER for item in order.items)


def has_voucher_items(order: Order) -> bool:
    return any(item.item_type == OrderItemType.VOUCHER for item in order.items)


def get_voucher_items(order: Order) -> list[OrderItem]:
    return [item for item in order.items if item.item_type == OrderItemType.VOUCHER]


def get_item_count(order: Order) -> int:
    return sum(item.quantity for item in order.items)


def is_paid(order: Order) -> bool:
    return order.payment_status == PaymentStatus.SUCCEEDED


def can_cancel(order: Order) -> bool:
    """Check if the order can still be cancelled.

    Returns:
        True while the order is pending, paid or processing.
    """
    return order.status.is_cancellable()


def can_refund(order: Order) -> bool:
    """Check if the order can be refunded.

    Returns:
        True if payment succeeded and the order is not already refunded.
    """
    return order.payment_status == PaymentStatus.SUCCEEDED and order.status != OrderStatus.REFUNDED


# ============================================================================
# Cart Conversion
# ============================================================================


def _distribute(amount_cents: int, weights: list[int]) -> list[int]:
    """Split an amount proportionally to weights using largest remainder."""
    total_weight = sum(weights)
    if amount_cents <= 0 or total_weight <= 0:
        return [0] * len(weights)

    shares: list[int] = []
    remainders: list[tuple[int, int]] = []
    for index, weight in enumerate(weights):
        share, remainder = divmod(amount_cents * weight, total_weight)
        shares.append(share)
        remainders.append((remainder, index))

    leftover = amount_cents - sum(shares)
    # Largest remainder first, earlier lines win ties
    for _, index in sorted(remainders, key=lambda r: (-r[0], r[1]))[:leftover]:
        shares[index] += 1
    return shares


def cart_to_order_items(cart: Cart) -> tuple[CreateOrderItemInput, ...]:
    """Convert cart lines into order line input.

    Cart-level discounts are spread over the lines in proportion to their
    totals, so the order subtotal equals the discounted cart subtotal.

    Args:
        cart: Cart being checked out.

    Returns:
        Order line input in cart order.
    """
    discount_cents = cart.totals.discount_cents
    line_discounts = _distribute(discount_cents, [item.total_price_cents for item in cart.items])

    result: list[CreateOrderItemInput] = []
    for item, line_discount in zip(cart.items, line_discounts):
        is_voucher = item.type == CartItemType.VOUCHER
        result.append(
            CreateOrderItemInput(
                item_type=OrderItemType.VOUCHER if is_voucher else OrderItemType.PRODUCT,
                item_name=item.name,
                quantity=item.quantity,
                unit_price_cents=item.unit_price_cents,
                discount_cents=line_discount,
                product_id=item.product_id,
                variant_id=item.variant,
                item_sku=item.sku,
                item_description=item.description,
                voucher_type="value" if is_voucher else None,
                recipient_email=item.recipient_email,
                recipient_name=item.recipient_name,
                personal_message=item.personal_message,
            )
        )
    return tuple(result)
