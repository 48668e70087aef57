"""Domain layer - Cart and order pricing, order lifecycle.

This module exports the pure, synchronous core of the shop:

- **Money/Tax**: integer-cents arithmetic and Swiss VAT extraction
- **Cart Engine**: immutable cart with derived totals
- **Order Engine**: order creation, totals, vouchers, refunds
- **State Machines**: OrderStatus / PaymentStatus transitions and labels
- **Exceptions**: Domain-specific errors and invariant violations

Example usage:
    from salonshop.domain import AddToCartInput, CartItemType, ProductSnapshot
    from salonshop.domain import add_item_to_cart, create_empty_cart

    cart = create_empty_cart()
    cart = add_item_to_cart(
        cart,
        AddToCartInput(type=CartItemType.PRODUCT, product_id="shampoo", quantity=2),
        ProductSnapshot(name="Shampoo", price_cents=2500),
    )
    print(cart.totals.total_cents)  # 5000
"""

# Base classes
from salonshop.domain.base import ValidationResult, ValueObject

# Cart Engine
from salonshop.domain.cart import (
    AddToCartInput,
    Cart,
    CartDiscount,
    CartItem,
    CartItemType,
    CartTotals,
    DiscountKind,
    ProductSnapshot,
    UpdateCartItemInput,
    add_item_to_cart,
    apply_discount,
    calculate_totals,
    clear_cart,
    create_empty_cart,
    find_cart_item,
    has_items,
    is_cart_expired,
    is_cart_valid_for_checkout,
    is_digital_only_cart,
    is_product_in_cart,
    remove_cart_item,
    remove_discount,
    set_shipping_method,
    update_cart_item,
)

# Exceptions
from salonshop.domain.exceptions import (
    ArithmeticInvariantViolation,
    CartError,
    CartExpiredError,
    DomainError,
    InvalidQuantityError,
    InvalidRateError,
    InvalidStateTransitionError,
    MoneyError,
    NegativeMoneyError,
    OrderError,
    OrderNotRefundableError,
    OrderValidationError,
    ValidationError,
)

# Money/Tax
from salonshop.domain.money import (
    CURRENCY,
    VAT_RATE,
    VAT_RATE_REDUCED,
    calculate_tax_from_gross,
    calculate_tax_from_net,
    format_date,
    format_datetime,
    format_price,
    to_tax_rate,
)

# Order Engine
from salonshop.domain.order import (
    ApplyVoucherInput,
    CreateOrderInput,
    CreateOrderItemInput,
    Order,
    OrderItem,
    OrderItemType,
    OrderSource,
    OrderTotals,
    OrderTransition,
    add_tracking_number,
    apply_voucher,
    calculate_order_totals,
    can_cancel,
    can_refund,
    cart_to_order_items,
    create_order,
    format_order_number,
    generate_order_number_prefix,
    get_available_shipping_options,
    get_shipping_cents,
    is_digital_only_order,
    refund_order,
    remove_voucher,
    transition_order_status,
    update_payment_status,
    validate_order_for_payment,
    validate_order_input,
)

# State Machines
from salonshop.domain.state_machines import (
    OrderStatus,
    PaymentMethod,
    PaymentStatus,
    get_payment_status_text,
    get_status_text,
    is_valid_status_transition,
)

# Value Objects
from salonshop.domain.value_objects import (
    DEFAULT_SHIPPING_OPTIONS,
    FREE_SHIPPING_THRESHOLD_CENTS,
    ShippingAddress,
    ShippingMethodType,
    ShippingOption,
)

__all__ = [
    # Base
    "ValidationResult",
    "ValueObject",
    # Cart Engine
    "AddToCartInput",
    "Cart",
    "CartDiscount",
    "CartItem",
    "CartItemType",
    "CartTotals",
    "DiscountKind",
    "ProductSnapshot",
    "UpdateCartItemInput",
    "add_item_to_cart",
    "apply_discount",
    "calculate_totals",
    "clear_cart",
    "create_empty_cart",
    "find_cart_item",
    "has_items",
    "is_cart_expired",
    "is_cart_valid_for_checkout",
    "is_digital_only_cart",
    "is_product_in_cart",
    "remove_cart_item",
    "remove_discount",
    "set_shipping_method",
    "update_cart_item",
    # Exceptions
    "ArithmeticInvariantViolation",
    "CartError",
    "CartExpiredError",
    "DomainError",
    "InvalidQuantityError",
    "InvalidRateError",
    "InvalidStateTransitionError",
    "MoneyError",
    "NegativeMoneyError",
    "OrderError",
    "OrderNotRefundableError",
    "OrderValidationError",
    "ValidationError",
    # Money/Tax
    "CURRENCY",
    "VAT_RATE",
    "VAT_RATE_REDUCED",
    "calculate_tax_from_gross",
    "calculate_tax_from_net",
    "format_date",
    "format_datetime",
    "format_price",
    "to_tax_rate",
    # Order Engine
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
    "format_order_number",
    "generate_order_number_prefix",
    "get_available_shipping_options",
    "get_shipping_cents",
    "is_digital_only_order",
    "refund_order",
    "remove_voucher",
    "transition_order_status",
    "update_payment_status",
    "validate_order_for_payment",
    "validate_order_input",
    # State Machines
    "OrderStatus",
    "PaymentMethod",
    "PaymentStatus",
    "get_payment_status_text",
    "get_status_text",
    "is_valid_status_transition",
    # Value Objects
    "DEFAULT_SHIPPING_OPTIONS",
    "FREE_SHIPPING_THRESHOLD_CENTS",
    "ShippingAddress",
    "ShippingMethodType",
    "ShippingOption",
]
