"""Cart engine.

Pure functions over an immutable ``Cart``. Every operation returns a new
cart and leaves its input untouched; totals are derived from items,
discounts and the shipping method on every read and are never stored.
"""

from dataclasses import dataclass, field, replace
from datetime import datetime
from decimal import Decimal
from enum import Enum

from salonshop.domain.base import ValidationResult, ValueObject
from salonshop.domain.exceptions import CartError, InvalidQuantityError, NegativeMoneyError
from salonshop.domain.money import (
    VAT_RATE,
    calculate_tax_from_gross,
    cart_expiry,
    format_price,
    percentage_of,
    to_percentage,
    utcnow,
)
from salonshop.domain.value_objects import (
    ShippingOption,
    generate_cart_id,
    generate_cart_item_id,
)

__all__ = [
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
    "format_price",
    "get_item_count",
    "has_items",
    "is_cart_expired",
    "is_cart_valid_for_checkout",
    "is_digital_only_cart",
    "is_product_in_cart",
    "remove_cart_item",
    "remove_discount",
    "set_shipping_method",
    "update_cart_item",
]


# ============================================================================
# Cart Types
# ============================================================================


class CartItemType(str, Enum):
    """Kinds of things a customer can put in the cart."""

    PRODUCT = "product"
    VOUCHER = "voucher"


class DiscountKind(str, Enum):
    """How a discount amount is determined.

    PERCENTAGE is evaluated against the subtotal when totals are computed;
    FIXED and VOUCHER carry a precomputed cents amount.
    """

    PERCENTAGE = "percentage"
    FIXED = "fixed"
    VOUCHER = "voucher"


@dataclass(frozen=True)
class ProductSnapshot(ValueObject):
    """Catalog data captured at the moment an item is added.

    Attributes:
        name: Product name for display.
        price_cents: Gross unit price.
        description: Optional description.
        image_url: Optional image.
        sku: Stock Keeping Unit (optional).
    """

    name: str
    price_cents: int
    description: str | None = None
    image_url: str | None = None
    sku: str | None = None


@dataclass(frozen=True)
class CartItem(ValueObject):
    """A line in the cart.

    ``total_price_cents`` always equals ``unit_price_cents * quantity``;
    discounts live on the cart, never on a line.

    Attributes:
        id: Unique line identifier.
        type: Product or voucher.
        name: Display name.
        quantity: Number of units (>= 1).
        unit_price_cents: Gross unit price.
        total_price_cents: Gross line total.
        product_id: Catalog product (product lines).
        variant: Product variant, part of the merge identity.
        sku: Stock Keeping Unit.
        description: Optional description.
        image_url: Optional image.
        voucher_value_cents: Face value of a gift voucher.
        recipient_email: Where the voucher code is sent.
        recipient_name: Voucher recipient.
        personal_message: Message printed on the voucher.
    """

    id: str
    type: CartItemType
    name: str
    quantity: int
    unit_price_cents: int
    total_price_cents: int
    product_id: str | None = None
    variant: str | None = None
    sku: str | None = None
    description: str | None = None
    image_url: str | None = None
    voucher_value_cents: int | None = None
    recipient_email: str | None = None
    recipient_name: str | None = None
    personal_message: str | None = None

    def with_quantity(self, quantity: int) -> "CartItem":
        """Copy of this line with a new quantity and recomputed total."""
        return replace(
            self,
            quantity=quantity,
            total_price_cents=self.unit_price_cents * quantity,
        )

    def matches_product(self, product_id: str | None, variant: str | None) -> bool:
        """Check if this line holds the given product/variant.

        Voucher lines never match, so vouchers are never merged.
        """
        return (
            self.type == CartItemType.PRODUCT
            and self.product_id == product_id
            and self.variant == variant
        )


@dataclass(frozen=True)
class CartDiscount(ValueObject):
    """A discount code applied to the whole cart.

    Attributes:
        code: Discount code as entered.
        kind: How the amount is determined.
        value: Whole-number percentage for PERCENTAGE, cents otherwise.
        amount_cents: Precomputed amount for FIXED and VOUCHER.
        description: Optional display text.
    """

    code: str
    kind: DiscountKind
    value: Decimal | int = 0
    amount_cents: int = 0
    description: str = ""

    def __post_init__(self) -> None:
        """Validate discount representation."""
        if self.kind == DiscountKind.PERCENTAGE:
            to_percentage(self.value)
        if self.amount_cents < 0:
            raise NegativeMoneyError(self.amount_cents, "amount_cents")

    def amount_for(self, subtotal_cents: int) -> int:
        """Discount amount against a given subtotal.

        Args:
            subtotal_cents: Cart subtotal.

        Returns:
            Discount in cents, before capping at the subtotal.
        """
        if self.kind == DiscountKind.PERCENTAGE:
            return percentage_of(subtotal_cents, self.value)
        return self.amount_cents


@dataclass(frozen=True)
class CartTotals(ValueObject):
    """Totals breakdown for a cart.

    Attributes:
        subtotal_cents: Sum of line totals.
        discount_cents: Applied discounts, capped at the subtotal.
        shipping_cents: Price of the selected shipping method.
        tax_cents: VAT included in the total.
        total_cents: Amount payable.
        item_count: Sum of quantities.
    """

    subtotal_cents: int = 0
    discount_cents: int = 0
    shipping_cents: int = 0
    tax_cents: int = 0
    total_cents: int = 0
    item_count: int = 0


@dataclass(frozen=True)
class Cart(ValueObject):
    """Pre-checkout basket owned by a single checkout session.

    Attributes:
        id: Cart identifier.
        items: Cart lines in insertion order.
        discounts: Applied discount codes.
        shipping_method: Selected shipping option.
        created_at: Creation timestamp.
        updated_at: Timestamp of the last change.
        expires_at: Advisory expiry; enforced by the cart store.
    """

    id: str
    created_at: datetime
    updated_at: datetime
    expires_at: datetime
    items: tuple[CartItem, ...] = field(default_factory=tuple)
    discounts: tuple[CartDiscount, ...] = field(default_factory=tuple)
    shipping_method: ShippingOption | None = None

    @property
    def totals(self) -> CartTotals:
        """Totals derived from items, discounts and shipping method."""
        return calculate_totals(self.items, self.discounts, self.shipping_method)

    @property
    def is_empty(self) -> bool:
        return not self.items


@dataclass(frozen=True)
class AddToCartInput:
    """Request to add something to the cart.

    Attributes:
        type: Product or voucher.
        quantity: Units to add.
        product_id: Catalog product (product lines).
        variant: Product variant.
        voucher_value_cents: Face value for vouchers; overrides catalog price.
        recipient_email: Voucher recipient email.
        recipient_name: Voucher recipient name.
        personal_message: Voucher message.
    """

    type: CartItemType
    quantity: int = 1
    product_id: str | None = None
    variant: str | None = None
    voucher_value_cents: int | None = None
    recipient_email: str | None = None
    recipient_name: str | None = None
    personal_message: str | None = None


@dataclass(frozen=True)
class UpdateCartItemInput:
    """Request to change a cart line.

    A quantity of zero or less removes the line.
    """

    item_id: str
    quantity: int | None = None
    variant: str | None = None


# ============================================================================
# Cart Creation
# ============================================================================


def create_empty_cart(now: datetime | None = None) -> Cart:
    """Create an empty cart expiring in seven days.

    Args:
        now: Creation time (defaults to current UTC time).

    Returns:
        New empty Cart.
    """
    created_at = now or utcnow()
    return Cart(
        id=generate_cart_id(),
        created_at=created_at,
        updated_at=created_at,
        expires_at=cart_expiry(created_at),
    )


def _touch(cart: Cart, now: datetime | None, **changes: object) -> Cart:
    return replace(cart, updated_at=now or utcnow(), **changes)


# ============================================================================
# Cart Item Operations
# ============================================================================


def add_item_to_cart(
    cart: Cart,
    item: AddToCartInput,
    product: ProductSnapshot,
    now: datetime | None = None,
) -> Cart:
    """Add a product or voucher to the cart.

    A product already in the cart with the same product ID and variant
    has its quantity increased. Vouchers always get their own line, even
    with identical parameters, because each one becomes a separate code
    sent to its recipient.

    Args:
        cart: Cart to add to.
        item: What to add.
        product: Catalog snapshot for name and price.
        now: Change time.

    Returns:
        New Cart with the item added.

    Raises:
        InvalidQuantityError: If quantity is below 1.
        NegativeMoneyError: If the resolved unit price is negative.
        CartError: If a product line has no product ID.
    """
    if item.quantity < 1:
        raise InvalidQuantityError(item.quantity)

    if item.type == CartItemType.PRODUCT:
        if not item.product_id:
            raise CartError("Product items require a product_id")
        for index, existing in enumerate(cart.items):
            if existing.matches_product(item.product_id, item.variant):
                merged = existing.with_quantity(existing.quantity + item.quantity)
                items = cart.items[:index] + (merged,) + cart.items[index + 1 :]
                return _touch(cart, now, items=items)

    if item.type == CartItemType.VOUCHER and item.voucher_value_cents:
        unit_price = item.voucher_value_cents
    else:
        unit_price = product.price_cents
    if unit_price < 0:
        raise NegativeMoneyError(unit_price, "unit_price_cents")

    new_item = CartItem(
        id=generate_cart_item_id(),
        type=item.type,
        name=product.name,
        quantity=item.quantity,
        unit_price_cents=unit_price,
        total_price_cents=unit_price * item.quantity,
        product_id=item.product_id,
        variant=item.variant,
        sku=product.sku,
        description=product.description,
        image_url=product.image_url,
        voucher_value_cents=item.voucher_value_cents,
        recipient_email=item.recipient_email,
        recipient_name=item.recipient_name,
        personal_message=item.personal_message,
    )
    return _touch(cart, now, items=cart.items + (new_item,))


def update_cart_item(
    cart: Cart,
    update: UpdateCartItemInput,
    now: datetime | None = None,
) -> Cart:
    """Change quantity and/or variant of a cart line.

    Switching a product line to a variant that another line already holds
    folds this line's quantity into that line and drops this one.

    Args:
        cart: Cart to update.
        update: Line ID and new values.
        now: Change time.

    Returns:
        New Cart; the input cart itself if the line does not exist.
    """
    existing = find_cart_item(cart, update.item_id)
    if existing is None:
        return cart

    if update.quantity is not None and update.quantity <= 0:
        return remove_cart_item(cart, update.item_id, now)

    updated = existing
    if update.quantity is not None:
        updated = updated.with_quantity(update.quantity)
    if update.variant is not None:
        updated = replace(updated, variant=update.variant)

    if updated.type == CartItemType.PRODUCT and updated.variant != existing.variant:
        for line in cart.items:
            if line.id != updated.id and line.matches_product(updated.product_id, updated.variant):
                merged = line.with_quantity(line.quantity + updated.quantity)
                items = tuple(
                    merged if other.id == line.id else other
                    for other in cart.items
                    if other.id != updated.id
                )
                return _touch(cart, now, items=items)

    items = tuple(updated if line.id == update.item_id else line for line in cart.items)
    return _touch(cart, now, items=items)


def remove_cart_item(cart: Cart, item_id: str, now: datetime | None = None) -> Cart:
    """Remove a line by ID; returns the input cart if it is not there."""
    if find_cart_item(cart, item_id) is None:
        return cart
    items = tuple(line for line in cart.items if line.id != item_id)
    return _touch(cart, now, items=items)


def clear_cart(cart: Cart, now: datetime | None = None) -> Cart:
    """Empty items and discounts and drop the shipping method."""
    return _touch(cart, now, items=(), discounts=(), shipping_method=None)


# ============================================================================
# Discount & Shipping Operations
# ============================================================================


def apply_discount(cart: Cart, discount: CartDiscount, now: datetime | None = None) -> Cart:
    """Apply a discount code; a code already applied is ignored.

    Args:
        cart: Cart to discount.
        discount: Discount to apply.
        now: Change time.

    Returns:
        New Cart with the discount, or the input cart for a duplicate code.
    """
    if any(d.code == discount.code for d in cart.discounts):
        return cart
    return _touch(cart, now, discounts=cart.discounts + (discount,))


def remove_discount(cart: Cart, code: str, now: datetime | None = None) -> Cart:
    if not any(d.code == code for d in cart.discounts):
        return cart
    discounts = tuple(d for d in cart.discounts if d.code != code)
    return _touch(cart, now, discounts=discounts)


def set_shipping_method(
    cart: Cart,
    shipping_method: ShippingOption,
    now: datetime | None = None,
) -> Cart:
    return _touch(cart, now, shipping_method=shipping_method)


# ============================================================================
# Totals Calculation
# ============================================================================


def calculate_totals(
    items: tuple[CartItem, ...] | list[CartItem],
    discounts: tuple[CartDiscount, ...] | list[CartDiscount],
    shipping_method: ShippingOption | None = None,
) -> CartTotals:
    """Calculate cart totals.

    Line prices are gross, so VAT is extracted from the final payable
    amount rather than added to it.

    Args:
        items: Cart lines.
        discounts: Applied discounts.
        shipping_method: Selected shipping option, if any.

    Returns:
        CartTotals for the given inputs.
    """
    subtotal_cents = sum(item.total_price_cents for item in items)

    discount_cents = sum(discount.amount_for(subtotal_cents) for discount in discounts)
    discount_cents = min(max(discount_cents, 0), subtotal_cents)

    shipping_cents = shipping_method.price_cents if shipping_method else 0
    total_cents = max(0, subtotal_cents - discount_cents) + shipping_cents

    return CartTotals(
        subtotal_cents=subtotal_cents,
        discount_cents=discount_cents,
        shipping_cents=shipping_cents,
        tax_cents=calculate_tax_from_gross(total_cents, VAT_RATE),
        total_cents=total_cents,
        item_count=sum(item.quantity for item in items),
    )


# ============================================================================
# Validation
# ============================================================================


def is_cart_valid_for_checkout(cart: Cart) -> ValidationResult:
    """Check if the cart can proceed to checkout.

    Args:
        cart: Cart to check.

    Returns:
        ValidationResult with German, user-facing messages.
    """
    errors: list[str] = []

    if cart.is_empty:
        errors.append("Der Warenkorb ist leer.")

    for item in cart.items:
        if item.quantity <= 0:
            errors.append(f"Ungültige Menge für {item.name}.")

    for item in cart.items:
        if item.type == CartItemType.VOUCHER and not (item.recipient_email or "").strip():
            errors.append(
                f'Bitte geben Sie eine E-Mail-Adresse für den Gutschein "{item.name}" an.'
            )

    return ValidationResult.from_errors(errors)


def is_digital_only_cart(cart: Cart) -> bool:
    """True when every line is a voucher, so no parcel has to be shipped."""
    return all(item.type == CartItemType.VOUCHER for item in cart.items)


def is_cart_expired(cart: Cart, now: datetime | None = None) -> bool:
    return (now or utcnow()) >= cart.expires_at


# ============================================================================
# Queries
# ============================================================================


def get_item_count(cart: Cart) -> int:
    return sum(item.quantity for item in cart.items)


def has_items(cart: Cart) -> bool:
    return not cart.is_empty


def find_cart_item(cart: Cart, item_id: str) -> CartItem | None:
    """Find a line by ID.

    Args:
        cart: Cart to search.
        item_id: Line identifier.

    Returns:
        CartItem if found, None otherwise.
    """
    for item in cart.items:
        if item.id == item_id:
            return item
    return None


def is_product_in_cart(cart: Cart, product_id: str, variant: str | None = None) -> bool:
    """Check for a product, optionally restricted to one variant."""
    return any(
        item.type == CartItemType.PRODUCT
        and item.product_id == product_id
        and (variant is None or item.variant == variant)
        for item in cart.items
    )
