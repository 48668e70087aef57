"""Value Objects for the domain layer.

Value objects are immutable objects that are defined by their attributes
rather than identity. They are interchangeable when their values are equal.
"""

from dataclasses import dataclass
from enum import Enum
from uuid import uuid4

from salonshop.domain.base import ValueObject


# ============================================================================
# Identifiers
# ============================================================================


def generate_cart_id() -> str:
    """Generate a new cart ID (``cart_<hex>``)."""
    return f"cart_{uuid4().hex}"


def generate_cart_item_id() -> str:
    """Generate a new cart item ID (``item_<hex>``)."""
    return f"item_{uuid4().hex}"


def generate_order_id() -> str:
    return str(uuid4())


# ============================================================================
# Shipping
# ============================================================================


class ShippingMethodType(str, Enum):
    """Ways an order reaches the customer."""

    STANDARD = "standard"
    EXPRESS = "express"
    PICKUP = "pickup"
    NONE = "none"

    def is_free(self) -> bool:
        """Check if the method never costs anything.

        Returns:
            True for pickup at the salon and for digital-only orders.
        """
        return self in {ShippingMethodType.PICKUP, ShippingMethodType.NONE}

    def requires_address(self) -> bool:
        """Check if a delivery address is needed.

        Returns:
            True for methods that ship a parcel.
        """
        return not self.is_free()


# Free shipping from CHF 50.00
FREE_SHIPPING_THRESHOLD_CENTS = 5000


@dataclass(frozen=True)
class ShippingOption(ValueObject):
    """A selectable shipping method with its price.

    Attributes:
        type: Shipping method type.
        name: Display name.
        description: Short description (delivery time, conditions).
        price_cents: Price charged for this option.
        estimated_days: Expected delivery time in working days.
        available: Whether the option can currently be selected.
    """

    type: ShippingMethodType
    name: str
    description: str
    price_cents: int
    estimated_days: int | None = None
    available: bool = True


DEFAULT_SHIPPING_OPTIONS: tuple[ShippingOption, ...] = (
    ShippingOption(
        type=ShippingMethodType.STANDARD,
        name="Standardversand",
        description="3-5 Werktage",
        price_cents=790,
        estimated_days=5,
    ),
    ShippingOption(
        type=ShippingMethodType.EXPRESS,
        name="Expressversand",
        description="1-2 Werktage",
        price_cents=1490,
        estimated_days=2,
    ),
    ShippingOption(
        type=ShippingMethodType.PICKUP,
        name="Abholung im Salon",
        description="Kostenlos",
        price_cents=0,
    ),
)

DIGITAL_SHIPPING_OPTION = ShippingOption(
    type=ShippingMethodType.NONE,
    name="Kein Versand",
    description="Digitale Produkte",
    price_cents=0,
)


# ============================================================================
# Address Value Object
# ============================================================================


@dataclass(frozen=True)
class ShippingAddress(ValueObject):
    """Delivery address for physical products.

    Fields are not validated on construction; ``validate_order_input``
    reports missing fields as user-facing messages instead.

    Attributes:
        name: Recipient name.
        street: Street and house number.
        zip: Postal code.
        city: City name.
        country: Country name or code.
        company: Company (optional).
        street2: Secondary address line (optional).
        canton: Swiss canton (optional).
        phone: Phone number (optional).
    """

    name: str
    street: str
    zip: str
    city: str
    country: str = "CH"
    company: str | None = None
    street2: str | None = None
    canton: str | None = None
    phone: str | None = None
