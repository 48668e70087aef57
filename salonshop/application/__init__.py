"""Application layer module.

Contains application services (use cases) that orchestrate
domain logic and infrastructure.
"""

from salonshop.application.cart_service import (
    CartService,
    get_cart_service,
)
from salonshop.application.checkout_service import (
    CheckoutDetails,
    CheckoutService,
)
from salonshop.application.order_service import OrderService

__all__ = [
    "CartService",
    "get_cart_service",
    "CheckoutDetails",
    "CheckoutService",
    "OrderService",
]
