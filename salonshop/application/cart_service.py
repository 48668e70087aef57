"""Cart application service.

Cart session use cases on top of the pure cart engine:
- Creating and loading carts
- Adding, updating and removing lines
- Applying discount codes and choosing shipping
- Rejecting carts past their expiry
"""

from collections.abc import Callable
from dataclasses import dataclass, field

import structlog

from salonshop.domain.cart import (
    AddToCartInput,
    Cart,
    CartDiscount,
    ProductSnapshot,
    UpdateCartItemInput,
    add_item_to_cart,
    apply_discount,
    clear_cart,
    create_empty_cart,
    is_cart_expired,
    remove_cart_item,
    remove_discount,
    set_shipping_method,
    update_cart_item,
)
from salonshop.domain.exceptions import (
    CartError,
    CartExpiredError,
    DomainError,
    InvalidQuantityError,
    MoneyError,
)
from salonshop.domain.money import utcnow
from salonshop.domain.value_objects import ShippingOption

logger = structlog.get_logger()


# ============================================================================
# Service Result Types
# ============================================================================


@dataclass
class CartResult:
    """Result of a cart operation."""

    cart: Cart | None = None
    success: bool = True
    error: str | None = None
    error_code: str | None = None
    errors: list[str] = field(default_factory=list)


# ============================================================================
# In-Memory Cart Store
# ============================================================================


class CartStore:
    """In-memory store for carts.

    Carts belong to one checkout session, so a single writer per cart
    is assumed and no locking is done. Abandoned carts are swept out
    whenever another cart is saved.
    """

    def __init__(self) -> None:
        self._carts: dict[str, Cart] = {}

    def save(self, cart: Cart) -> None:
        """Save a cart, replacing any previous version."""
        self.sweep_expired(keep=cart.id)
        self._carts[cart.id] = cart

    def sweep_expired(self, keep: str | None = None) -> int:
        """Drop expired carts except ``keep``.

        Returns:
            Number of carts dropped.
        """
        now = utcnow()
        expired = [
            cart_id
            for cart_id, cart in self._carts.items()
            if cart_id != keep and is_cart_expired(cart, now)
        ]
        for cart_id in expired:
            del self._carts[cart_id]
        if expired:
            logger.debug("Expired carts swept", count=len(expired))
        return len(expired)

    def get(self, cart_id: str) -> Cart | None:
        """Get cart by ID."""
        return self._carts.get(cart_id)

    def delete(self, cart_id: str) -> None:
        self._carts.pop(cart_id, None)

    def __len__(self) -> int:
        return len(self._carts)


# Global store instance
_cart_store: CartStore | None = None


def get_cart_store() -> CartStore:
    """Get cart store singleton."""
    global _cart_store
    if _cart_store is None:
        _cart_store = CartStore()
    return _cart_store


def reset_cart_store() -> None:
    """Reset cart store (for testing)."""
    global _cart_store
    _cart_store = CartStore()


def _error_code(error: DomainError) -> str:
    if isinstance(error, InvalidQuantityError):
        return "INVALID_QUANTITY"
    if isinstance(error, MoneyError):
        return "INVALID_AMOUNT"
    if isinstance(error, CartError):
        return "CART_ERROR"
    return "DOMAIN_ERROR"


# ============================================================================
# Cart Service
# ============================================================================


class CartService:
    """Application service for shopping carts."""

    def __init__(
        self,
        cart_store: CartStore | None = None,
        request_id: str | None = None,
    ) -> None:
        """Initialize service.

        Args:
            cart_store: Cart store.
            request_id: Request ID for correlation.
        """
        self.cart_store = cart_store or get_cart_store()
        self.request_id = request_id

    async def create_cart(self) -> CartResult:
        cart = create_empty_cart()
        self.cart_store.save(cart)

        logger.info(
            "Cart created",
            cart_id=cart.id,
            expires_at=cart.expires_at.isoformat(),
            request_id=self.request_id,
        )
        return CartResult(cart=cart)

    async def get_cart(self, cart_id: str) -> CartResult:
        """Get a cart by ID.

        Expired carts are dropped from the store and reported as
        ``CART_EXPIRED``.

        Args:
            cart_id: Cart identifier.

        Returns:
            CartResult with the cart if found and still valid.
        """
        cart = self.cart_store.get(cart_id)
        if cart is None:
            return CartResult(
                success=False,
                error=f"Cart not found: {cart_id}",
                error_code="CART_NOT_FOUND",
            )

        if is_cart_expired(cart):
            self.cart_store.delete(cart_id)
            error = CartExpiredError(cart_id, cart.expires_at.isoformat())
            logger.info("Cart expired", cart_id=cart_id, request_id=self.request_id)
            return CartResult(success=False, error=error.message, error_code="CART_EXPIRED")

        return CartResult(cart=cart)

    async def add_item(
        self,
        cart_id: str,
        item: AddToCartInput,
        product: ProductSnapshot,
    ) -> CartResult:
        """Add a product or voucher.

        Args:
            cart_id: Cart identifier.
            item: What to add.
            product: Catalog snapshot for name and price.

        Returns:
            CartResult with the updated cart.
        """
        return await self._mutate(
            cart_id,
            lambda cart: add_item_to_cart(cart, item, product),
            "Cart item added",
            item_type=item.type.value,
            product_id=item.product_id,
            quantity=item.quantity,
        )

    async def update_item(self, cart_id: str, update: UpdateCartItemInput) -> CartResult:
        return await self._mutate(
            cart_id,
            lambda cart: update_cart_item(cart, update),
            "Cart item updated",
            item_id=update.item_id,
            quantity=update.quantity,
        )

    async def remove_item(self, cart_id: str, item_id: str) -> CartResult:
        return await self._mutate(
            cart_id,
            lambda cart: remove_cart_item(cart, item_id),
            "Cart item removed",
            item_id=item_id,
        )

    async def clear(self, cart_id: str) -> CartResult:
        return await self._mutate(cart_id, clear_cart, "Cart cleared")

    async def apply_discount(self, cart_id: str, discount: CartDiscount) -> CartResult:
        return await self._mutate(
            cart_id,
            lambda cart: apply_discount(cart, discount),
            "Cart discount applied",
            code=discount.code,
            kind=discount.kind.value,
        )

    async def remove_discount(self, cart_id: str, code: str) -> CartResult:
        return await self._mutate(
            cart_id,
            lambda cart: remove_discount(cart, code),
            "Cart discount removed",
            code=code,
        )

    async def set_shipping_method(self, cart_id: str, option: ShippingOption) -> CartResult:
        return await self._mutate(
            cart_id,
            lambda cart: set_shipping_method(cart, option),
            "Cart shipping method set",
            shipping_method=option.type.value,
        )

    async def discard(self, cart_id: str) -> None:
        """Remove a cart after it has been turned into an order."""
        self.cart_store.delete(cart_id)
        logger.info("Cart discarded", cart_id=cart_id, request_id=self.request_id)

    async def _mutate(
        self,
        cart_id: str,
        operation: Callable[[Cart], Cart],
        event: str,
        **log_fields: object,
    ) -> CartResult:
        """Load a cart, apply a cart engine operation and store the result.

        Args:
            cart_id: Cart identifier.
            operation: Pure function producing the new cart.
            event: Log event name.
            **log_fields: Extra log fields.

        Returns:
            CartResult with the updated cart.
        """
        loaded = await self.get_cart(cart_id)
        if not loaded.success or loaded.cart is None:
            return loaded

        try:
            cart = operation(loaded.cart)
        except DomainError as e:
            logger.warning(
                "Cart operation rejected",
                cart_id=cart_id,
                error=e.message,
                request_id=self.request_id,
            )
            return CartResult(success=False, error=e.message, error_code=_error_code(e))

        if cart is not loaded.cart:
            self.cart_store.save(cart)
            logger.info(
                event,
                cart_id=cart_id,
                item_count=cart.totals.item_count,
                total_cents=cart.totals.total_cents,
                request_id=self.request_id,
                **log_fields,
            )
        return CartResult(cart=cart)


# ============================================================================
# Service Factory
# ============================================================================


def get_cart_service(request_id: str | None = None) -> CartService:
    """Get cart service instance.

    Args:
        request_id: Request ID for correlation.

    Returns:
        CartService instance.
    """
    return CartService(request_id=request_id)
