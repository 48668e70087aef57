"""Checkout application service.

Turns a cart into a placed order:
- Validating the cart and the derived order input
- Allocating the order number and persisting the order
- Creating a payment session for orders paid online
- Sending the order confirmation
"""

from dataclasses import dataclass, field, replace

import structlog

from salonshop.application.ports import (
    NotificationSender,
    OrderRepository,
    PaymentLineItem,
    PaymentSession,
    PaymentSessionProvider,
    StatusChange,
)
from salonshop.domain.cart import (
    Cart,
    is_cart_expired,
    is_cart_valid_for_checkout,
    is_digital_only_cart,
)
from salonshop.domain.money import utcnow
from salonshop.domain.order import (
    CreateOrderInput,
    Order,
    OrderSource,
    cart_to_order_items,
    create_order,
    validate_order_for_payment,
    validate_order_input,
)
from salonshop.domain.state_machines import PaymentMethod
from salonshop.domain.value_objects import ShippingAddress, ShippingMethodType
from salonshop.infrastructure.config import Settings, settings

logger = structlog.get_logger()


# ============================================================================
# Checkout Data Transfer Objects
# ============================================================================


@dataclass
class CheckoutDetails:
    """Customer input collected by the checkout form."""

    salon_id: str
    customer_email: str
    customer_name: str | None = None
    customer_phone: str | None = None
    customer_id: str | None = None
    customer_notes: str | None = None
    shipping_address: ShippingAddress | None = None
    payment_method: PaymentMethod = PaymentMethod.STRIPE_CARD
    source: OrderSource = OrderSource.ONLINE


@dataclass
class PlaceOrderResult:
    """Result of placing an order.

    ``payment_error`` is set when the order was created but the payment
    session could not be; the order stays pending and can be paid later.
    """

    order: Order | None = None
    payment_session: PaymentSession | None = None
    success: bool = True
    error: str | None = None
    error_code: str | None = None
    errors: list[str] = field(default_factory=list)
    payment_error: str | None = None


def build_order_input(cart: Cart, details: CheckoutDetails) -> CreateOrderInput:
    """Derive order creation input from a cart and the checkout form.

    Digital-only carts without a shipping choice get shipping method NONE.

    Args:
        cart: Cart being checked out.
        details: Checkout form data.

    Returns:
        CreateOrderInput ready for validation.
    """
    if cart.shipping_method is not None:
        shipping_method: ShippingMethodType | None = cart.shipping_method.type
    elif is_digital_only_cart(cart):
        shipping_method = ShippingMethodType.NONE
    else:
        shipping_method = None

    return CreateOrderInput(
        salon_id=details.salon_id,
        customer_email=details.customer_email,
        items=cart_to_order_items(cart),
        customer_id=details.customer_id,
        customer_name=details.customer_name,
        customer_phone=details.customer_phone,
        customer_notes=details.customer_notes,
        shipping_method=shipping_method,
        shipping_address=details.shipping_address,
        payment_method=details.payment_method,
        source=details.source,
    )


def payment_line_items(order: Order) -> list[PaymentLineItem]:
    """Lines for the hosted payment page; they add up to the order total.

    Discounted lines are sent as a single unit carrying the line total.
    """
    lines: list[PaymentLineItem] = []
    for item in order.items:
        if item.discount_cents:
            lines.append(PaymentLineItem(f"{item.quantity}x {item.item_name}", 1, item.total_cents))
        else:
            lines.append(PaymentLineItem(item.item_name, item.quantity, item.unit_price_cents))
    if order.shipping_cents:
        lines.append(PaymentLineItem("Versand", 1, order.shipping_cents))
    return lines


def needs_payment_session(order: Order) -> bool:
    """Only orders with something to pay online go to the payment provider."""
    if order.payment_method == PaymentMethod.PAY_AT_VENUE:
        return False
    return order.total_cents > 0 and validate_order_for_payment(order).valid


# ============================================================================
# Checkout Service
# ============================================================================


class CheckoutService:
    """Application service for placing orders."""

    def __init__(
        self,
        order_repo: OrderRepository,
        payment_provider: PaymentSessionProvider | None = None,
        notifier: NotificationSender | None = None,
        config: Settings = settings,
        request_id: str | None = None,
    ) -> None:
        """Initialize service.

        Args:
            order_repo: Order repository.
            payment_provider: Payment session provider; without one no
                payment sessions are created.
            notifier: Notification sender.
            config: Application settings.
            request_id: Request ID for correlation.
        """
        self.order_repo = order_repo
        self.payment_provider = payment_provider
        self.notifier = notifier
        self.config = config
        self.request_id = request_id

    async def place_order(self, cart: Cart, details: CheckoutDetails) -> PlaceOrderResult:
        """Place an order for a cart.

        Validation problems are returned as ``VALIDATION_FAILED`` with the
        user-facing messages. Payment and notification failures are logged
        and never undo the created order.

        Args:
            cart: Cart being checked out.
            details: Checkout form data.

        Returns:
            PlaceOrderResult with the order and, if created, the payment session.
        """
        if is_cart_expired(cart):
            return PlaceOrderResult(
                success=False,
                error=f"Cart expired: {cart.id}",
                error_code="CART_EXPIRED",
            )

        cart_validation = is_cart_valid_for_checkout(cart)
        if not cart_validation.valid:
            return self._validation_failed(cart.id, list(cart_validation.errors))

        order_input = build_order_input(cart, details)
        order_validation = validate_order_input(order_input)
        if not order_validation.valid:
            return self._validation_failed(cart.id, list(order_validation.errors))

        try:
            order_number = await self.order_repo.next_order_number(
                self.config.order_number_prefix, utcnow().year
            )
            order = create_order(order_input, order_number)
            await self.order_repo.add(order)
            await self.order_repo.add_status_change(
                StatusChange(
                    order_id=order.id,
                    from_status=None,
                    to_status=order.status,
                    reason="Order placed",
                    actor="customer",
                    details={"cart_id": cart.id},
                )
            )
        except Exception as e:
            logger.error(
                "Failed to create order",
                cart_id=cart.id,
                salon_id=details.salon_id,
                error=str(e),
                request_id=self.request_id,
            )
            return PlaceOrderResult(success=False, error=str(e), error_code="CREATE_FAILED")

        logger.info(
            "Order placed",
            order_id=order.id,
            order_number=order.order_number,
            salon_id=order.salon_id,
            status=order.status.value,
            total_cents=order.total_cents,
            cart_id=cart.id,
            request_id=self.request_id,
        )

        result = PlaceOrderResult(order=order)
        if self.payment_provider is not None and needs_payment_session(order):
            result = await self._start_payment(self.payment_provider, order)

        await self._notify_created(result.order or order)
        return result

    async def _start_payment(
        self,
        provider: PaymentSessionProvider,
        order: Order,
    ) -> PlaceOrderResult:
        """Create the payment session and remember its ID on the order."""
        try:
            session = await provider.create_session(
                order_id=order.id,
                line_items=payment_line_items(order),
                success_url=self.config.checkout_success_url,
                cancel_url=self.config.checkout_cancel_url,
            )
        except Exception as e:
            logger.error(
                "Failed to create payment session",
                order_id=order.id,
                error=str(e),
                request_id=self.request_id,
            )
            return PlaceOrderResult(order=order, payment_error=str(e))

        updated = await self.order_repo.update_if_unchanged(
            replace(order, payment_session_id=session.session_id, updated_at=utcnow()),
            order.status,
        )
        if updated is None:
            # Order changed meanwhile; the session is still valid for the caller
            return PlaceOrderResult(order=order, payment_session=session)

        logger.info(
            "Payment session created",
            order_id=order.id,
            session_id=session.session_id,
            request_id=self.request_id,
        )
        return PlaceOrderResult(order=updated, payment_session=session)

    async def _notify_created(self, order: Order) -> None:
        if self.notifier is None:
            return
        try:
            await self.notifier.order_created(order)
        except Exception as e:
            logger.error(
                "Order confirmation failed",
                order_id=order.id,
                error=str(e),
                request_id=self.request_id,
            )

    def _validation_failed(self, cart_id: str, errors: list[str]) -> PlaceOrderResult:
        logger.info(
            "Checkout validation failed",
            cart_id=cart_id,
            errors=errors,
            request_id=self.request_id,
        )
        return PlaceOrderResult(
            success=False,
            error="; ".join(errors),
            error_code="VALIDATION_FAILED",
            errors=errors,
        )
