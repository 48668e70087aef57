"""State machines for orders and payments.

The order status machine is deterministic and table-driven. Business
callers ask ``is_valid_status_transition`` or apply a change through
``salonshop.domain.order.transition_order_status``; unknown status values
are programming errors and fail loudly with ``ValueError``.
"""

from enum import Enum

from salonshop.domain.exceptions import InvalidStateTransitionError


# ============================================================================
# Order State Machine
# ============================================================================


class OrderStatus(str, Enum):
    """Order lifecycle states.

    State diagram:
        PENDING ──► PAID ──► PROCESSING ──► SHIPPED ──► DELIVERED ──► COMPLETED
          │          │           │
          │ cancel   │ cancel    │ cancel
          ▼          ▼           ▼
        CANCELLED

        PAID, PROCESSING, SHIPPED, DELIVERED, COMPLETED ── refund ──► REFUNDED

    Any state may advance to any state later on the happy path, so
    skipping a step (e.g. PAID -> SHIPPED) is allowed; moving backward
    never is. CANCELLED and REFUNDED have no outbound transitions and
    COMPLETED can only be refunded.
    """

    PENDING = "pending"
    PAID = "paid"
    PROCESSING = "processing"
    SHIPPED = "shipped"
    DELIVERED = "delivered"
    COMPLETED = "completed"
    CANCELLED = "cancelled"
    REFUNDED = "refunded"

    def can_transition_to(self, target: "OrderStatus") -> bool:
        """Check if transition to target state is valid.

        Re-applying the current state is always valid.

        Args:
            target: Target state to transition to.

        Returns:
            True if transition is valid.
        """
        if self == target:
            return True
        return target in _ORDER_TRANSITIONS[self]

    def allowed_transitions(self) -> list["OrderStatus"]:
        """Get list of valid target states, in lifecycle order.

        Returns:
            List of states that can be transitioned to.
        """
        return [s for s in OrderStatus if s in _ORDER_TRANSITIONS[self]]

    def is_cancellable(self) -> bool:
        """Check if order can be cancelled.

        Returns:
            True while nothing has left the salon yet.
        """
        return self in {OrderStatus.PENDING, OrderStatus.PAID, OrderStatus.PROCESSING}

    def is_terminal(self) -> bool:
        """Check if this is a terminal (final) state.

        Returns:
            True for completed, cancelled and refunded orders.
        """
        return self in {OrderStatus.COMPLETED, OrderStatus.CANCELLED, OrderStatus.REFUNDED}

    @property
    def label(self) -> str:
        """German display label."""
        return _ORDER_STATUS_TEXTS[self]


_HAPPY_PATH: tuple[OrderStatus, ...] = (
    OrderStatus.PENDING,
    OrderStatus.PAID,
    OrderStatus.PROCESSING,
    OrderStatus.SHIPPED,
    OrderStatus.DELIVERED,
    OrderStatus.COMPLETED,
)

# Refunds require a captured payment, so PENDING is excluded.
_REFUNDABLE_FROM = frozenset(
    {
        OrderStatus.PAID,
        OrderStatus.PROCESSING,
        OrderStatus.SHIPPED,
        OrderStatus.DELIVERED,
        OrderStatus.COMPLETED,
    }
)


def _build_order_transitions() -> dict[OrderStatus, frozenset[OrderStatus]]:
    table: dict[OrderStatus, set[OrderStatus]] = {status: set() for status in OrderStatus}
    for index, status in enumerate(_HAPPY_PATH):
        table[status].update(_HAPPY_PATH[index + 1 :])
        if status.is_cancellable():
            table[status].add(OrderStatus.CANCELLED)
        if status in _REFUNDABLE_FROM:
            table[status].add(OrderStatus.REFUNDED)
    return {status: frozenset(targets) for status, targets in table.items()}


# Order state transitions (defined outside enum to avoid Enum restrictions)
_ORDER_TRANSITIONS: dict[OrderStatus, frozenset[OrderStatus]] = _build_order_transitions()

_ORDER_STATUS_TEXTS: dict[OrderStatus, str] = {
    OrderStatus.PENDING: "Ausstehend",
    OrderStatus.PAID: "Bezahlt",
    OrderStatus.PROCESSING: "In Bearbeitung",
    OrderStatus.SHIPPED: "Versendet",
    OrderStatus.DELIVERED: "Zugestellt",
    OrderStatus.COMPLETED: "Abgeschlossen",
    OrderStatus.CANCELLED: "Storniert",
    OrderStatus.REFUNDED: "Erstattet",
}


# ============================================================================
# Payment
# ============================================================================


class PaymentStatus(str, Enum):
    """Payment lifecycle as reported by the payment provider."""

    PENDING = "pending"
    PROCESSING = "processing"
    SUCCEEDED = "succeeded"
    FAILED = "failed"
    REFUNDED = "refunded"
    PARTIALLY_REFUNDED = "partially_refunded"

    @property
    def label(self) -> str:
        """German display label."""
        return _PAYMENT_STATUS_TEXTS[self]


_PAYMENT_STATUS_TEXTS: dict[PaymentStatus, str] = {
    PaymentStatus.PENDING: "Ausstehend",
    PaymentStatus.PROCESSING: "Wird verarbeitet",
    PaymentStatus.SUCCEEDED: "Erfolgreich",
    PaymentStatus.FAILED: "Fehlgeschlagen",
    PaymentStatus.REFUNDED: "Erstattet",
    PaymentStatus.PARTIALLY_REFUNDED: "Teilweise erstattet",
}


class PaymentMethod(str, Enum):
    """How the customer pays."""

    STRIPE_CARD = "stripe_card"
    STRIPE_TWINT = "stripe_twint"
    CASH = "cash"
    TERMINAL = "terminal"
    VOUCHER = "voucher"
    PAY_AT_VENUE = "pay_at_venue"

    def is_online(self) -> bool:
        """Check if payment runs through a hosted payment session.

        Returns:
            True for card and TWINT payments.
        """
        return self in {PaymentMethod.STRIPE_CARD, PaymentMethod.STRIPE_TWINT}


# ============================================================================
# State Machine Helpers
# ============================================================================


def coerce_order_status(value: OrderStatus | str) -> OrderStatus:
    """Turn a raw value into an OrderStatus.

    Raises:
        ValueError: If the value is not a known status.
    """
    return OrderStatus(value)


def is_valid_status_transition(
    current_status: OrderStatus | str,
    new_status: OrderStatus | str,
) -> bool:
    """Check a status change against the transition table.

    Args:
        current_status: Status the order is in.
        new_status: Requested status.

    Returns:
        True if the transition is allowed.

    Raises:
        ValueError: If either status is not a known OrderStatus value.
    """
    return coerce_order_status(current_status).can_transition_to(coerce_order_status(new_status))


def order_transition_error(
    order_id: str,
    current_status: OrderStatus,
    target_status: OrderStatus,
) -> InvalidStateTransitionError | None:
    """Build the error describing a forbidden order transition.

    Args:
        order_id: Order identifier for error message.
        current_status: Current order status.
        target_status: Target order status.

    Returns:
        InvalidStateTransitionError if the transition is not valid, else None.
    """
    if current_status.can_transition_to(target_status):
        return None
    return InvalidStateTransitionError(
        entity_type="Order",
        entity_id=order_id,
        current_state=current_status.value,
        target_state=target_status.value,
        allowed_transitions=[s.value for s in current_status.allowed_transitions()],
    )


def get_status_text(status: OrderStatus | str) -> str:
    """German label for an order status."""
    return coerce_order_status(status).label


def get_payment_status_text(status: PaymentStatus | str) -> str:
    """German label for a payment status."""
    return PaymentStatus(status).label
