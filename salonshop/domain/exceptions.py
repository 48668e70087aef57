"""Domain exceptions.

Business-rule failures of the cart and order engines are returned as
values (see ``ValidationResult`` and ``OrderTransition``). The exceptions
here are raised for precondition violations and programming errors, and
carry the error objects that result values reference.
"""

from typing import Any


class DomainError(Exception):
    """Base class for all domain exceptions.

    All domain errors inherit from this class to allow catching
    domain-specific errors at the application layer.
    """

    def __init__(self, message: str, details: dict[str, Any] | None = None) -> None:
        """Initialize domain error.

        Args:
            message: Human-readable error message.
            details: Optional dictionary with additional error context.
        """
        super().__init__(message)
        self.message = message
        self.details = details or {}


# ============================================================================
# Validation Errors
# ============================================================================


class ValidationError(DomainError):
    """Raised when input that should have been validated is still invalid.

    Carries the full list of messages so callers can surface them.
    """

    def __init__(self, errors: list[str] | tuple[str, ...], entity_type: str = "Input") -> None:
        """Initialize validation error.

        Args:
            errors: Human-readable validation messages.
            entity_type: What was being validated.
        """
        self.errors = tuple(errors)
        super().__init__(
            f"Invalid {entity_type}: {'; '.join(self.errors)}",
            details={"entity_type": entity_type, "errors": list(self.errors)},
        )


class OrderValidationError(ValidationError):
    """Raised when an order is created from input that fails validation."""

    def __init__(self, errors: list[str] | tuple[str, ...]) -> None:
        super().__init__(errors, entity_type="Order")


# ============================================================================
# State Machine Errors
# ============================================================================


class InvalidStateTransitionError(DomainError):
    """Describes a state change that the state table does not permit.

    Distinct from validation errors: it points at a stale client or a
    race between concurrent updates, not at bad input.
    """

    def __init__(
        self,
        entity_type: str,
        entity_id: str,
        current_state: str,
        target_state: str,
        allowed_transitions: list[str] | None = None,
    ) -> None:
        """Initialize invalid state transition error.

        Args:
            entity_type: Type of entity (e.g., "Order").
            entity_id: ID of the entity.
            current_state: Current state of the entity.
            target_state: Attempted target state.
            allowed_transitions: List of allowed target states from current state.
        """
        allowed = allowed_transitions or []
        message = (
            f"Cannot transition {entity_type}({entity_id}) "
            f"from '{current_state}' to '{target_state}'. "
            f"Allowed transitions: {allowed}"
        )
        super().__init__(
            message,
            details={
                "entity_type": entity_type,
                "entity_id": entity_id,
                "current_state": current_state,
                "target_state": target_state,
                "allowed_transitions": allowed,
            },
        )
        self.current_state = current_state
        self.target_state = target_state


# ============================================================================
# Cart Errors
# ============================================================================


class CartError(DomainError):
    """Base class for cart-related errors."""

    pass


class InvalidQuantityError(CartError):
    """Raised when an invalid quantity is provided."""

    def __init__(self, quantity: int, reason: str = "Quantity must be positive") -> None:
        """Initialize invalid quantity error.

        Args:
            quantity: The invalid quantity value.
            reason: Explanation of why the quantity is invalid.
        """
        super().__init__(
            f"Invalid quantity {quantity}: {reason}",
            details={"quantity": quantity, "reason": reason},
        )


class CartExpiredError(CartError):
    """Raised when a stale cart is used after its expiry."""

    def __init__(self, cart_id: str, expires_at: str) -> None:
        super().__init__(
            f"Cart {cart_id} expired at {expires_at}",
            details={"cart_id": cart_id, "expires_at": expires_at},
        )


# ============================================================================
# Order Errors
# ============================================================================


class OrderError(DomainError):
    """Base class for order-related errors."""

    pass


class OrderNotRefundableError(OrderError):
    """Raised when a refund is requested for an order that cannot be refunded."""

    def __init__(self, order_id: str, status: str, payment_status: str) -> None:
        """Initialize order not refundable error.

        Args:
            order_id: ID of the order.
            status: Current order status.
            payment_status: Current payment status.
        """
        super().__init__(
            f"Order {order_id} cannot be refunded "
            f"(status '{status}', payment '{payment_status}')",
            details={
                "order_id": order_id,
                "status": status,
                "payment_status": payment_status,
            },
        )


# ============================================================================
# Money Errors
# ============================================================================


class MoneyError(DomainError):
    """Base class for money-related errors."""

    pass


class NegativeMoneyError(MoneyError):
    """Raised when a negative amount is passed where cents must be >= 0."""

    def __init__(self, amount: int, field_name: str = "amount") -> None:
        """Initialize negative money error.

        Args:
            amount: The negative amount in cents.
            field_name: Name of the offending field.
        """
        super().__init__(
            f"Money amount cannot be negative: {field_name}={amount}",
            details={"amount": amount, "field": field_name},
        )


class InvalidRateError(MoneyError):
    """Raised when a tax rate or percentage is out of its representation range."""

    def __init__(self, value: object, expected: str) -> None:
        super().__init__(
            f"Invalid rate {value!r}: expected {expected}",
            details={"value": str(value), "expected": expected},
        )


class ArithmeticInvariantViolation(MoneyError):
    """A computed amount broke an arithmetic invariant.

    Never raised when the pricing algorithms are followed; seeing it
    means there is a bug, not a business condition.
    """

    def __init__(self, name: str, value: int) -> None:
        super().__init__(
            f"Arithmetic invariant violated: {name}={value}",
            details={"name": name, "value": value},
        )
