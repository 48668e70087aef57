"""Ports for the collaborators the order engine talks to.

Implementations live in ``salonshop.infrastructure`` (or in tests). The
pure domain never calls these; application services do.
"""

from dataclasses import dataclass, field
from typing import Any, Protocol

from salonshop.domain.order import Order
from salonshop.domain.state_machines import OrderStatus


# ============================================================================
# Collaborator Data Types
# ============================================================================


@dataclass(frozen=True)
class PaymentLineItem:
    """A line shown on the hosted payment page."""

    name: str
    quantity: int
    unit_amount_cents: int


@dataclass(frozen=True)
class PaymentSession:
    """A created payment session."""

    session_id: str
    checkout_url: str


@dataclass(frozen=True)
class VoucherCheck:
    """Outcome of a voucher lookup.

    Attributes:
        valid: Whether the code can be redeemed.
        voucher_id: Voucher identifier when valid.
        discount_cents: Amount available for this order.
        invalid_reason: User-facing reason when not valid.
    """

    valid: bool
    voucher_id: str | None = None
    discount_cents: int = 0
    invalid_reason: str | None = None


@dataclass(frozen=True)
class StatusChange:
    """Entry of an order's status history."""

    order_id: str
    from_status: OrderStatus | None
    to_status: OrderStatus
    reason: str | None = None
    actor: str | None = None
    details: dict[str, Any] = field(default_factory=dict)


# ============================================================================
# Protocols
# ============================================================================


class OrderRepository(Protocol):
    """Persistence for orders.

    ``update_if_unchanged`` is the only write path for existing orders; it
    must apply the change only when the stored status still equals
    ``expected_status`` and the stored version still equals the order's,
    so that exactly one of several writers working from the same copy wins.
    """

    async def get(self, order_id: str) -> Order | None:
        ...

    async def get_by_number(self, order_number: str) -> Order | None:
        ...

    async def add(self, order: Order) -> None:
        ...

    async def update_if_unchanged(
        self, order: Order, expected_status: OrderStatus
    ) -> Order | None:
        """Replace the stored header; returns None if the row changed meanwhile."""
        ...

    async def next_order_number(self, prefix: str, year: int) -> str:
        ...

    async def list_for_salon(
        self,
        salon_id: str,
        status: OrderStatus | None = None,
        limit: int = 50,
        offset: int = 0,
    ) -> tuple[list[Order], int]:
        ...

    async def list_for_customer(
        self,
        salon_id: str,
        customer_id: str,
        status: OrderStatus | None = None,
        limit: int = 50,
        offset: int = 0,
    ) -> tuple[list[Order], int]:
        ...

    async def add_status_change(self, change: StatusChange) -> None:
        ...

    async def list_status_changes(self, order_id: str) -> list[StatusChange]:
        ...


class PaymentSessionProvider(Protocol):
    """Creates hosted payment sessions."""

    async def create_session(
        self,
        order_id: str,
        line_items: list[PaymentLineItem],
        success_url: str,
        cancel_url: str,
    ) -> PaymentSession:
        ...


class VoucherValidator(Protocol):
    """Looks up voucher codes; the order engine only applies the result."""

    async def validate(self, salon_id: str, code: str, order_total_cents: int) -> VoucherCheck:
        ...


class NotificationSender(Protocol):
    """Fire-and-forget order notifications (email, SMS, push)."""

    async def order_created(self, order: Order) -> None:
        ...

    async def order_status_changed(self, order: Order, from_status: OrderStatus) -> None:
        ...
