"""Order application service.

Orchestrates the order lifecycle after checkout:
- Status transitions driven by staff
- Cancellation and full refunds
- Payment confirmation and tracking numbers
- Applying and removing vouchers

Every write is a conditional update keyed on the status and version the
change was computed from, so concurrent updates cannot both win.
"""

from dataclasses import dataclass, field

import structlog

from salonshop.application.ports import (
    NotificationSender,
    OrderRepository,
    StatusChange,
    VoucherValidator,
)
from salonshop.domain.exceptions import DomainError
from salonshop.domain.order import (
    ApplyVoucherInput,
    Order,
    OrderTransition,
    add_tracking_number,
    apply_voucher,
    can_cancel,
    can_refund,
    refund_order,
    remove_voucher,
    transition_order_status,
    update_payment_status,
)
from salonshop.domain.state_machines import OrderStatus, PaymentStatus

logger = structlog.get_logger()


# ============================================================================
# Service Result Types
# ============================================================================


@dataclass
class OrderResult:
    """Result of getting or updating an order."""

    order: Order | None = None
    success: bool = True
    error: str | None = None
    error_code: str | None = None
    errors: list[str] = field(default_factory=list)


@dataclass
class ListOrdersResult:
    """Result of listing orders."""

    orders: list[Order] = field(default_factory=list)
    total: int = 0
    page: int = 1
    page_size: int = 20
    success: bool = True
    error: str | None = None
    error_code: str | None = None


def _not_found(order_id: str) -> OrderResult:
    return OrderResult(
        success=False,
        error=f"Order not found: {order_id}",
        error_code="ORDER_NOT_FOUND",
    )


# ============================================================================
# Order Service
# ============================================================================


class OrderService:
    """Application service for managing placed orders."""

    def __init__(
        self,
        order_repo: OrderRepository,
        voucher_validator: VoucherValidator | None = None,
        notifier: NotificationSender | None = None,
        request_id: str | None = None,
    ) -> None:
        """Initialize service.

        Args:
            order_repo: Order repository.
            voucher_validator: Voucher lookup; required for voucher codes.
            notifier: Notification sender for status changes.
            request_id: Request ID for correlation.
        """
        self.order_repo = order_repo
        self.voucher_validator = voucher_validator
        self.notifier = notifier
        self.request_id = request_id

    # ------------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------------

    async def get_order(self, order_id: str) -> OrderResult:
        """Get an order by ID.

        Args:
            order_id: Order identifier.

        Returns:
            OrderResult with the order if found.
        """
        order = await self.order_repo.get(order_id)
        if order is None:
            return _not_found(order_id)
        return OrderResult(order=order)

    async def get_order_by_number(self, order_number: str) -> OrderResult:
        order = await self.order_repo.get_by_number(order_number)
        if order is None:
            return _not_found(order_number)
        return OrderResult(order=order)

    async def list_orders(
        self,
        salon_id: str,
        status: str | None = None,
        page: int = 1,
        page_size: int = 20,
    ) -> ListOrdersResult:
        """List a salon's orders with pagination and filtering.

        Args:
            salon_id: Tenant whose orders to list.
            status: Filter by status value.
            page: Page number (1-based).
            page_size: Items per page.

        Returns:
            ListOrdersResult with paginated orders.
        """
        try:
            status_enum = OrderStatus(status) if status else None
        except ValueError:
            return ListOrdersResult(
                success=False,
                error=f"Unknown order status: {status}",
                error_code="INVALID_STATUS",
            )

        orders, total = await self.order_repo.list_for_salon(
            salon_id,
            status=status_enum,
            limit=page_size,
            offset=(page - 1) * page_size,
        )
        return ListOrdersResult(orders=orders, total=total, page=page, page_size=page_size)

    async def list_customer_orders(
        self,
        salon_id: str,
        customer_id: str,
        status: str | None = None,
        page: int = 1,
        page_size: int = 20,
    ) -> ListOrdersResult:
        """List a signed-in customer's own orders, newest first.

        Args:
            salon_id: Tenant the customer shops at.
            customer_id: Customer whose orders to list.
            status: Filter by status value.
            page: Page number (1-based).
            page_size: Items per page.

        Returns:
            ListOrdersResult with paginated orders.
        """
        try:
            status_enum = OrderStatus(status) if status else None
        except ValueError:
            return ListOrdersResult(
                success=False,
                error=f"Unknown order status: {status}",
                error_code="INVALID_STATUS",
            )

        orders, total = await self.order_repo.list_for_customer(
            salon_id,
            customer_id,
            status=status_enum,
            limit=page_size,
            offset=(page - 1) * page_size,
        )
        return ListOrdersResult(orders=orders, total=total, page=page, page_size=page_size)

    # ------------------------------------------------------------------------
    # Status Changes
    # ------------------------------------------------------------------------

    async def update_status(
        self,
        order_id: str,
        new_status: str | OrderStatus,
        actor: str = "admin",
        reason: str | None = None,
    ) -> OrderResult:
        """Move an order to a new status.

        Args:
            order_id: Order identifier.
            new_status: Target status.
            actor: Who initiated the transition.
            reason: Reason for transition.

        Returns:
            OrderResult with the updated order.
        """
        try:
            target = OrderStatus(new_status)
        except ValueError:
            return OrderResult(
                success=False,
                error=f"Unknown order status: {new_status}",
                error_code="INVALID_STATUS",
            )

        order = await self.order_repo.get(order_id)
        if order is None:
            return _not_found(order_id)

        return await self._apply_transition(
            order, transition_order_status(order, target), actor, reason
        )

    async def cancel_order(
        self,
        order_id: str,
        actor: str = "admin",
        reason: str | None = None,
    ) -> OrderResult:
        """Cancel an order that has not left the salon yet.

        Payment is not refunded here; use ``refund_order`` for that.
        """
        order = await self.order_repo.get(order_id)
        if order is None:
            return _not_found(order_id)

        if not can_cancel(order):
            return OrderResult(
                order=order,
                success=False,
                error=f"Order {order.order_number} cannot be cancelled in status {order.status.value}",
                error_code="NOT_CANCELLABLE",
            )

        return await self._apply_transition(
            order, transition_order_status(order, OrderStatus.CANCELLED), actor, reason
        )

    async def add_tracking_number(
        self,
        order_id: str,
        tracking_number: str,
        actor: str = "admin",
    ) -> OrderResult:
        """Record a tracking number and mark the order shipped."""
        order = await self.order_repo.get(order_id)
        if order is None:
            return _not_found(order_id)

        return await self._apply_transition(
            order,
            add_tracking_number(order, tracking_number),
            actor,
            reason="Tracking number added",
            details={"tracking_number": tracking_number},
        )

    async def refund_order(
        self,
        order_id: str,
        actor: str = "admin",
        reason: str | None = None,
    ) -> OrderResult:
        """Fully refund an order whose payment succeeded.

        Args:
            order_id: Order identifier.
            actor: Who initiated the refund.
            reason: Reason for the refund.

        Returns:
            OrderResult with the refunded order.
        """
        order = await self.order_repo.get(order_id)
        if order is None:
            return _not_found(order_id)

        if not can_refund(order):
            return OrderResult(
                order=order,
                success=False,
                error=f"Order {order.order_number} cannot be refunded",
                error_code="NOT_REFUNDABLE",
            )

        try:
            refunded = refund_order(order)
        except DomainError as e:
            return OrderResult(order=order, success=False, error=e.message, error_code="NOT_REFUNDABLE")

        return await self._save_change(
            order,
            refunded,
            actor,
            reason,
            details={"refunded_amount_cents": refunded.refunded_amount_cents},
        )

    async def mark_paid(
        self,
        order_id: str,
        payment_session_id: str | None = None,
        actor: str = "payment_provider",
    ) -> OrderResult:
        """Record a successful payment.

        Pending orders move to PAID; repeating the call changes nothing.

        Args:
            order_id: Order identifier.
            payment_session_id: Session that was paid, if known.
            actor: Who reported the payment.

        Returns:
            OrderResult with the paid order.
        """
        order = await self.order_repo.get(order_id)
        if order is None:
            return _not_found(order_id)

        if order.payment_status == PaymentStatus.SUCCEEDED:
            return OrderResult(order=order)

        updated = update_payment_status(order, PaymentStatus.SUCCEEDED)
        if order.status == OrderStatus.PENDING:
            updated = transition_order_status(updated, OrderStatus.PAID).order

        details = {"payment_session_id": payment_session_id} if payment_session_id else None
        return await self._save_change(order, updated, actor, "Payment received", details)

    # ------------------------------------------------------------------------
    # Vouchers
    # ------------------------------------------------------------------------

    async def apply_voucher_code(self, order_id: str, code: str) -> OrderResult:
        """Validate a voucher code and apply it to an unpaid order.

        Args:
            order_id: Order identifier.
            code: Voucher code as entered by the customer.

        Returns:
            OrderResult with the discounted order.
        """
        if self.voucher_validator is None:
            return OrderResult(
                success=False,
                error="No voucher validator configured",
                error_code="VOUCHERS_UNAVAILABLE",
            )

        order = await self.order_repo.get(order_id)
        if order is None:
            return _not_found(order_id)

        if order.status != OrderStatus.PENDING or order.payment_status == PaymentStatus.SUCCEEDED:
            return OrderResult(
                order=order,
                success=False,
                error="Gutscheine können nur vor der Zahlung eingelöst werden",
                error_code="VOUCHER_NOT_ALLOWED",
            )

        check = await self.voucher_validator.validate(
            order.salon_id, code, order.total_cents + order.voucher_discount_cents
        )
        if not check.valid or check.voucher_id is None:
            reason = check.invalid_reason or "Ungültiger Gutscheincode"
            logger.info("Voucher rejected", order_id=order_id, reason=reason, request_id=self.request_id)
            return OrderResult(
                order=order,
                success=False,
                error=reason,
                error_code="INVALID_VOUCHER",
                errors=[reason],
            )

        updated = apply_voucher(
            order,
            ApplyVoucherInput(
                voucher_id=check.voucher_id,
                voucher_code=code,
                discount_cents=check.discount_cents,
            ),
        )
        return await self._save_change(order, updated, "customer", "Voucher applied")

    async def remove_voucher(self, order_id: str) -> OrderResult:
        order = await self.order_repo.get(order_id)
        if order is None:
            return _not_found(order_id)
        return await self._save_change(order, remove_voucher(order), "customer", "Voucher removed")

    # ------------------------------------------------------------------------
    # Persistence helpers
    # ------------------------------------------------------------------------

    async def _apply_transition(
        self,
        order: Order,
        transition: OrderTransition,
        actor: str,
        reason: str | None = None,
        details: dict | None = None,
    ) -> OrderResult:
        if not transition.success:
            error = transition.error
            logger.info(
                "Order transition rejected",
                order_id=order.id,
                from_status=order.status.value,
                to_status=error.target_state if error else None,
                request_id=self.request_id,
            )
            return OrderResult(
                order=order,
                success=False,
                error=error.message if error else "Invalid transition",
                error_code="INVALID_TRANSITION",
            )
        return await self._save_change(order, transition.order, actor, reason, details)

    async def _save_change(
        self,
        original: Order,
        updated: Order,
        actor: str,
        reason: str | None = None,
        details: dict | None = None,
    ) -> OrderResult:
        """Persist an order change computed from ``original``.

        Args:
            original: Order as loaded.
            updated: Order after the domain operation.
            actor: Who initiated the change.
            reason: Reason recorded in the status history.
            details: Extra data for the status history.

        Returns:
            OrderResult with the saved order, or CONCURRENT_UPDATE.
        """
        if updated == original:
            return OrderResult(order=original)

        saved = await self.order_repo.update_if_unchanged(updated, original.status)
        if saved is None:
            return OrderResult(
                order=original,
                success=False,
                error=f"Order {original.order_number} was changed concurrently",
                error_code="CONCURRENT_UPDATE",
            )

        if saved.status != original.status:
            await self.order_repo.add_status_change(
                StatusChange(
                    order_id=saved.id,
                    from_status=original.status,
                    to_status=saved.status,
                    reason=reason,
                    actor=actor,
                    details=details or {},
                )
            )
            logger.info(
                "Order status transitioned",
                order_id=saved.id,
                from_status=original.status.value,
                to_status=saved.status.value,
                actor=actor,
                request_id=self.request_id,
            )
            await self._notify_status_changed(saved, original.status)
        else:
            logger.info(
                "Order saved",
                order_id=saved.id,
                reason=reason,
                actor=actor,
                total_cents=saved.total_cents,
                request_id=self.request_id,
            )

        return OrderResult(order=saved)

    async def _notify_status_changed(self, order: Order, from_status: OrderStatus) -> None:
        if self.notifier is None:
            return
        try:
            await self.notifier.order_status_changed(order, from_status)
        except Exception as e:
            logger.error(
                "Status notification failed",
                order_id=order.id,
                error=str(e),
                request_id=self.request_id,
            )
