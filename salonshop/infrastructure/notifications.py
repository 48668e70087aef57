"""Notification sender that only writes log events.

Stands in for email/SMS/push delivery in development and tests.
"""

import structlog

from salonshop.domain.money import format_price
from salonshop.domain.order import Order
from salonshop.domain.state_machines import OrderStatus

logger = structlog.get_logger()


class LoggingNotificationSender:
    """Logs each notification instead of delivering it."""

    async def order_created(self, order: Order) -> None:
        logger.info(
            "Notification: order confirmation",
            order_id=order.id,
            order_number=order.order_number,
            recipient=order.customer_email,
            total=format_price(order.total_cents),
        )

    async def order_status_changed(self, order: Order, from_status: OrderStatus) -> None:
        logger.info(
            "Notification: order status changed",
            order_id=order.id,
            order_number=order.order_number,
            recipient=order.customer_email,
            from_status=from_status.value,
            to_status=order.status.value,
            status_text=order.status.label,
        )
