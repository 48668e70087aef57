"""SQLAlchemy implementation of the order repository.

Every method runs in its own session and commits before returning.
"""

from dataclasses import replace

from sqlalchemy import func, select, update
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker
import structlog

from salonshop.application.ports import StatusChange
from salonshop.domain.order import (
    Order,
    format_order_number,
    generate_order_number_prefix,
    parse_order_sequence,
)
from salonshop.domain.state_machines import OrderStatus
from salonshop.infrastructure.database import async_session_factory
from salonshop.infrastructure.mappers import (
    order_from_model,
    order_header_values,
    order_to_model,
)
from salonshop.infrastructure.models import OrderModel, OrderStatusHistoryModel

logger = structlog.get_logger()


class SqlAlchemyOrderRepository:
    """Order repository backed by the ``orders`` tables."""

    def __init__(
        self,
        session_factory: async_sessionmaker[AsyncSession] = async_session_factory,
    ) -> None:
        """Initialize repository.

        Args:
            session_factory: Factory for database sessions.
        """
        self.session_factory = session_factory

    async def get(self, order_id: str) -> Order | None:
        async with self.session_factory() as session:
            row = await session.get(OrderModel, order_id)
            return order_from_model(row) if row else None

    async def get_by_number(self, order_number: str) -> Order | None:
        async with self.session_factory() as session:
            result = await session.execute(
                select(OrderModel).where(OrderModel.order_number == order_number)
            )
            row = result.scalar_one_or_none()
            return order_from_model(row) if row else None

    async def add(self, order: Order) -> None:
        """Insert a new order with its items.

        Args:
            order: Order to persist.
        """
        async with self.session_factory() as session:
            session.add(order_to_model(order))
            await session.commit()

        logger.debug("Order inserted", order_id=order.id, order_number=order.order_number)

    async def update_if_unchanged(
        self, order: Order, expected_status: OrderStatus
    ) -> Order | None:
        """Write the order header if nobody else wrote it since it was loaded.

        The stored row must still carry ``expected_status`` and the
        ``version`` of ``order``; the write bumps the version. Items are
        immutable and never rewritten.

        Args:
            order: Updated order, carrying the version it was loaded with.
            expected_status: Status the update was computed from.

        Returns:
            The order as stored, with its new version, or None if another
            writer got there first.
        """
        saved = replace(order, version=order.version + 1)
        stmt = (
            update(OrderModel)
            .where(
                OrderModel.id == order.id,
                OrderModel.status == expected_status.value,
                OrderModel.version == order.version,
            )
            .values(**order_header_values(saved))
            .execution_options(synchronize_session=False)
        )
        async with self.session_factory() as session:
            result = await session.execute(stmt)
            await session.commit()

        if result.rowcount != 1:
            logger.warning(
                "Conditional order update lost",
                order_id=order.id,
                expected_status=expected_status.value,
                expected_version=order.version,
            )
            return None
        return saved

    async def next_order_number(self, prefix: str, year: int) -> str:
        """Allocate the next order number for the year, e.g. ``SW-2026-00042``."""
        year_prefix = generate_order_number_prefix(prefix, year)
        async with self.session_factory() as session:
            result = await session.execute(
                select(func.max(OrderModel.order_number)).where(
                    OrderModel.order_number.like(f"{year_prefix}%")
                )
            )
            latest = result.scalar_one_or_none()

        sequence = (parse_order_sequence(latest) or 0) if latest else 0
        return format_order_number(prefix, year, sequence + 1)

    async def list_for_salon(
        self,
        salon_id: str,
        status: OrderStatus | None = None,
        limit: int = 50,
        offset: int = 0,
    ) -> tuple[list[Order], int]:
        """List a salon's orders, newest first.

        Args:
            salon_id: Tenant whose orders to list.
            status: Filter by status.
            limit: Page size.
            offset: Rows to skip.

        Returns:
            Tuple of (orders, total matching count).
        """
        conditions = [OrderModel.salon_id == salon_id]
        if status is not None:
            conditions.append(OrderModel.status == status.value)
        return await self._list(conditions, limit, offset)

    async def list_for_customer(
        self,
        salon_id: str,
        customer_id: str,
        status: OrderStatus | None = None,
        limit: int = 50,
        offset: int = 0,
    ) -> tuple[list[Order], int]:
        """List one customer's orders at a salon, newest first.

        Guest orders without a customer ID never match.

        Returns:
            Tuple of (orders, total matching count).
        """
        conditions = [OrderModel.salon_id == salon_id, OrderModel.customer_id == customer_id]
        if status is not None:
            conditions.append(OrderModel.status == status.value)
        return await self._list(conditions, limit, offset)

    async def _list(self, conditions: list, limit: int, offset: int) -> tuple[list[Order], int]:
        async with self.session_factory() as session:
            total = await session.scalar(
                select(func.count()).select_from(OrderModel).where(*conditions)
            )
            result = await session.execute(
                select(OrderModel)
                .where(*conditions)
                .order_by(OrderModel.created_at.desc(), OrderModel.order_number.desc())
                .limit(limit)
                .offset(offset)
            )
            orders = [order_from_model(row) for row in result.scalars().all()]

        return orders, total or 0

    async def add_status_change(self, change: StatusChange) -> None:
        async with self.session_factory() as session:
            session.add(
                OrderStatusHistoryModel(
                    order_id=change.order_id,
                    from_status=change.from_status.value if change.from_status else None,
                    to_status=change.to_status.value,
                    reason=change.reason,
                    actor=change.actor,
                    details=change.details or None,
                )
            )
            await session.commit()

    async def list_status_changes(self, order_id: str) -> list[StatusChange]:
        async with self.session_factory() as session:
            result = await session.execute(
                select(OrderStatusHistoryModel)
                .where(OrderStatusHistoryModel.order_id == order_id)
                .order_by(OrderStatusHistoryModel.created_at)
            )
            rows = result.scalars().all()

        return [
            StatusChange(
                order_id=row.order_id,
                from_status=OrderStatus(row.from_status) if row.from_status else None,
                to_status=OrderStatus(row.to_status),
                reason=row.reason,
                actor=row.actor,
                details=row.details or {},
            )
            for row in rows
        ]
