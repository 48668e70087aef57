"""Salonshop application wiring.

Configures logging and the database on startup and builds the
application services with their production collaborators.
"""

import structlog
from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, async_sessionmaker

from salonshop import __version__
from salonshop.application.checkout_service import CheckoutService
from salonshop.application.order_service import OrderService
from salonshop.application.ports import PaymentSessionProvider, VoucherValidator
from salonshop.infrastructure.config import Settings, settings
from salonshop.infrastructure.database import async_session_factory, engine, init_db
from salonshop.infrastructure.logging import configure_logging
from salonshop.infrastructure.notifications import LoggingNotificationSender
from salonshop.infrastructure.order_repository import SqlAlchemyOrderRepository

logger = structlog.get_logger()


async def startup(config: Settings = settings, bind: AsyncEngine = engine) -> None:
    """Prepare the process for serving requests.

    Args:
        config: Application settings.
        bind: Engine whose schema is created.
    """
    configure_logging(config)
    await init_db(bind)
    logger.info(
        "Starting salonshop",
        version=__version__,
        debug=config.debug,
        order_number_prefix=config.order_number_prefix,
    )


# ============================================================================
# Service Factories
# ============================================================================


def get_checkout_service(
    request_id: str | None = None,
    payment_provider: PaymentSessionProvider | None = None,
    session_factory: async_sessionmaker[AsyncSession] = async_session_factory,
    config: Settings = settings,
) -> CheckoutService:
    """Get checkout service instance.

    Args:
        request_id: Request ID for correlation.
        payment_provider: Payment session provider, if online payment is enabled.
        session_factory: Factory for database sessions.
        config: Application settings.

    Returns:
        CheckoutService instance.
    """
    return CheckoutService(
        SqlAlchemyOrderRepository(session_factory),
        payment_provider=payment_provider,
        notifier=LoggingNotificationSender(),
        config=config,
        request_id=request_id,
    )


def get_order_service(
    request_id: str | None = None,
    voucher_validator: VoucherValidator | None = None,
    session_factory: async_sessionmaker[AsyncSession] = async_session_factory,
) -> OrderService:
    """Get order service instance.

    Args:
        request_id: Request ID for correlation.
        voucher_validator: Voucher lookup, if vouchers are enabled.
        session_factory: Factory for database sessions.

    Returns:
        OrderService instance.
    """
    return OrderService(
        SqlAlchemyOrderRepository(session_factory),
        voucher_validator=voucher_validator,
        notifier=LoggingNotificationSender(),
        request_id=request_id,
    )
