"""Shared fixtures for salonshop tests."""

from collections.abc import AsyncGenerator

import pytest
from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import StaticPool

from salonshop.application.cart_service import reset_cart_store
from salonshop.application.ports import PaymentLineItem, PaymentSession, VoucherCheck
from salonshop.domain.order import Order
from salonshop.domain.state_machines import OrderStatus
from salonshop.domain.value_objects import ShippingAddress
from salonshop.infrastructure.database import init_db
from salonshop.infrastructure.order_repository import SqlAlchemyOrderRepository


# ============================================================================
# Database
# ============================================================================


@pytest.fixture
async def engine() -> AsyncGenerator[AsyncEngine, None]:
    """In-memory SQLite engine with the schema created."""
    engine = create_async_engine(
        "sqlite+aiosqlite:///:memory:",
        poolclass=StaticPool,
        connect_args={"check_same_thread": False},
    )
    await init_db(engine)
    yield engine
    await engine.dispose()


@pytest.fixture
def session_factory(engine: AsyncEngine) -> async_sessionmaker[AsyncSession]:
    return async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)


@pytest.fixture
def order_repo(session_factory: async_sessionmaker[AsyncSession]) -> SqlAlchemyOrderRepository:
    return SqlAlchemyOrderRepository(session_factory)


@pytest.fixture(autouse=True)
def reset_carts() -> None:
    """Reset cart store before each test."""
    reset_cart_store()


# ============================================================================
# Sample Data
# ============================================================================


@pytest.fixture
def address() -> ShippingAddress:
    return ShippingAddress(
        name="Anna Muster",
        street="Bahnhofstrasse 1",
        zip="8001",
        city="Zürich",
    )


# ============================================================================
# Fake Collaborators
# ============================================================================


class FakePaymentProvider:
    """Records payment session requests."""

    def __init__(self, fail: bool = False) -> None:
        self.fail = fail
        self.calls: list[dict] = []

    async def create_session(
        self,
        order_id: str,
        line_items: list[PaymentLineItem],
        success_url: str,
        cancel_url: str,
    ) -> PaymentSession:
        self.calls.append(
            {
                "order_id": order_id,
                "line_items": line_items,
                "success_url": success_url,
                "cancel_url": cancel_url,
            }
        )
        if self.fail:
            raise RuntimeError("payment provider unavailable")
        return PaymentSession(
            session_id=f"cs_test_{len(self.calls)}",
            checkout_url=f"https://pay.example.com/{order_id}",
        )


class FakeVoucherValidator:
    """Validates codes against a fixed table of voucher balances."""

    def __init__(self, balances: dict[str, int]) -> None:
        self.balances = balances

    async def validate(self, salon_id: str, code: str, order_total_cents: int) -> VoucherCheck:
        if code not in self.balances:
            return VoucherCheck(valid=False, invalid_reason="Gutschein nicht gefunden")
        return VoucherCheck(
            valid=True,
            voucher_id=f"voucher-{code}",
            discount_cents=min(self.balances[code], order_total_cents),
        )


class RecordingNotifier:
    """Records notifications; optionally fails on every call."""

    def __init__(self, fail: bool = False) -> None:
        self.fail = fail
        self.created: list[Order] = []
        self.status_changes: list[tuple[OrderStatus, OrderStatus]] = []

    async def order_created(self, order: Order) -> None:
        if self.fail:
            raise RuntimeError("mail server down")
        self.created.append(order)

    async def order_status_changed(self, order: Order, from_status: OrderStatus) -> None:
        if self.fail:
            raise RuntimeError("mail server down")
        self.status_changes.append((from_status, order.status))


@pytest.fixture
def payment_provider() -> FakePaymentProvider:
    return FakePaymentProvider()


@pytest.fixture
def notifier() -> RecordingNotifier:
    return RecordingNotifier()


@pytest.fixture
def voucher_validator() -> FakeVoucherValidator:
    return FakeVoucherValidator({"GIFT50": 5000, "GIFT10": 1000})


@pytest.fixture
def failing_payment_provider() -> FakePaymentProvider:
    return FakePaymentProvider(fail=True)


@pytest.fixture
def failing_notifier() -> RecordingNotifier:
    return RecordingNotifier(fail=True)
