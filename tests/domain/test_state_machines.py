"""Tests for order and payment state machines."""

import pytest

from salonshop.domain.state_machines import (
    OrderStatus,
    PaymentMethod,
    PaymentStatus,
    get_payment_status_text,
    get_status_text,
    is_valid_status_transition,
    order_transition_error,
)


class TestOrderStatusTransitions:
    """Tests for the order transition table."""

    def test_completed_cannot_go_back_to_pending(self) -> None:
        """COMPLETED cannot transition to PENDING."""
        assert not is_valid_status_transition("completed", "pending")

    def test_pending_can_be_cancelled(self) -> None:
        """PENDING can transition to CANCELLED."""
        assert is_valid_status_transition("pending", "cancelled")

    def test_refunded_cannot_be_shipped(self) -> None:
        """REFUNDED cannot transition to SHIPPED."""
        assert not is_valid_status_transition("refunded", "shipped")

    @pytest.mark.parametrize("status", list(OrderStatus))
    def test_same_status_is_always_valid(self, status: OrderStatus) -> None:
        """Re-applying the current status is valid, even for terminal states."""
        assert status.can_transition_to(status)

    def test_happy_path(self) -> None:
        """Each step of the happy path is valid."""
        path = [
            OrderStatus.PENDING,
            OrderStatus.PAID,
            OrderStatus.PROCESSING,
            OrderStatus.SHIPPED,
            OrderStatus.DELIVERED,
            OrderStatus.COMPLETED,
        ]
        for current, target in zip(path, path[1:]):
            assert current.can_transition_to(target)

    def test_skipping_forward_is_allowed(self) -> None:
        """A state may advance to any later happy-path state."""
        assert OrderStatus.PAID.can_transition_to(OrderStatus.SHIPPED)
        assert OrderStatus.PENDING.can_transition_to(OrderStatus.COMPLETED)

    def test_moving_backward_is_rejected(self) -> None:
        """No state may move back along the happy path."""
        assert not OrderStatus.SHIPPED.can_transition_to(OrderStatus.PAID)
        assert not OrderStatus.DELIVERED.can_transition_to(OrderStatus.PROCESSING)

    @pytest.mark.parametrize(
        "status",
        [OrderStatus.PENDING, OrderStatus.PAID, OrderStatus.PROCESSING],
    )
    def test_cancellable_states(self, status: OrderStatus) -> None:
        """PENDING, PAID and PROCESSING can be cancelled."""
        assert status.is_cancellable()
        assert status.can_transition_to(OrderStatus.CANCELLED)

    @pytest.mark.parametrize(
        "status",
        [OrderStatus.SHIPPED, OrderStatus.DELIVERED, OrderStatus.COMPLETED],
    )
    def test_shipped_orders_cannot_be_cancelled(self, status: OrderStatus) -> None:
        """Once shipped, an order cannot be cancelled."""
        assert not status.is_cancellable()
        assert not status.can_transition_to(OrderStatus.CANCELLED)

    def test_refund_requires_payment(self) -> None:
        """REFUNDED is reachable after payment only."""
        assert OrderStatus.PAID.can_transition_to(OrderStatus.REFUNDED)
        assert OrderStatus.COMPLETED.can_transition_to(OrderStatus.REFUNDED)
        assert not OrderStatus.PENDING.can_transition_to(OrderStatus.REFUNDED)
        assert not OrderStatus.CANCELLED.can_transition_to(OrderStatus.REFUNDED)

    def test_completed_can_only_be_refunded(self) -> None:
        """COMPLETED has REFUNDED as its only outbound transition."""
        assert OrderStatus.COMPLETED.allowed_transitions() == [OrderStatus.REFUNDED]

    def test_cancelled_and_refunded_have_no_transitions(self) -> None:
        """CANCELLED and REFUNDED are dead ends."""
        assert OrderStatus.CANCELLED.allowed_transitions() == []
        assert OrderStatus.REFUNDED.allowed_transitions() == []

    def test_terminal_states(self) -> None:
        """COMPLETED, CANCELLED and REFUNDED are terminal."""
        terminal = {s for s in OrderStatus if s.is_terminal()}
        assert terminal == {OrderStatus.COMPLETED, OrderStatus.CANCELLED, OrderStatus.REFUNDED}

    def test_unknown_status_raises(self) -> None:
        """Unknown status values are programming errors."""
        with pytest.raises(ValueError):
            is_valid_status_transition("pending", "lost")


class TestOrderTransitionError:
    """Tests for transition error construction."""

    def test_valid_transition_has_no_error(self) -> None:
        """Valid transitions produce no error."""
        assert order_transition_error("o-1", OrderStatus.PENDING, OrderStatus.PAID) is None

    def test_invalid_transition_describes_states(self) -> None:
        """Errors name the current and target state and what is allowed."""
        error = order_transition_error("o-1", OrderStatus.CANCELLED, OrderStatus.PAID)
        assert error is not None
        assert error.current_state == "cancelled"
        assert error.target_state == "paid"
        assert error.details["allowed_transitions"] == []
        assert "o-1" in error.message


class TestLabels:
    """Tests for German status labels."""

    def test_order_status_text(self) -> None:
        """Order statuses have German labels."""
        assert get_status_text("processing") == "In Bearbeitung"
        assert get_status_text(OrderStatus.CANCELLED) == "Storniert"
        assert OrderStatus.REFUNDED.label == "Erstattet"

    def test_payment_status_text(self) -> None:
        """Payment statuses have German labels."""
        assert get_payment_status_text("partially_refunded") == "Teilweise erstattet"
        assert PaymentStatus.SUCCEEDED.label == "Erfolgreich"


class TestPaymentMethod:
    """Tests for PaymentMethod."""

    def test_online_methods(self) -> None:
        """Card and TWINT are paid online."""
        assert PaymentMethod.STRIPE_CARD.is_online()
        assert PaymentMethod.STRIPE_TWINT.is_online()
        assert not PaymentMethod.PAY_AT_VENUE.is_online()
        assert not PaymentMethod.CASH.is_online()
