"""Tests for the order engine."""

from dataclasses import replace
from datetime import datetime, timedelta, timezone

import pytest

from salonshop.domain.cart import (
    AddToCartInput,
    CartDiscount,
    CartItemType,
    DiscountKind,
    ProductSnapshot,
    add_item_to_cart,
    apply_discount,
    create_empty_cart,
)
from salonshop.domain.exceptions import (
    NegativeMoneyError,
    OrderNotRefundableError,
    OrderValidationError,
    ValidationError,
)
from salonshop.domain.order import (
    ApplyVoucherInput,
    CreateOrderInput,
    CreateOrderItemInput,
    Order,
    OrderItemType,
    add_tracking_number,
    apply_voucher,
    calculate_order_totals,
    can_cancel,
    can_refund,
    cart_to_order_items,
    create_order,
    create_order_item,
    format_order_number,
    generate_order_number_prefix,
    get_available_shipping_options,
    get_item_count,
    get_shipping_cents,
    get_voucher_items,
    has_voucher_items,
    is_digital_only_order,
    is_paid,
    parse_order_sequence,
    refund_order,
    remove_voucher,
    transition_order_status,
    update_payment_status,
    validate_order_for_payment,
    validate_order_input,
)
from salonshop.domain.state_machines import OrderStatus, PaymentMethod, PaymentStatus
from salonshop.domain.value_objects import ShippingAddress, ShippingMethodType

NOW = datetime(2026, 3, 1, 10, 0, tzinfo=timezone.utc)
ADDRESS = ShippingAddress(name="Anna Muster", street="Bahnhofstrasse 1", zip="8001", city="Zürich")


def product_line(unit_price_cents: int = 2500, quantity: int = 2, **kwargs) -> CreateOrderItemInput:
    return CreateOrderItemInput(
        item_type=OrderItemType.PRODUCT,
        item_name="Shampoo",
        quantity=quantity,
        unit_price_cents=unit_price_cents,
        product_id="shampoo",
        **kwargs,
    )


def voucher_line(value_cents: int = 5000, **kwargs) -> CreateOrderItemInput:
    defaults = {"recipient_email": "lea@example.ch", "recipient_name": "Lea"}
    defaults.update(kwargs)
    return CreateOrderItemInput(
        item_type=OrderItemType.VOUCHER,
        item_name="Geschenkgutschein",
        quantity=1,
        unit_price_cents=value_cents,
        voucher_type="value",
        **defaults,
    )


def order_input(**overrides) -> CreateOrderInput:
    values = {
        "salon_id": "salon-1",
        "customer_email": "kunde@example.ch",
        "items": (product_line(),),
        "shipping_method": ShippingMethodType.STANDARD,
        "shipping_address": ADDRESS,
        "payment_method": PaymentMethod.STRIPE_CARD,
    }
    values.update(overrides)
    return CreateOrderInput(**values)


def make_order(**overrides) -> Order:
    return create_order(order_input(**overrides), "SW-2026-00001", now=NOW)


def paid_order(**overrides) -> Order:
    order = make_order(**overrides)
    order = update_payment_status(order, PaymentStatus.SUCCEEDED, now=NOW)
    return transition_order_status(order, OrderStatus.PAID, now=NOW).order


class TestCreateOrder:
    """Tests for order creation."""

    def test_initial_state(self) -> None:
        """Online orders start pending."""
        order = make_order()

        assert order.status == OrderStatus.PENDING
        assert order.payment_status == PaymentStatus.PENDING
        assert order.order_number == "SW-2026-00001"
        assert order.salon_id == "salon-1"
        assert order.created_at == order.updated_at == NOW
        assert order.voucher_discount_cents == 0

    def test_pay_at_venue_starts_processing(self) -> None:
        """Pay-at-venue orders skip the online payment step."""
        order = make_order(payment_method=PaymentMethod.PAY_AT_VENUE)

        assert order.status == OrderStatus.PROCESSING
        assert order.payment_status == PaymentStatus.PENDING

    def test_items_are_priced(self) -> None:
        """Line totals and included VAT are computed per item."""
        order = make_order()
        item = order.items[0]

        assert item.order_id == order.id
        assert item.total_cents == 5000
        assert item.tax_cents == 375
        assert order.subtotal_cents == 5000

    def test_invalid_input_raises(self) -> None:
        """Callers must validate first; invalid input is a precondition failure."""
        with pytest.raises(OrderValidationError) as exc_info:
            make_order(salon_id="", items=())
        assert "Salon-ID ist erforderlich" in exc_info.value.errors
        assert "Mindestens ein Artikel ist erforderlich" in exc_info.value.errors


class TestCreateOrderItem:
    """Tests for order item snapshots."""

    def test_line_discount(self) -> None:
        """Line discount reduces the line total."""
        item = create_order_item("o-1", product_line(unit_price_cents=1000, discount_cents=300))
        assert item.total_cents == 1700

    def test_negative_discount_rejected(self) -> None:
        """Discounts cannot be negative."""
        with pytest.raises(NegativeMoneyError):
            create_order_item("o-1", product_line(discount_cents=-1))

    def test_discount_above_gross_rejected(self) -> None:
        """Discounts cannot exceed the line."""
        with pytest.raises(ValidationError):
            create_order_item("o-1", product_line(unit_price_cents=100, quantity=1, discount_cents=101))

    def test_custom_tax_rate(self) -> None:
        """Items can carry their own VAT rate."""
        item = create_order_item("o-1", product_line(unit_price_cents=10260, quantity=1, tax_rate="0.026"))
        assert item.tax_cents == 260


class TestOrderTotals:
    """Tests for order totals and shipping."""

    def items(self, subtotal_cents: int):
        return [create_order_item("o-1", product_line(unit_price_cents=subtotal_cents, quantity=1))]

    def test_free_shipping_at_threshold(self) -> None:
        """CHF 50.00 subtotal ships free."""
        totals = calculate_order_totals(self.items(5000), 0, 790, ShippingMethodType.STANDARD)
        assert totals.shipping_cents == 0
        assert totals.total_cents == 5000

    def test_shipping_charged_below_threshold(self) -> None:
        """CHF 49.99 subtotal pays shipping."""
        totals = calculate_order_totals(self.items(4999), 0, 790, ShippingMethodType.STANDARD)
        assert totals.shipping_cents == 790
        assert totals.total_cents == 5789

    def test_pickup_always_free(self) -> None:
        """Pickup costs nothing regardless of the candidate price."""
        totals = calculate_order_totals(self.items(1000), 0, 790, ShippingMethodType.PICKUP)
        assert totals.shipping_cents == 0

    def test_voucher_capped(self) -> None:
        """Vouchers cannot push the total below zero."""
        totals = calculate_order_totals(self.items(210), 5000, 790, ShippingMethodType.STANDARD)
        assert totals.voucher_discount_cents == 1000
        assert totals.total_cents == 0
        assert totals.tax_cents == 0

    def test_item_count_and_discounts(self) -> None:
        """Totals report quantities and line discounts."""
        items = [
            create_order_item("o-1", product_line(unit_price_cents=1000, quantity=3, discount_cents=500)),
            create_order_item("o-1", voucher_line(value_cents=2000)),
        ]
        totals = calculate_order_totals(items)

        assert totals.item_count == 4
        assert totals.discount_cents == 500
        assert totals.subtotal_cents == 4500

    @pytest.mark.parametrize(
        ("method", "expected"),
        [
            (ShippingMethodType.STANDARD, 790),
            (ShippingMethodType.EXPRESS, 1490),
            (ShippingMethodType.PICKUP, 0),
            (ShippingMethodType.NONE, 0),
            (None, 0),
            ("express", 1490),
        ],
    )
    def test_shipping_price_table(self, method, expected: int) -> None:
        """Shipping list prices."""
        assert get_shipping_cents(method) == expected

    def test_unknown_shipping_method_rejected(self) -> None:
        """Unknown method names fail instead of shipping for free."""
        with pytest.raises(ValueError):
            get_shipping_cents("drone")

    def test_order_shipping_applies_threshold(self) -> None:
        """Orders of CHF 50.00 or more ship free."""
        assert make_order().shipping_cents == 0
        small = make_order(items=(product_line(unit_price_cents=1000, quantity=1),))
        assert small.shipping_cents == 790
        assert small.total_cents == 1790


class TestShippingOptions:
    """Tests for available shipping options."""

    def test_digital_only(self) -> None:
        """Digital orders get a single free option."""
        options = get_available_shipping_options(10000, digital_only=True)
        assert [o.type for o in options] == [ShippingMethodType.NONE]
        assert options[0].price_cents == 0

    def test_below_threshold(self) -> None:
        """List prices apply below the threshold."""
        options = get_available_shipping_options(4999, digital_only=False)
        assert [o.price_cents for o in options] == [790, 1490, 0]

    def test_above_threshold(self) -> None:
        """Standard and express become free at the threshold."""
        options = get_available_shipping_options(5000, digital_only=False)
        assert [o.price_cents for o in options] == [0, 0, 0]
        assert options[0].description == "Kostenlos (ab CHF 50)"
        assert options[2].description == "Kostenlos"


class TestValidateOrderInput:
    """Tests for checkout input validation."""

    def test_valid_input(self) -> None:
        """Complete input passes."""
        result = validate_order_input(order_input())
        assert result.valid
        assert result.errors == ()

    def test_pickup_without_address_is_valid(self) -> None:
        """Pickup needs no address, even for physical products."""
        result = validate_order_input(
            order_input(shipping_method=ShippingMethodType.PICKUP, shipping_address=None)
        )
        assert result.valid

    def test_standard_without_address(self) -> None:
        """Delivered orders need an address."""
        result = validate_order_input(order_input(shipping_address=None))
        assert result.errors == ("Lieferadresse ist erforderlich",)

    def test_missing_shipping_method(self) -> None:
        """Physical products need a shipping method."""
        result = validate_order_input(order_input(shipping_method=None))
        assert "Versandart ist erforderlich" in result.errors

    def test_digital_order_needs_no_shipping(self) -> None:
        """Voucher-only orders need neither method nor address."""
        result = validate_order_input(
            order_input(items=(voucher_line(),), shipping_method=None, shipping_address=None)
        )
        assert result.valid

    def test_missing_salon(self) -> None:
        """The tenant must be named."""
        assert validate_order_input(order_input(salon_id="")).errors == ("Salon-ID ist erforderlich",)

    @pytest.mark.parametrize(
        ("email", "message"),
        [
            ("", "E-Mail-Adresse ist erforderlich"),
            ("kunde@example", "Ungültige E-Mail-Adresse"),
            ("kunde example.ch", "Ungültige E-Mail-Adresse"),
        ],
    )
    def test_customer_email(self, email: str, message: str) -> None:
        """Customer email must be present and well-formed."""
        assert validate_order_input(order_input(customer_email=email)).errors == (message,)

    def test_no_items(self) -> None:
        """At least one item is required."""
        result = validate_order_input(order_input(items=()))
        assert result.errors == ("Mindestens ein Artikel ist erforderlich",)

    def test_item_errors_are_numbered(self) -> None:
        """Item problems name the item position."""
        result = validate_order_input(
            order_input(
                items=(
                    product_line(),
                    replace(product_line(), item_name="", quantity=0),
                    product_line(unit_price_cents=-1),
                )
            )
        )
        assert result.errors == (
            "Artikel 2: Name ist erforderlich",
            "Artikel 2: Menge muss mindestens 1 sein",
            "Artikel 3: Preis darf nicht negativ sein",
        )

    def test_voucher_needs_recipient(self) -> None:
        """Voucher lines need recipient email and name."""
        result = validate_order_input(
            order_input(items=(voucher_line(recipient_email=None, recipient_name=None),))
        )
        assert result.errors == (
            "Artikel 1: Empfänger-E-Mail für Gutschein erforderlich",
            "Artikel 1: Empfängername für Gutschein erforderlich",
        )

    def test_incomplete_address(self) -> None:
        """Every address field is checked."""
        result = validate_order_input(
            order_input(shipping_address=ShippingAddress(name="", street="", zip="", city=""))
        )
        assert result.errors == (
            "Name in Lieferadresse erforderlich",
            "Strasse in Lieferadresse erforderlich",
            "PLZ in Lieferadresse erforderlich",
            "Ort in Lieferadresse erforderlich",
        )


class TestValidateOrderForPayment:
    """Tests for the pre-payment gate."""

    def test_pending_order_can_be_paid(self) -> None:
        """Pending orders with a positive total pass."""
        assert validate_order_for_payment(make_order()).valid

    def test_non_pending_order(self) -> None:
        """Only pending orders go to payment."""
        order = make_order(payment_method=PaymentMethod.PAY_AT_VENUE)
        result = validate_order_for_payment(order)
        assert result.errors == ('Bestellung ist nicht im Status "ausstehend"',)

    def test_zero_total(self) -> None:
        """Fully discounted orders are not sent to payment."""
        order = apply_voucher(make_order(), ApplyVoucherInput("v-1", "GIFT", 100000))
        result = validate_order_for_payment(order)
        assert result.errors == ("Bestellwert muss grösser als 0 sein",)


class TestTransitions:
    """Tests for status transitions."""

    def test_valid_transition(self) -> None:
        """Valid transitions return the updated order."""
        order = make_order()
        later = NOW + timedelta(hours=1)

        result = transition_order_status(order, OrderStatus.PAID, now=later)

        assert result.success
        assert result.error is None
        assert result.order.status == OrderStatus.PAID
        assert result.order.updated_at == later
        assert order.status == OrderStatus.PENDING

    def test_transition_is_idempotent(self) -> None:
        """Applying the same transition twice equals applying it once."""
        order = make_order()
        once = transition_order_status(order, OrderStatus.PAID, now=NOW).order
        twice = transition_order_status(once, OrderStatus.PAID, now=NOW + timedelta(hours=1)).order

        assert twice == once

    def test_same_status_returns_input(self) -> None:
        """Re-applying the current status changes nothing."""
        order = make_order()
        result = transition_order_status(order, OrderStatus.PENDING)
        assert result.success
        assert result.order is order

    def test_invalid_transition_leaves_order_unchanged(self) -> None:
        """Invalid transitions are reported, not raised or clamped."""
        completed = transition_order_status(make_order(), OrderStatus.COMPLETED, now=NOW).order

        result = transition_order_status(completed, OrderStatus.PENDING)

        assert not result.success
        assert result.order is completed
        assert result.error is not None
        assert result.error.current_state == "completed"
        assert result.error.target_state == "pending"

    @pytest.mark.parametrize(
        ("status", "field"),
        [
            (OrderStatus.SHIPPED, "shipped_at"),
            (OrderStatus.DELIVERED, "delivered_at"),
            (OrderStatus.COMPLETED, "completed_at"),
            (OrderStatus.CANCELLED, "cancelled_at"),
        ],
    )
    def test_status_timestamps(self, status: OrderStatus, field: str) -> None:
        """Target states stamp their timestamp at transition time."""
        later = NOW + timedelta(days=1)
        order = transition_order_status(paid_order(), status, now=later).order

        assert getattr(order, field) == later

    def test_unknown_status_raises(self) -> None:
        """Unknown status strings are programming errors."""
        with pytest.raises(ValueError):
            transition_order_status(make_order(), "lost")

    def test_string_status_accepted(self) -> None:
        """Known status strings are coerced."""
        assert transition_order_status(make_order(), "paid").order.status == OrderStatus.PAID


class TestPaymentAndRefund:
    """Tests for payment status and refunds."""

    def test_payment_success_stamps_paid_at(self) -> None:
        """Successful payment stamps paid_at."""
        order = update_payment_status(make_order(), PaymentStatus.SUCCEEDED, now=NOW)
        assert order.payment_status == PaymentStatus.SUCCEEDED
        assert order.paid_at == NOW
        assert is_paid(order)

    def test_same_payment_status_returns_input(self) -> None:
        """Repeated provider callbacks change nothing."""
        order = make_order()
        assert update_payment_status(order, "pending") is order

    def test_can_cancel(self) -> None:
        """Orders can be cancelled until they ship."""
        assert can_cancel(make_order())
        assert can_cancel(paid_order())
        shipped = transition_order_status(paid_order(), OrderStatus.SHIPPED).order
        assert not can_cancel(shipped)

    def test_can_refund(self) -> None:
        """Only successfully paid, not yet refunded orders can be refunded."""
        assert not can_refund(make_order())
        assert can_refund(paid_order())
        assert not can_refund(refund_order(paid_order()))

    def test_refund_paid_order(self) -> None:
        """Refunds move the order to REFUNDED and record the amount."""
        order = paid_order()
        later = NOW + timedelta(days=2)

        refunded = refund_order(order, now=later)

        assert refunded.status == OrderStatus.REFUNDED
        assert refunded.payment_status == PaymentStatus.REFUNDED
        assert refunded.refunded_amount_cents == order.total_cents
        assert refunded.refunded_at == later

    def test_refund_completed_order(self) -> None:
        """Completed orders can still be refunded."""
        completed = transition_order_status(paid_order(), OrderStatus.COMPLETED).order
        assert refund_order(completed).status == OrderStatus.REFUNDED

    def test_refund_cancelled_order_keeps_status(self) -> None:
        """Refunding a cancelled paid order only refunds the payment."""
        cancelled = transition_order_status(paid_order(), OrderStatus.CANCELLED).order

        refunded = refund_order(cancelled)

        assert refunded.status == OrderStatus.CANCELLED
        assert refunded.payment_status == PaymentStatus.REFUNDED
        assert not can_refund(refunded)

    def test_refund_unpaid_order_raises(self) -> None:
        """Unpaid orders cannot be refunded."""
        with pytest.raises(OrderNotRefundableError):
            refund_order(make_order())


class TestTracking:
    """Tests for tracking numbers."""

    def test_tracking_marks_shipped(self) -> None:
        """Adding a tracking number ships the order."""
        result = add_tracking_number(paid_order(), "99.00.123456.78901234", now=NOW)

        assert result.success
        assert result.order.status == OrderStatus.SHIPPED
        assert result.order.tracking_number == "99.00.123456.78901234"
        assert result.order.shipped_at == NOW

    def test_tracking_on_cancelled_order_fails(self) -> None:
        """Cancelled orders cannot be shipped."""
        cancelled = transition_order_status(make_order(), OrderStatus.CANCELLED).order

        result = add_tracking_number(cancelled, "123")

        assert not result.success
        assert result.order.tracking_number is None


class TestVouchers:
    """Tests for voucher application."""

    def small_order(self) -> Order:
        # 2.10 + 7.90 shipping = 10.00
        return make_order(items=(product_line(unit_price_cents=210, quantity=1),))

    def test_voucher_capped_at_subtotal_plus_shipping(self) -> None:
        """A CHF 50 voucher on a CHF 10 order pays exactly CHF 10."""
        order = self.small_order()
        assert order.total_cents == 1000

        discounted = apply_voucher(order, ApplyVoucherInput("v-1", "GIFT50", 5000))

        assert discounted.voucher_id == "v-1"
        assert discounted.voucher_code == "GIFT50"
        assert discounted.voucher_discount_cents == 1000
        assert discounted.total_cents == 0

    def test_partial_voucher(self) -> None:
        """Smaller vouchers reduce the total and its VAT."""
        discounted = apply_voucher(self.small_order(), ApplyVoucherInput("v-1", "GIFT", 190))

        assert discounted.total_cents == 810
        assert discounted.tax_cents == 61

    def test_reapplying_same_voucher_is_noop(self) -> None:
        """Re-applying the identical voucher returns the order unchanged."""
        voucher = ApplyVoucherInput("v-1", "GIFT", 500)
        once = apply_voucher(self.small_order(), voucher)
        assert apply_voucher(once, voucher) is once

    def test_negative_voucher_rejected(self) -> None:
        """Voucher amounts cannot be negative."""
        with pytest.raises(NegativeMoneyError):
            apply_voucher(self.small_order(), ApplyVoucherInput("v-1", "GIFT", -1))

    def test_remove_voucher(self) -> None:
        """Removing the voucher restores the total."""
        order = self.small_order()
        discounted = apply_voucher(order, ApplyVoucherInput("v-1", "GIFT", 500))

        restored = remove_voucher(discounted)

        assert restored.voucher_id is None
        assert restored.voucher_discount_cents == 0
        assert restored.total_cents == order.total_cents
        assert remove_voucher(restored) is restored


class TestQueries:
    """Tests for order queries."""

    def test_voucher_queries(self) -> None:
        """Voucher lines are found and counted."""
        order = make_order(items=(product_line(quantity=2), voucher_line(), voucher_line()))

        assert has_voucher_items(order)
        assert len(get_voucher_items(order)) == 2
        assert get_item_count(order) == 4
        assert not is_digital_only_order(order)

    def test_digital_only_order(self) -> None:
        """Voucher-only orders are digital."""
        order = make_order(items=(voucher_line(),), shipping_method=ShippingMethodType.NONE)
        assert is_digital_only_order(order)
        assert order.shipping_cents == 0


class TestOrderNumbers:
    """Tests for order number helpers."""

    def test_prefix(self) -> None:
        """Prefixes carry the year."""
        assert generate_order_number_prefix("SW", 2026) == "SW-2026-"

    def test_format(self) -> None:
        """Sequences are zero-padded to five digits."""
        assert format_order_number("SW", 2026, 1) == "SW-2026-00001"
        assert format_order_number("SW", 2026, 12345) == "SW-2026-12345"

    def test_parse(self) -> None:
        """The running number can be read back."""
        assert parse_order_sequence("SW-2026-00042") == 42
        assert parse_order_sequence("SW-2026-") is None


class TestCartConversion:
    """Tests for converting carts to order lines."""

    def cart_with(self, *prices: int):
        cart = create_empty_cart()
        for index, price in enumerate(prices):
            cart = add_item_to_cart(
                cart,
                AddToCartInput(type=CartItemType.PRODUCT, product_id=f"p-{index}"),
                ProductSnapshot(name=f"Produkt {index}", price_cents=price),
            )
        return cart

    def test_lines_copied(self) -> None:
        """Cart lines become order lines with the same data."""
        cart = add_item_to_cart(
            self.cart_with(2500),
            AddToCartInput(
                type=CartItemType.VOUCHER,
                voucher_value_cents=5000,
                recipient_email="lea@example.ch",
                recipient_name="Lea",
            ),
            ProductSnapshot(name="Gutschein", price_cents=5000),
        )

        lines = cart_to_order_items(cart)

        assert [line.item_type for line in lines] == [OrderItemType.PRODUCT, OrderItemType.VOUCHER]
        assert lines[0].product_id == "p-0"
        assert lines[1].recipient_email == "lea@example.ch"
        assert lines[1].voucher_type == "value"
        assert all(line.discount_cents == 0 for line in lines)

    def test_discount_distributed_proportionally(self) -> None:
        """Cart discounts are split over lines by their totals."""
        cart = apply_discount(
            self.cart_with(3000, 1000),
            CartDiscount(code="FIX10", kind=DiscountKind.FIXED, amount_cents=1000),
        )

        lines = cart_to_order_items(cart)

        assert [line.discount_cents for line in lines] == [750, 250]

    def test_remainder_goes_to_largest_fraction(self) -> None:
        """Rounding leftovers are assigned so the sum matches exactly."""
        cart = apply_discount(
            self.cart_with(1000, 1000, 1000),
            CartDiscount(code="FIX1", kind=DiscountKind.FIXED, amount_cents=100),
        )

        lines = cart_to_order_items(cart)

        assert [line.discount_cents for line in lines] == [34, 33, 33]

    def test_order_reproduces_cart_total(self) -> None:
        """The order subtotal equals the discounted cart subtotal."""
        cart = apply_discount(
            self.cart_with(1999, 1234, 777),
            CartDiscount(code="TEN", kind=DiscountKind.PERCENTAGE, value=10),
        )

        order = make_order(items=cart_to_order_items(cart), shipping_method=ShippingMethodType.PICKUP)

        assert order.subtotal_cents == cart.totals.subtotal_cents - cart.totals.discount_cents
        assert order.total_cents == cart.totals.total_cents
