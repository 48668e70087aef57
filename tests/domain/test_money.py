"""Tests for money and tax utilities."""

from datetime import datetime, timedelta, timezone
from decimal import Decimal

import pytest

from salonshop.domain.exceptions import ArithmeticInvariantViolation, InvalidRateError
from salonshop.domain.money import (
    VAT_RATE,
    calculate_tax_from_gross,
    calculate_tax_from_net,
    cart_expiry,
    ensure_non_negative,
    format_date,
    format_datetime,
    format_price,
    percentage_of,
    round_half_up,
    to_percentage,
    to_tax_rate,
)


class TestTaxFromGross:
    """Tests for VAT extraction from gross amounts."""

    def test_standard_rate(self) -> None:
        """CHF 108.10 gross contains CHF 8.10 VAT."""
        assert calculate_tax_from_gross(10810, 0.081) == 810

    def test_zero_gross(self) -> None:
        """Zero gross has zero tax."""
        assert calculate_tax_from_gross(0, 0.081) == 0

    def test_default_rate_is_standard_vat(self) -> None:
        """Rate defaults to 8.1%."""
        assert VAT_RATE == Decimal("0.081")
        assert calculate_tax_from_gross(10810) == 810

    def test_rounds_half_up(self) -> None:
        """Fractional tax is rounded to the nearest cent."""
        # 5000 * 0.081 / 1.081 = 374.65...
        assert calculate_tax_from_gross(5000) == 375

    def test_accepts_string_and_decimal_rates(self) -> None:
        """String and Decimal rates give the same result as floats."""
        assert calculate_tax_from_gross(10810, "0.081") == 810
        assert calculate_tax_from_gross(10810, Decimal("0.081")) == 810

    def test_reduced_rate(self) -> None:
        """Reduced 2.6% rate."""
        assert calculate_tax_from_gross(10260, "0.026") == 260

    def test_percentage_rate_is_rejected(self) -> None:
        """A whole-number percentage is not reinterpreted as a fraction."""
        with pytest.raises(InvalidRateError):
            calculate_tax_from_gross(10810, 8.1)


class TestTaxFromNet:
    """Tests for VAT added to net amounts."""

    def test_standard_rate(self) -> None:
        """CHF 100.00 net adds CHF 8.10 VAT."""
        assert calculate_tax_from_net(10000, 0.081) == 810

    def test_zero_net(self) -> None:
        """Zero net has zero tax."""
        assert calculate_tax_from_net(0) == 0


class TestRates:
    """Tests for rate and percentage conversion."""

    def test_to_tax_rate_returns_decimal(self) -> None:
        """Float rates are converted without binary noise."""
        assert to_tax_rate(0.081) == Decimal("0.081")

    @pytest.mark.parametrize("value", [-0.1, 1, 8.1, "abc"])
    def test_to_tax_rate_rejects_out_of_range(self, value: object) -> None:
        """Rates outside [0, 1) are rejected."""
        with pytest.raises(InvalidRateError):
            to_tax_rate(value)  # type: ignore[arg-type]

    def test_to_percentage_bounds(self) -> None:
        """Percentages are accepted within [0, 100]."""
        assert to_percentage(0) == Decimal(0)
        assert to_percentage(100) == Decimal(100)
        with pytest.raises(InvalidRateError):
            to_percentage(101)
        with pytest.raises(InvalidRateError):
            to_percentage(-1)

    def test_percentage_of(self) -> None:
        """Whole-number percentages of cents, rounded half up."""
        assert percentage_of(5000, 10) == 500
        assert percentage_of(999, 15) == 150

    def test_round_half_up(self) -> None:
        """Halves round away from zero."""
        assert round_half_up(Decimal("2.5")) == 3
        assert round_half_up(Decimal("2.4999")) == 2
        assert round_half_up(Decimal("-2.5")) == -3


class TestInvariants:
    """Tests for arithmetic guards."""

    def test_non_negative_passes_through(self) -> None:
        """Non-negative values are returned unchanged."""
        assert ensure_non_negative("total_cents", 0) == 0
        assert ensure_non_negative("total_cents", 42) == 42

    def test_negative_raises(self) -> None:
        """Negative values are a programming error."""
        with pytest.raises(ArithmeticInvariantViolation) as exc_info:
            ensure_non_negative("total_cents", -1)
        assert exc_info.value.details == {"name": "total_cents", "value": -1}


class TestFormatting:
    """Tests for Swiss formatting helpers."""

    def test_format_price(self) -> None:
        """Cents are rendered as francs with two decimals."""
        assert format_price(2500) == "CHF 25.00"
        assert format_price(0) == "CHF 0.00"
        assert format_price(5) == "CHF 0.05"

    def test_format_price_thousands(self) -> None:
        """Thousands are separated by an apostrophe."""
        assert format_price(123450) == "CHF 1'234.50"

    def test_format_date_and_datetime(self) -> None:
        """Dates use day.month.year."""
        moment = datetime(2024, 12, 25, 14, 30, tzinfo=timezone.utc)
        assert format_date(moment) == "25.12.2024"
        assert format_datetime(moment) == "25.12.2024, 14:30"

    def test_cart_expiry_is_seven_days(self) -> None:
        """Carts expire seven days after creation."""
        created = datetime(2026, 1, 1, tzinfo=timezone.utc)
        assert cart_expiry(created) == created + timedelta(days=7)
