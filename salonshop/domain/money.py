"""Money and tax utilities.

All amounts are integer cents. Swiss prices are gross, meaning VAT is
already included, so tax is extracted from a gross amount rather than
added on top.

Representation rules:
    - tax rates are fractions (``Decimal("0.081")`` for 8.1%)
    - discount percentages are whole numbers (``10`` for 10%)

Both are validated where they enter the engine instead of being
guessed from their magnitude.
"""

from datetime import datetime, timedelta, timezone
from decimal import ROUND_HALF_UP, Decimal, InvalidOperation

from salonshop.domain.exceptions import ArithmeticInvariantViolation, InvalidRateError

CURRENCY = "CHF"

# Swiss MWST rates
VAT_RATE = Decimal("0.081")
VAT_RATE_REDUCED = Decimal("0.026")

CART_TTL_DAYS = 7

RateLike = Decimal | float | int | str


# ============================================================================
# Rounding & Rate Conversion
# ============================================================================


def round_half_up(value: Decimal) -> int:
    """Round a decimal cents value to whole cents, halves away from zero.

    Args:
        value: Amount in cents, possibly fractional.

    Returns:
        Rounded integer cents.
    """
    return int(value.quantize(Decimal("1"), rounding=ROUND_HALF_UP))


def _to_decimal(value: RateLike) -> Decimal:
    if isinstance(value, Decimal):
        return value
    try:
        # str() keeps 0.081 from turning into its binary float expansion
        return Decimal(str(value))
    except InvalidOperation as e:
        raise InvalidRateError(value, "a number") from e


def to_tax_rate(value: RateLike) -> Decimal:
    """Convert a tax rate to a validated fraction.

    Args:
        value: Rate as a fraction, e.g. 0.081.

    Returns:
        Rate as Decimal.

    Raises:
        InvalidRateError: If the rate is not within [0, 1). A whole-number
            percentage such as 8.1 is rejected, not reinterpreted.
    """
    rate = _to_decimal(value)
    if not Decimal(0) <= rate < Decimal(1):
        raise InvalidRateError(value, "a fraction in [0, 1), e.g. 0.081")
    return rate


def to_percentage(value: RateLike) -> Decimal:
    """Convert a discount percentage to a validated whole-number percentage.

    Args:
        value: Percentage in [0, 100], e.g. 10 for 10%.

    Returns:
        Percentage as Decimal.

    Raises:
        InvalidRateError: If the value is outside [0, 100].
    """
    percent = _to_decimal(value)
    if not Decimal(0) <= percent <= Decimal(100):
        raise InvalidRateError(value, "a percentage in [0, 100], e.g. 10")
    return percent


# ============================================================================
# Tax
# ============================================================================


def calculate_tax_from_gross(gross_cents: int, rate: RateLike = VAT_RATE) -> int:
    """Extract the VAT contained in a gross (tax-inclusive) amount.

    ``tax = round(gross * rate / (1 + rate))``

    Args:
        gross_cents: Gross amount in cents.
        rate: Tax rate as a fraction.

    Returns:
        Included tax in cents.
    """
    tax_rate = to_tax_rate(rate)
    return round_half_up(Decimal(gross_cents) * tax_rate / (Decimal(1) + tax_rate))


def calculate_tax_from_net(net_cents: int, rate: RateLike = VAT_RATE) -> int:
    """Calculate the VAT to add on top of a net amount.

    Args:
        net_cents: Net amount in cents.
        rate: Tax rate as a fraction.

    Returns:
        Tax in cents.
    """
    return round_half_up(Decimal(net_cents) * to_tax_rate(rate))


def percentage_of(amount_cents: int, percent: RateLike) -> int:
    """Take a whole-number percentage of an amount.

    Args:
        amount_cents: Base amount in cents.
        percent: Percentage in [0, 100].

    Returns:
        Rounded share in cents.
    """
    return round_half_up(Decimal(amount_cents) * to_percentage(percent) / Decimal(100))


def ensure_non_negative(name: str, cents: int) -> int:
    """Guard a computed amount against going negative.

    Raises:
        ArithmeticInvariantViolation: If ``cents`` is negative.
    """
    if cents < 0:
        raise ArithmeticInvariantViolation(name, cents)
    return cents


# ============================================================================
# Time Helpers
# ============================================================================


def utcnow() -> datetime:
    """Current time as an aware UTC datetime."""
    return datetime.now(timezone.utc)


def add_days(moment: datetime, days: int) -> datetime:
    return moment + timedelta(days=days)


def cart_expiry(created_at: datetime) -> datetime:
    """Advisory expiry for a cart created at ``created_at``."""
    return add_days(created_at, CART_TTL_DAYS)


# ============================================================================
# Formatting
# ============================================================================


def format_price(cents: int) -> str:
    """Format cents as a Swiss franc amount.

    Args:
        cents: Amount in cents.

    Returns:
        Formatted string, e.g. ``CHF 1'234.50``.
    """
    amount = Decimal(cents) / 100
    return f"{CURRENCY} {amount:,.2f}".replace(",", "'")


def format_date(moment: datetime) -> str:
    """Format a date in Swiss notation (``25.12.2024``)."""
    return moment.strftime("%d.%m.%Y")


def format_datetime(moment: datetime) -> str:
    """Format a timestamp in Swiss notation (``25.12.2024, 14:30``)."""
    return moment.strftime("%d.%m.%Y, %H:%M")
