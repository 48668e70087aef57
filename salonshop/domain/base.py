"""Base classes for domain layer.

Provides the value-object base and the structured validation result
returned by every validating operation of the cart and order engines.
"""

from abc import ABC
from dataclasses import dataclass, field
from typing import Self


# ============================================================================
# Value Object Base
# ============================================================================


@dataclass(frozen=True)
class ValueObject(ABC):
    """Base class for value objects.

    Value objects are immutable and compared by their attributes,
    not by identity. Every engine operation takes value objects in
    and hands new ones back; nothing is mutated in place.

    Example:
        @dataclass(frozen=True)
        class ShippingOption(ValueObject):
            type: ShippingMethodType
            price_cents: int
    """

    pass


# ============================================================================
# Validation Result
# ============================================================================


@dataclass(frozen=True)
class ValidationResult(ValueObject):
    """Outcome of a business-rule validation.

    Validation failures are expected and recoverable, so they travel as
    values. ``errors`` holds human-readable messages meant for display.

    Attributes:
        valid: True when no rule was violated.
        errors: Messages describing each violated rule.
    """

    valid: bool
    errors: tuple[str, ...] = field(default_factory=tuple)

    @classmethod
    def from_errors(cls, errors: list[str]) -> Self:
        """Build a result from collected error messages.

        Args:
            errors: Messages collected during validation.

        Returns:
            Valid result if the list is empty, invalid otherwise.
        """
        return cls(valid=not errors, errors=tuple(errors))

    def __bool__(self) -> bool:
        return self.valid
