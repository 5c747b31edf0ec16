"""Half-unit currency values.

Rates and targets are stored as half-currency-units (a $30/hour rate is stored
as 60). ``Money`` keeps that raw figure and owns every conversion to and from
display dollars so no caller divides or multiplies by two on its own.
"""

from dataclasses import dataclass
from typing import Union

Number = Union[int, float]

HALF_UNITS_PER_DOLLAR = 2


@dataclass(frozen=True, order=True)
class Money:
    """Amount of money expressed in half-currency-units.

    Attributes:
        units: Raw half-unit figure (e.g. 100 means $50.00)
    """

    units: Number = 0

    @classmethod
    def from_dollars(cls, dollars: Number) -> "Money":
        """Create Money from a nominal dollar figure.

        Args:
            dollars: Dollar amount as typed by a user

        Returns:
            Money holding ``dollars * 2`` half-units
        """
        return cls(dollars * HALF_UNITS_PER_DOLLAR)

    @property
    def dollars(self) -> float:
        """Nominal dollar value."""
        return self.units / HALF_UNITS_PER_DOLLAR

    def format_dollars(self, suffix: str = "") -> str:
        """Render as ``$1,234.50`` with an optional suffix such as ``/hour``."""
        return f"${self.dollars:,.2f}{suffix}"

    def __add__(self, other: "Money") -> "Money":
        if not isinstance(other, Money):
            return NotImplemented
        return Money(self.units + other.units)

    def __sub__(self, other: "Money") -> "Money":
        if not isinstance(other, Money):
            return NotImplemented
        return Money(self.units - other.units)

    def __str__(self) -> str:
        return self.format_dollars()


def to_dollars(units: Number) -> float:
    """Convert a raw half-unit figure to dollars."""
    return Money(units).dollars


def from_dollars(dollars: Number) -> Number:
    """Convert dollars to a raw half-unit figure."""
    return Money.from_dollars(dollars).units
