"""
Result pattern for explicit error handling.

Provider calls return either a Success or a Failure instead of raising, so a
batch of per-country fetches can be gathered and classified without one bad
country aborting the rest.

Example:
    >>> def parse_rate(raw: str) -> Result[Decimal, str]:
    ...     try:
    ...         return Success(Decimal(raw))
    ...     except InvalidOperation:
    ...         return Failure(f"Not a rate: {raw}")
    ...
    >>> result = parse_rate("19.00")
    >>> if result.is_success():
    ...     print(f"VAT: {result.unwrap()}%")
    ... else:
    ...     print(f"Error: {result.error}")
    VAT: 19.00%
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Never


@dataclass(frozen=True, slots=True)
class Success[T]:
    """
    Successful outcome carrying a value.

    Attributes:
        value: The success value.
    """

    value: T

    def is_success(self) -> bool:
        """Return True, this is a Success."""
        return True

    def is_failure(self) -> bool:
        """Return False, this is a Success."""
        return False

    def unwrap(self) -> T:
        """Return the contained value."""
        return self.value


@dataclass(frozen=True, slots=True)
class Failure[E]:
    """
    Failed outcome carrying an error.

    Attributes:
        error: The error value.
    """

    error: E

    def is_success(self) -> bool:
        """Return False, this is a Failure."""
        return False

    def is_failure(self) -> bool:
        """Return True, this is a Failure."""
        return True

    def unwrap(self) -> Never:
        """
        Refuse to unwrap a Failure.

        Raises:
            ValueError: Always.
        """
        raise ValueError(f"Cannot unwrap Failure: {self.error}")


type Result[T, E] = Success[T] | Failure[E]


def success[T](value: T) -> Success[T]:
    """Wrap a value in a Success."""
    return Success(value)


def failure[E](error: E) -> Failure[E]:
    """Wrap an error in a Failure."""
    return Failure(error)
