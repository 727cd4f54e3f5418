"""
Result pattern for explicit error handling.

HTTP clients return a Result instead of raising, so transport problems
travel as values until an adapter turns them into a SyncResult.

Example:
    >>> async def fetch_shop(client: MiraklClient) -> Result[dict, MarketplaceError]:
    ...     result = await client.get_account()
    ...     if isinstance(result, Failure):
    ...         return result
    ...     return Success(result.value)
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING, Never

if TYPE_CHECKING:
    from collections.abc import Callable


@dataclass(frozen=True, slots=True)
class Success[T]:
    """
    Represents a successful result containing a value.

    Attributes:
        value: The success value.
    """

    value: T

    def is_success(self) -> bool:
        """Return True if this is a Success."""
        return True

    def is_failure(self) -> bool:
        """Return False if this is a Success."""
        return False

    def unwrap(self) -> T:
        """Return the success value."""
        return self.value

    def unwrap_or(self, _default: T) -> T:
        """Return the success value (ignores default)."""
        return self.value

    def then[U, E](self, func: Callable[[T], Result[U, E]]) -> Result[U, E]:
        """
        Chain another fallible step onto this value.

        Args:
            func: Step receiving the success value.

        Returns:
            Whatever the step returns.
        """
        return func(self.value)


@dataclass(frozen=True, slots=True)
class Failure[E]:
    """
    Represents a failed result containing an error.

    Attributes:
        error: The error value.
    """

    error: E

    def is_success(self) -> bool:
        """Return False if this is a Failure."""
        return False

    def is_failure(self) -> bool:
        """Return True if this is a Failure."""
        return True

    def unwrap(self) -> Never:
        """
        Raise an error since this is a Failure.

        Raises:
            ValueError: Always, since Failure has no success value.
        """
        raise ValueError(f"Cannot unwrap Failure: {self.error}")

    def unwrap_or[T](self, default: T) -> T:
        """Return the default value since this is a Failure."""
        return default

    def then[T, U](self, _func: Callable[[T], Result[U, E]]) -> Failure[E]:
        """Skip the step; the failure short-circuits the chain."""
        return self


# Type alias for Result
type Result[T, E] = Success[T] | Failure[E]


def success[T](value: T) -> Success[T]:
    """Create a Success result."""
    return Success(value)


def failure[E](error: E) -> Failure[E]:
    """Create a Failure result."""
    return Failure(error)
