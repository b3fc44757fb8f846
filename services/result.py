"""
Result type for consistent error handling across services.

Services return success/failure states instead of raising for business-rule
failures, so the command layer can surface the message verbatim.

Usage:
    # Returning success
    return Result.ok(pick)  # Result with value
    return Result.ok()      # Result without value (for void operations)

    # Returning failure
    return Result.fail("Picks for this gameweek are locked")
    return Result.fail("Picks for this gameweek are locked", code=PICK_LOCKED)

    # Checking results
    if result.success:
        print(result.value)
    else:
        print(f"Error ({result.error_code}): {result.error}")
"""

from dataclasses import dataclass
from typing import Generic, TypeVar

T = TypeVar("T")


@dataclass(frozen=True)
class Result(Generic[T]):
    """
    A simple result type for service method return values.

    Attributes:
        success: Whether the operation succeeded
        value: The return value if successful (None if failed or void operation)
        error: User-facing error message if failed (None if successful)
        error_code: Error code from services.error_codes for programmatic handling
    """

    success: bool
    value: T | None = None
    error: str | None = None
    error_code: str | None = None

    @classmethod
    def ok(cls, value: T | None = None) -> "Result[T]":
        """Create a successful result with an optional value."""
        return cls(success=True, value=value)

    @classmethod
    def fail(cls, error: str, code: str | None = None) -> "Result[T]":
        """Create a failed result with an error message and optional error code."""
        return cls(success=False, error=error, error_code=code)

    def __bool__(self) -> bool:
        """Allow using Result in boolean context: if result: ..."""
        return self.success
