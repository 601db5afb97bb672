"""Base models and types used across all modules.

This module contains the fundamental types that don't belong to any specific
analysis module.
"""

from __future__ import annotations

from enum import Enum
from typing import Generic, TypeVar

from pydantic import BaseModel, Field

T = TypeVar("T")


class Result(BaseModel, Generic[T]):
    """Result type for operations that can fail.

    Use this instead of exceptions for expected failures.
    Exceptions are reserved for unexpected/programming errors.
    """

    success: bool
    value: T | None = None
    error: str | None = None
    warnings: list[str] = Field(default_factory=list)

    @classmethod
    def ok(cls, value: T, warnings: list[str] | None = None) -> Result[T]:
        """Create a successful result."""
        return cls(success=True, value=value, warnings=warnings or [])

    @classmethod
    def fail(cls, error: str) -> Result[T]:
        """Create a failed result."""
        return cls(success=False, error=error)

    def unwrap(self) -> T:
        """Get the value or raise if failed."""
        if not self.success:
            raise ValueError(f"Result failed: {self.error}")
        assert self.value is not None
        return self.value


# === Enums ===


class Provenance(str, Enum):
    """Where a long-layout summary row comes from."""

    PER_BUCKET = "per-bucket"
    GLOBAL = "global"


class TransformReason(str, Enum):
    """Why the distribution view was (or was not) put on a log scale."""

    APPLIED = "applied"
    SKIPPED_NON_POSITIVE = "skipped_non_positive"
    SKIPPED_LOW_CARDINALITY = "skipped_low_cardinality"
    SKIPPED_BELOW_THRESHOLD = "skipped_below_threshold"
    FAILED_FALLBACK = "failed_fallback"
    DISABLED = "disabled"  # No skew threshold configured
