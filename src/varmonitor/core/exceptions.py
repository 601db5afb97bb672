"""Exception hierarchy.

Exceptions cover the failures callers must react to (bad input types, missing
columns). Per-bucket degenerate statistics and failed log transforms are caught
inside the analysis modules and surface as NaN values or a fallback decision.
"""

from __future__ import annotations


class VarMonitorError(Exception):
    """Base class for all varmonitor errors."""


class InvalidInputError(VarMonitorError):
    """A statistic is undefined for the given input, or a required column is absent."""


class UnsupportedTypeError(VarMonitorError):
    """Column dtype cannot be summarized without losing precision or meaning."""

    def __init__(self, column: str, dtype: str, reason: str):
        self.column = column
        self.dtype = dtype
        self.reason = reason
        super().__init__(f"Cannot summarize column '{column}' of type {dtype}: {reason}")


class ConfigurationInvalidError(VarMonitorError):
    """A tuning parameter was malformed and has been replaced by its default."""


class TransformFailedError(VarMonitorError):
    """A log-scale transform could not be applied."""
