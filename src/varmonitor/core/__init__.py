"""Core module - configuration, logging, errors, and shared models."""

from varmonitor.core.config import Settings, get_settings
from varmonitor.core.exceptions import (
    ConfigurationInvalidError,
    InvalidInputError,
    TransformFailedError,
    UnsupportedTypeError,
    VarMonitorError,
)
from varmonitor.core.models.base import Provenance, Result, TransformReason

__all__ = [
    # Config
    "Settings",
    "get_settings",
    # Errors
    "VarMonitorError",
    "InvalidInputError",
    "UnsupportedTypeError",
    "ConfigurationInvalidError",
    "TransformFailedError",
    # Models
    "Provenance",
    "Result",
    "TransformReason",
]
