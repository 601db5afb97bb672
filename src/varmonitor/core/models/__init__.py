"""Shared models."""

from varmonitor.core.models.base import Provenance, Result, TransformReason

__all__ = [
    "Provenance",
    "Result",
    "TransformReason",
]
