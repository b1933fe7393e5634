"""Domain models for stored values."""

from .stored_value import ImageValue, OpaqueValue, StoredValue, classify

__all__ = ["ImageValue", "OpaqueValue", "StoredValue", "classify"]
