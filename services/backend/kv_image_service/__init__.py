"""HTTP key-value store with image transformations."""

__version__ = "0.1.0"
