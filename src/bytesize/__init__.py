"""Byte-Size AI backend: conversation store, model catalog and request router."""

__version__ = "0.3.0"
