"""
Session token verification.

Implements the SessionAccessor protocol from core.canvas.ports.
"""

from .sessions import SessionTokenCodec, TokenSessionAccessor

__all__ = ["SessionTokenCodec", "TokenSessionAccessor"]
