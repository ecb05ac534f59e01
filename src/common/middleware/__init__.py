"""Common middleware for UniEvents."""

from .observability import StructlogContextMiddleware

__all__ = ["StructlogContextMiddleware"]
