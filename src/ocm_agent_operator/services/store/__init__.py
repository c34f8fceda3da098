"""Object store interface."""

from .base import ObjectStore

__all__ = ["ObjectStore"]
