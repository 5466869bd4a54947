"""Luma adapter - Event registration and email sign-in API."""

from .client import LumaClient

__all__ = ["LumaClient"]
