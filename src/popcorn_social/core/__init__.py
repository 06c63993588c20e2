"""Core configuration for the popcorn social package."""

from .settings import Settings, settings

__all__ = ["Settings", "settings"]
