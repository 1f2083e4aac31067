"""Configuration module for KV-Dict."""

from .settings import Settings, settings

__all__ = ["Settings", "settings"]
