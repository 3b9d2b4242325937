"""
Application configuration using Pydantic settings.

Configuration comes from ``CCTV_``-prefixed environment variables with
defaults for the original camera host. Supports a mock remote for local
development.
"""

from .settings import Settings, get_settings

__all__ = ["Settings", "get_settings"]
