"""
Configuration for Backend LD Growth.

Loads settings from environment variables (and a project-root .env) and
exposes them as a single typed Settings object.
"""

from backend_ldgrowth.config.settings import Settings, get_settings  # noqa: F401

__all__ = ["Settings", "get_settings"]
