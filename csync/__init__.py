"""
Core package for the course content sync pipeline.

This module is intentionally lightweight so the package can be imported
before the store client or content tree helpers are configured.
"""

from importlib import metadata


def get_version() -> str:
    """Return the installed project version."""
    try:
        return metadata.version("coursesync")
    except metadata.PackageNotFoundError:
        return "0.0.0"


__all__ = ["get_version"]
