"""HTTP API for setpace."""

from .app import create_app

__all__ = ["create_app"]
