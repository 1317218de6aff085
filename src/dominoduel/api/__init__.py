"""HTTP API for playing against the domino AI."""

from .app import create_app  # noqa: F401
