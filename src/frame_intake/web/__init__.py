"""ASGI entry point for the frame intake webhook service."""

from .app import create_app

app = create_app()

__all__ = ["create_app", "app"]
