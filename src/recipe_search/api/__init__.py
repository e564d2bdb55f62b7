"""HTTP API for recipe search."""

from .server import create_app, main, run_api_server

__all__ = ["create_app", "main", "run_api_server"]
