"""
HTTP surface for the anticipation engine.

Usage:
    from anticipation.api import create_app
    app = create_app(store)
"""

from .server import create_app
from .signals_router import signals_router

__all__ = ["create_app", "signals_router"]
