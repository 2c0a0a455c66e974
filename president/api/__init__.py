"""
API Module - HTTP and WebSocket surface for President rooms.
"""

from .app import create_app

__all__ = ["create_app"]
