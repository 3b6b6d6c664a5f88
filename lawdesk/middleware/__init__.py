"""
Middleware Package
==================

Starlette middleware shared by the app.
"""

from .security import SecurityHeadersMiddleware

__all__ = ["SecurityHeadersMiddleware"]
