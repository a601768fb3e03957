# middleware/__init__.py
"""
SecureShop middleware.
"""
from .base import ShopMiddleware
from .logging import LoggingMiddleware
from .session import SessionMiddleware, auth_error_response

__all__ = [
    'ShopMiddleware',
    'LoggingMiddleware',
    'SessionMiddleware',
    'auth_error_response',
]
