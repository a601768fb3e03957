"""
API routers for SecureShop.
"""
from .auth import PUBLIC_PATHS, router as auth_router

__all__ = ["auth_router", "PUBLIC_PATHS"]
