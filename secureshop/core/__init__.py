"""
Core configuration and security helpers for SecureShop.
"""
from .config import Settings, settings, get_settings
from .security import (
    PasswordHasher,
    generate_session_id,
    generate_token,
    hash_token,
)

__all__ = [
    'Settings', 'settings', 'get_settings',
    'PasswordHasher', 'generate_session_id', 'generate_token', 'hash_token',
]
