"""
SecureShop database module: async SQLAlchemy engine, declarative base and errors.
"""
from .base import Base
from .session import Database
from .exceptions import DatabaseError, ConnectionError, CredentialStoreError

__all__ = ['Base', 'Database', 'DatabaseError', 'ConnectionError', 'CredentialStoreError']
