"""
Command Line Interface for SecureShop.

This module provides the main entry point for the SecureShop CLI.
It imports and registers all command groups from the commands package.
"""
from .commands import app

__all__ = ['app']
