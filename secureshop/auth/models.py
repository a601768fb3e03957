# auth/models.py
"""
Database models owned by the identity subsystem.
"""
from datetime import datetime
from enum import Enum
from typing import Optional

from sqlalchemy import Boolean, DateTime, String, Text
from sqlalchemy.orm import Mapped, mapped_column

from ..db import Base
from ..utils.datetime import get_current_time


class Role(str, Enum):
    """Account roles."""
    CUSTOMER = "customer"
    MANAGER = "manager"
    ADMIN = "admin"


class Account(Base):
    """Account credentials and lockout state."""
    __tablename__ = "accounts"

    email: Mapped[str] = mapped_column(String(255), unique=True, index=True, nullable=False)
    password_hash: Mapped[str] = mapped_column(String(255), nullable=False)
    role: Mapped[str] = mapped_column(String(20), default=Role.CUSTOMER.value, nullable=False)
    is_active: Mapped[bool] = mapped_column(Boolean, default=True, nullable=False)
    failed_login_attempts: Mapped[int] = mapped_column(default=0, nullable=False)
    locked_until: Mapped[Optional[datetime]] = mapped_column(DateTime, nullable=True)
    last_login_at: Mapped[Optional[datetime]] = mapped_column(DateTime, nullable=True)


class AuthAuditLog(Base):
    """Authentication audit log model."""
    __tablename__ = "auth_audit_logs"

    account_id: Mapped[Optional[int]] = mapped_column(nullable=True, index=True)
    event: Mapped[str] = mapped_column(String(50), nullable=False)
    details: Mapped[Optional[str]] = mapped_column(Text, nullable=True)  # JSON string
    timestamp: Mapped[datetime] = mapped_column(DateTime, default=get_current_time, nullable=False)
