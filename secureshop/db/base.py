"""
Base database models and utilities.
"""
from datetime import datetime

from sqlalchemy import DateTime, Integer
from sqlalchemy.orm import DeclarativeBase, Mapped, declared_attr, mapped_column

from ..utils.datetime import get_current_time


class Base(DeclarativeBase):
    """Base class for all database models."""

    id: Mapped[int] = mapped_column(Integer, primary_key=True, index=True)
    created_at: Mapped[datetime] = mapped_column(DateTime, default=get_current_time, nullable=False)
    updated_at: Mapped[datetime] = mapped_column(
        DateTime, default=get_current_time, onupdate=get_current_time, nullable=False
    )

    @declared_attr.directive
    def __tablename__(cls) -> str:
        """
        Generate table name automatically.
        Convert CamelCase class name to snake_case table name.
        """
        name = ''
        for i, char in enumerate(cls.__name__):
            if i > 0 and char.isupper() and not cls.__name__[i-1].isupper():
                name += '_' + char.lower()
            else:
                name += char.lower()
        return name
