# auth/audit.py
"""
Authentication audit logging.

Audit writes are fire-and-forget: they are scheduled as background tasks and
a failing sink is logged, never propagated to the request that triggered it.
"""
import asyncio
import json
import logging
from abc import ABC, abstractmethod
from enum import Enum
from typing import Any, Dict, List, Optional, Set

from ..db import Database
from .models import AuthAuditLog

logger = logging.getLogger("secureshop.audit")


class AuditAction(str, Enum):
    """Audit event names."""
    LOGIN = "auth.login"
    LOGOUT = "auth.logout"
    LOGIN_FAILED = "auth.failed_login"
    ACCOUNT_LOCKED = "auth.account_locked"
    TOKEN_REFRESH = "auth.token_refresh"
    REFRESH_REUSE = "auth.refresh_reuse"
    PASSWORD_RESET_REQUESTED = "auth.password_reset_requested"
    PASSWORD_RESET = "auth.password_reset"
    USER_CREATED = "user.created"


class AuditSink(ABC):
    """Destination for audit events."""

    @abstractmethod
    async def record(self, event_name: str, account_id: Optional[int], metadata: Dict[str, Any]) -> None:
        ...


class LoggingAuditSink(AuditSink):
    """Write audit events to the ``secureshop.audit`` logger."""

    async def record(self, event_name, account_id, metadata) -> None:
        logger.info(f"{event_name} account={account_id} {json.dumps(metadata, default=str)}")


class DatabaseAuditSink(AuditSink):
    """Persist audit events to the ``auth_audit_logs`` table."""

    def __init__(self, database: Database):
        self.database = database

    async def record(self, event_name, account_id, metadata) -> None:
        async with self.database.session() as session:
            session.add(AuthAuditLog(
                account_id=account_id,
                event=event_name,
                details=json.dumps(metadata, default=str) if metadata else None,
            ))


class AuditService:
    """Schedules audit writes without blocking the caller."""

    def __init__(self, sinks: List[AuditSink]):
        self.sinks = sinks
        self._pending: Set[asyncio.Task] = set()

    def record(
        self,
        action: AuditAction,
        account_id: Optional[int] = None,
        **metadata: Any,
    ) -> None:
        """Log an authentication event in the background."""
        for sink in self.sinks:
            task = asyncio.create_task(self._deliver(sink, action.value, account_id, metadata))
            self._pending.add(task)
            task.add_done_callback(self._pending.discard)

    async def _deliver(self, sink: AuditSink, event_name, account_id, metadata) -> None:
        try:
            await sink.record(event_name, account_id, metadata)
        except Exception as e:
            logger.error(f"Audit sink {type(sink).__name__} failed for {event_name}: {e}")

    async def drain(self) -> None:
        """Wait for scheduled audit writes to finish."""
        if self._pending:
            await asyncio.gather(*list(self._pending), return_exceptions=True)
