# auth/email.py
"""
Outbound email contract. Delivery itself lives outside this service.
"""
import logging
from abc import ABC, abstractmethod

logger = logging.getLogger("secureshop.email")


class EmailSender(ABC):

    @abstractmethod
    async def send_password_reset(self, email: str, token: str) -> None:
        ...


class LoggingEmailSender(EmailSender):
    """Development sender that only records that a message would go out."""

    async def send_password_reset(self, email: str, token: str) -> None:
        # Never log the token itself.
        logger.info(f"Password reset email queued for {email}")
