"""
Reset Dispatcher Port - Outbound delivery of reset secrets.

Implementations:
- HttpResetDispatcher: Transactional mail HTTP API
- SmtpResetDispatcher: Plain SMTP
- LoggingResetDispatcher: Logs the event only (development)
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Optional


@dataclass
class DispatchResult:
    """Outcome of a delivery attempt. Never carries the secret."""
    success: bool
    error: Optional[str] = None


class ResetDispatcherPort(ABC):
    """Port: Deliver a reset secret to the principal's registered address."""

    @abstractmethod
    def send_reset_message(
        self,
        destination: str,
        secret: str,
        display_name: str,
    ) -> DispatchResult:
        """
        Send a reset message.

        Best-effort. Implementations apply their own network deadline and
        should report failures through the result rather than raising.

        Args:
            destination: Recipient email address
            secret: URL-safe reset secret
            display_name: Name used in the greeting

        Returns:
            DispatchResult
        """
        pass
