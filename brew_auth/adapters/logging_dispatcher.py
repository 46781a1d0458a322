"""
Logging Reset Dispatcher - Records that a message would be sent (development only).
"""

from brew_auth.ports.dispatcher_port import ResetDispatcherPort, DispatchResult
from brew_auth.observability import get_logger

logger = get_logger(__name__)


class LoggingResetDispatcher(ResetDispatcherPort):
    """
    Development dispatcher.

    Logs the destination only and reports failure, so the development
    escape hatch can surface the reset link. The secret is never logged.
    """

    def send_reset_message(
        self,
        destination: str,
        secret: str,
        display_name: str,
    ) -> DispatchResult:
        logger.warning("reset_message_not_sent", transport="none", destination=destination)
        return DispatchResult(success=False, error="no mail transport configured")
