"""
SMTP Reset Dispatcher - Sends reset messages over SMTP (STARTTLS).
"""

import smtplib
from email.message import EmailMessage
from typing import Optional

from brew_auth.ports.dispatcher_port import ResetDispatcherPort, DispatchResult
from brew_auth.domain.reset import reset_link


class SmtpResetDispatcher(ResetDispatcherPort):
    """
    SMTP dispatcher (e.g. Gmail with an app password).

    Not configured (no username/password) means every send fails fast with
    a DispatchResult, the same way a down server does.
    """

    def __init__(
        self,
        host: str,
        reset_url_base: str,
        sender: str,
        port: int = 587,
        username: Optional[str] = None,
        password: Optional[str] = None,
        timeout: float = 5.0,
    ):
        self._host = host
        self._port = port
        self._reset_url_base = reset_url_base
        self._sender = sender
        self._username = username
        self._password = password
        self._timeout = timeout

    def send_reset_message(
        self,
        destination: str,
        secret: str,
        display_name: str,
    ) -> DispatchResult:
        """Send a reset message via SMTP."""
        if not self._username or not self._password:
            return DispatchResult(success=False, error="smtp credentials not configured")

        message = EmailMessage()
        message["From"] = self._sender
        message["To"] = destination
        message["Subject"] = "Reset your password"
        message.set_content(
            f"Hi {display_name},\n\n"
            "We received a request to reset your password. "
            "Open this link within one hour to choose a new one:\n\n"
            f"{reset_link(self._reset_url_base, secret)}\n\n"
            "If you did not ask for this, you can ignore this email."
        )

        try:
            with smtplib.SMTP(self._host, self._port, timeout=self._timeout) as smtp:
                smtp.starttls()
                smtp.login(self._username, self._password)
                smtp.send_message(message)
        except (smtplib.SMTPException, OSError) as e:
            return DispatchResult(success=False, error=f"smtp: {type(e).__name__}")

        return DispatchResult(success=True)
