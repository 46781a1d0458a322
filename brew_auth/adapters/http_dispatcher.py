"""
HTTP Reset Dispatcher - Sends reset messages through a transactional mail API.
"""

from typing import Optional

import httpx

from brew_auth.ports.dispatcher_port import ResetDispatcherPort, DispatchResult
from brew_auth.domain.reset import reset_link
from brew_auth.observability import get_logger

logger = get_logger(__name__)


class HttpResetDispatcher(ResetDispatcherPort):
    """
    Mail-API dispatcher.

    POSTs a JSON message to `api_url` with a bearer key. Every request is
    bounded by `timeout` seconds; network and HTTP errors become a failed
    DispatchResult.
    """

    def __init__(
        self,
        api_url: str,
        reset_url_base: str,
        sender: str,
        api_key: Optional[str] = None,
        timeout: float = 5.0,
        http_client: Optional[httpx.Client] = None,
    ):
        """
        Initialize HTTP dispatcher.

        Args:
            api_url: Mail API endpoint
            reset_url_base: Page that accepts ?token=<secret>
            sender: From address
            api_key: Bearer key for the mail API
            timeout: Request deadline in seconds
            http_client: Optional preconfigured httpx.Client
        """
        self._api_url = api_url
        self._reset_url_base = reset_url_base
        self._sender = sender
        self._api_key = api_key
        self._client = http_client or httpx.Client(timeout=timeout)

    def send_reset_message(
        self,
        destination: str,
        secret: str,
        display_name: str,
    ) -> DispatchResult:
        """Send a reset message via the mail API."""
        link = reset_link(self._reset_url_base, secret)
        headers = {"Authorization": f"Bearer {self._api_key}"} if self._api_key else {}
        message = {
            "from": self._sender,
            "to": destination,
            "subject": "Reset your password",
            "text": (
                f"Hi {display_name},\n\n"
                "We received a request to reset your password. "
                f"Open this link within one hour to choose a new one:\n\n{link}\n\n"
                "If you did not ask for this, you can ignore this email."
            ),
        }

        try:
            response = self._client.post(self._api_url, json=message, headers=headers)
            response.raise_for_status()
        except httpx.HTTPStatusError as e:
            return DispatchResult(success=False, error=f"mail api returned {e.response.status_code}")
        except httpx.HTTPError as e:
            return DispatchResult(success=False, error=f"mail api unreachable: {type(e).__name__}")

        logger.info("reset_message_sent", transport="http")
        return DispatchResult(success=True)
