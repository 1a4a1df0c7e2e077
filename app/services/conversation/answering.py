"""HTTP client for the remote answering service."""

import logging
from typing import Optional

import httpx

from app.core.config import settings
from app.core.errors import RemoteServiceError

logger = logging.getLogger(__name__)


class AnsweringServiceClient:
    """Ask the answering service for a reply.

    The service takes ``{"input": ..., "session_id": ...}`` and answers with a
    JSON object whose ``reply`` field holds the bot text.
    """

    def __init__(self, url: Optional[str] = None, timeout: Optional[float] = None,
                 transport: Optional[httpx.AsyncBaseTransport] = None):
        self.url = url or settings.ANSWERING_SERVICE_URL
        self.timeout = timeout or settings.ANSWERING_SERVICE_TIMEOUT
        self._transport = transport

    async def ask(self, content: str, session_id: str) -> str:
        """Send one user turn and return the reply text.

        Raises:
            RemoteServiceError: On transport errors, timeouts, non-2xx
                responses, or a body without a usable ``reply``
        """
        payload = {"input": content, "session_id": session_id}
        try:
            async with httpx.AsyncClient(timeout=self.timeout, transport=self._transport) as client:
                response = await client.post(self.url, json=payload)
        except httpx.TimeoutException as e:
            logger.error(f"Answering service timed out after {self.timeout}s")
            raise RemoteServiceError("Answering service timed out") from e
        except httpx.HTTPError as e:
            logger.error(f"Answering service request failed: {e}")
            raise RemoteServiceError("Failed to reach answering service") from e

        if response.status_code < 200 or response.status_code >= 300:
            logger.error(f"Answering service returned {response.status_code}: {response.text[:200]}")
            raise RemoteServiceError(f"Answering service returned status {response.status_code}")

        try:
            data = response.json()
        except ValueError as e:
            raise RemoteServiceError("Answering service returned invalid JSON") from e

        reply = data.get("reply") if isinstance(data, dict) else None
        if not isinstance(reply, str) or not reply.strip():
            raise RemoteServiceError("Answering service returned no reply")

        return reply.strip()
