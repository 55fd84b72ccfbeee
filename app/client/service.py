"""HTTP client performing the view's single message request."""

import logging

import httpx
from pydantic import ValidationError

from app.client.state import DisplayState, Failed, Loaded
from app.schemas.common import Message

logger = logging.getLogger(__name__)


class MessageClient:
    """Fetch the Message Payload and turn the outcome into a Display State.

    No timeout and no retry are applied; every failure is converted into a
    `Failed` state instead of being raised.
    """

    def __init__(
        self,
        base_url: str,
        api_prefix: str = "/api",
        transport: httpx.AsyncBaseTransport | None = None,
    ):
        self.base_url = base_url.rstrip("/")
        self.api_prefix = "/" + api_prefix.strip("/")
        self.transport = transport

    @property
    def message_url(self) -> str:
        return f"{self.base_url}{self.api_prefix}/message"

    async def fetch_state(self) -> DisplayState:
        """Issue the request and return `Loaded` or `Failed`."""

        try:
            async with httpx.AsyncClient(timeout=None, transport=self.transport) as client:
                response = await client.get(self.message_url)
        except (httpx.HTTPError, httpx.InvalidURL) as exc:
            return self._failed(str(exc) or exc.__class__.__name__)

        if not response.is_success:
            return self._failed(f"HTTP error! status: {response.status_code}")

        try:
            payload = Message.model_validate(response.json())
        except ValidationError:
            return self._failed("response body has no message field")
        except ValueError as exc:
            return self._failed(f"invalid JSON body ({exc})")

        return Loaded(payload.message)

    @staticmethod
    def _failed(reason: str) -> Failed:
        logger.warning("Error fetching message: %s", reason)
        return Failed.from_reason(reason)
