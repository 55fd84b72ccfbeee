"""Builds the Message Payload served by the API handler."""

from app.schemas.common import Message


class MessageService:
    """Hands out a fresh payload per request; holds no mutable state."""

    def __init__(self, text: str):
        self.text = text

    def current(self) -> Message:
        """Construct the payload for one response."""
        return Message(message=self.text)
