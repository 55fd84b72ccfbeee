"""Shared lightweight schemas."""

from pydantic import BaseModel, ConfigDict


class Message(BaseModel):
    """Message Payload returned by the API: a single server-defined text field."""

    model_config = ConfigDict(frozen=True)

    message: str
