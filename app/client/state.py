"""Display State of the message view: Pending, Loaded(text) or Failed(text)."""

from dataclasses import dataclass
from typing import Union

PLACEHOLDER = "loading..."
FAILURE_PREFIX = "Failed to fetch message: "


@dataclass(frozen=True)
class Pending:
    """Set at mount time, before the one request settles."""

    @property
    def text(self) -> str:
        return PLACEHOLDER


@dataclass(frozen=True)
class Loaded:
    text: str


@dataclass(frozen=True)
class Failed:
    text: str

    @classmethod
    def from_reason(cls, reason: str) -> "Failed":
        return cls(FAILURE_PREFIX + reason)


DisplayState = Union[Pending, Loaded, Failed]
