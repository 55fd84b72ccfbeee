from app.schemas.common import Message

__all__ = [
    "Message",
]
