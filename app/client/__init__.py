from app.client.service import MessageClient
from app.client.state import DisplayState, Failed, Loaded, Pending
from app.client.view import MessageView

__all__ = [
    "DisplayState",
    "Failed",
    "Loaded",
    "MessageClient",
    "MessageView",
    "Pending",
]
