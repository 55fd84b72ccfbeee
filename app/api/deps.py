"""Dependency providers used by FastAPI endpoints.

Route handlers stay thin: the settings instance is attached to the application
state by `create_application`, and services are composed from it here.
"""

from fastapi import Depends, Request

from app.core.config import Settings, get_settings
from app.services.message import MessageService


def get_app_settings(request: Request) -> Settings:
    """Return the settings the running application was built with."""
    return getattr(request.app.state, "settings", None) or get_settings()


def get_message_service(settings: Settings = Depends(get_app_settings)) -> MessageService:
    """Assemble the MessageService with the configured payload text."""
    return MessageService(settings.SERVER_MESSAGE)
