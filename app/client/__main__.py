"""Mount the message view once and print what it renders.

    python -m app.client --base-url http://localhost:3000
"""

import argparse
import asyncio

from app.client.service import MessageClient
from app.client.view import MessageView
from app.core.config import get_settings
from app.core.logging import configure_logging


async def render_once(base_url: str, api_prefix: str) -> str:
    view = MessageView(MessageClient(base_url, api_prefix))
    view.mount()
    await view.settled()
    html = view.render()
    view.unmount()
    return html


def main(argv: list[str] | None = None) -> None:
    settings = get_settings()
    parser = argparse.ArgumentParser(description="Fetch the backend message and print the rendered view.")
    parser.add_argument("--base-url", default=settings.CLIENT_BASE_URL, help="Edge router or API base URL")
    args = parser.parse_args(argv)

    configure_logging(settings.LOG_LEVEL)
    print(asyncio.run(render_once(args.base_url, settings.API_PREFIX)))


if __name__ == "__main__":
    main()
