"""Message view component: mount, one fetch, render, unmount."""

import asyncio
from html import escape

from app.client.service import MessageClient
from app.client.state import DisplayState, Pending

TITLE = "Full-stack Deploy Demo"


class MessageView:
    """Holds the Display State for one mount and renders it as HTML.

    `mount()` starts exactly one fetch. The request is never cancelled; if it
    settles after `unmount()` (or a later remount) its result is discarded.
    Fetches from earlier mounts stay referenced in `in_flight` until they finish.
    """

    def __init__(self, client: MessageClient):
        self.client = client
        self._state: DisplayState | None = None
        self._task: asyncio.Task | None = None
        self._mount_count = 0
        self.in_flight: set[asyncio.Task] = set()

    @property
    def mounted(self) -> bool:
        return self._state is not None

    @property
    def state(self) -> DisplayState:
        if self._state is None:
            raise RuntimeError("The view is not mounted.")
        return self._state

    def mount(self) -> None:
        """Enter `Pending` and schedule the fetch on the running event loop."""
        if self.mounted:
            raise RuntimeError("The view is already mounted.")
        loop = asyncio.get_running_loop()
        self._state = Pending()
        self._mount_count += 1
        self._task = loop.create_task(self._load(self._mount_count))
        self.in_flight.add(self._task)
        self._task.add_done_callback(self.in_flight.discard)

    async def _load(self, mount_id: int) -> None:
        outcome = await self.client.fetch_state()
        if self._state is not None and mount_id == self._mount_count:
            self._state = outcome

    async def settled(self) -> DisplayState:
        """Wait for the fetch started by the latest `mount()` and return the resulting state.

        Raises `RuntimeError` if the view was never mounted, or if it was
        unmounted before the fetch settled (there is no state left to return).
        """
        if self._task is None:
            raise RuntimeError("The view was never mounted.")
        await self._task
        return self.state

    def unmount(self) -> None:
        self._state = None

    def render(self) -> str:
        return (
            '<div style="padding: 20px; font-family: Arial">'
            f"<h1>{TITLE}</h1>"
            f"<p>Message from backend: <strong>{escape(self.state.text)}</strong></p>"
            "</div>"
        )
