"""Static asset lookup and entry-document fallback for the edge router."""

import mimetypes
from pathlib import Path

from starlette.requests import Request
from starlette.responses import FileResponse, PlainTextResponse, Response


class StaticSite:
    """Serve files below a root directory, falling back to one entry document."""

    def __init__(self, root: str | Path, entry_document: str = "index.html"):
        self.root = Path(root).resolve()
        self.entry_document = entry_document

    def find_asset(self, path: str) -> Path | None:
        """Resolve a URL path to an existing regular file inside the root.

        Paths escaping the root (e.g. through `..`) and paths the filesystem
        rejects (embedded NUL, over-long names) are treated as missing.
        """
        relative = path.lstrip("/")
        if not relative:
            return None
        try:
            candidate = (self.root / relative).resolve()
            if not candidate.is_relative_to(self.root) or not candidate.is_file():
                return None
        except (ValueError, OSError):
            return None
        return candidate

    def has_asset(self, path: str) -> bool:
        return self.find_asset(path) is not None

    async def serve_asset(self, request: Request) -> Response:
        asset = self.find_asset(request.url.path)
        if asset is None:
            return await self.serve_entry_document(request)
        return self._file_response(asset)

    async def serve_entry_document(self, request: Request) -> Response:
        entry = self.root / self.entry_document
        if not entry.is_file():
            return PlainTextResponse(f"{self.entry_document} not found in static folder.", status_code=404)
        return self._file_response(entry)

    @staticmethod
    def _file_response(path: Path) -> FileResponse:
        media_type, _ = mimetypes.guess_type(path.name)
        return FileResponse(path, media_type=media_type or "application/octet-stream")
