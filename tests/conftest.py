"""Shared fixtures: isolated settings, a throwaway static root, and in-process HTTP clients."""

from pathlib import Path

import pytest
from httpx import ASGITransport, AsyncClient

from app.core.config import Settings
from app.main import create_application

ENTRY_HTML = "<!doctype html><html><body><div id=\"root\">entry</div></body></html>"


@pytest.fixture
def static_dir(tmp_path: Path) -> Path:
    root = tmp_path / "static"
    (root / "assets").mkdir(parents=True)
    (root / "index.html").write_text(ENTRY_HTML, encoding="utf-8")
    (root / "assets" / "app.js").write_text("console.log('app');\n" * 100, encoding="utf-8")
    (root / "assets" / "logo.svg").write_text("<svg xmlns=\"http://www.w3.org/2000/svg\"/>", encoding="utf-8")
    return root


@pytest.fixture
def settings(static_dir: Path) -> Settings:
    """Settings independent of any local .env file."""
    return Settings(
        _env_file=None,
        STATIC_DIR=str(static_dir),
        DEV_API_TARGET="http://localhost:4000",
        EDGE_API_TARGET="http://backend:4000",
    )


@pytest.fixture
def api_app(settings: Settings):
    return create_application(settings)


@pytest.fixture
async def api_client(api_app):
    async with AsyncClient(transport=ASGITransport(app=api_app), base_url="http://test") as ac:
        yield ac
