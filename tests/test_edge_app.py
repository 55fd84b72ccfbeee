"""Tests for the edge router application in both profiles.

The upstream API is mocked with respx; the router itself is driven in-process
through ASGITransport.
"""

from pathlib import Path

import httpx
import pytest
from httpx import ASGITransport, AsyncClient, Response
from respx import MockRouter

from app.client.service import MessageClient
from app.client.state import Loaded
from app.edge.main import EdgeProfile, ProfileName, create_edge_application
from app.edge.proxy import UpstreamProxy
from app.main import create_application


@pytest.fixture
async def dev_client(settings):
    app = create_edge_application(ProfileName.DEV, settings)
    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://edge.local") as ac:
        yield ac
    await app.state.proxy.close()


@pytest.fixture
async def deploy_client(settings):
    app = create_edge_application("deploy", settings)
    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://edge.local") as ac:
        yield ac
    await app.state.proxy.close()


class TestProfiles:
    def test_dev_profile(self, settings):
        profile = EdgeProfile.from_settings("dev", settings)

        assert profile.listen_port == 3000
        assert profile.upstream == "http://localhost:4000"
        assert profile.change_origin is True
        assert profile.verify_tls is False

    def test_deploy_profile(self, settings):
        profile = EdgeProfile.from_settings(ProfileName.DEPLOY, settings)

        assert profile.listen_port == 80
        assert profile.upstream == "http://backend:4000"
        assert profile.change_origin is False

    def test_unknown_profile(self, settings):
        with pytest.raises(ValueError):
            EdgeProfile.from_settings("staging", settings)


class TestApiForwarding:
    @pytest.mark.asyncio
    async def test_dev_forwards_with_prefix_preserved(self, dev_client: AsyncClient, respx_mock: MockRouter):
        route = respx_mock.get("http://localhost:4000/api/message").mock(
            return_value=Response(200, json={"message": "Hello from chaicode server"})
        )

        response = await dev_client.get("/api/message")

        assert response.status_code == 200
        assert response.json() == {"message": "Hello from chaicode server"}
        assert route.calls.last.request.url.path == "/api/message"

    @pytest.mark.asyncio
    async def test_dev_rewrites_host_to_upstream(self, dev_client: AsyncClient, respx_mock: MockRouter):
        route = respx_mock.get("http://localhost:4000/api/message").mock(return_value=Response(200, json={}))

        await dev_client.get("/api/message")

        assert route.calls.last.request.headers["host"] == "localhost:4000"

    @pytest.mark.asyncio
    async def test_deploy_keeps_host_and_adds_forwarded_headers(
        self, deploy_client: AsyncClient, respx_mock: MockRouter
    ):
        route = respx_mock.get("http://backend:4000/api/message").mock(return_value=Response(200, json={}))

        await deploy_client.get("/api/message", headers={"X-Forwarded-For": "10.0.0.1"})

        request = route.calls.last.request
        assert request.headers["host"] == "edge.local"
        assert request.headers["x-forwarded-proto"] == "http"
        assert request.headers["x-forwarded-for"].startswith("10.0.0.1, ")
        assert "x-real-ip" in request.headers

    @pytest.mark.asyncio
    async def test_method_query_and_body_are_forwarded(self, dev_client: AsyncClient, respx_mock: MockRouter):
        route = respx_mock.post("http://localhost:4000/api/items", params={"page": "2"}).mock(
            return_value=Response(201, json={"id": 1}, headers={"X-Upstream": "yes"})
        )

        response = await dev_client.post(
            "/api/items?page=2", content=b'{"name":"thing"}', headers={"Content-Type": "application/json"}
        )

        assert response.status_code == 201
        assert response.headers["x-upstream"] == "yes"
        assert route.calls.last.request.content == b'{"name":"thing"}'

    @pytest.mark.asyncio
    async def test_upstream_status_is_relayed(self, dev_client: AsyncClient, respx_mock: MockRouter):
        respx_mock.get("http://localhost:4000/api/missing").mock(return_value=Response(404, json={"detail": "Not Found"}))

        response = await dev_client.get("/api/missing")

        assert response.status_code == 404
        assert response.json() == {"detail": "Not Found"}

    @pytest.mark.asyncio
    async def test_hop_by_hop_headers_are_dropped(self, dev_client: AsyncClient, respx_mock: MockRouter):
        route = respx_mock.get("http://localhost:4000/api/message").mock(return_value=Response(200, json={}))

        await dev_client.get("/api/message", headers={"Connection": "keep-alive, X-Private", "X-Private": "1"})

        request = route.calls.last.request
        assert "x-private" not in request.headers
        assert request.headers.get("connection") != "keep-alive, X-Private"

    @pytest.mark.asyncio
    async def test_encoded_path_is_forwarded_unchanged(self, dev_client: AsyncClient, respx_mock: MockRouter):
        route = respx_mock.route(method="GET").mock(return_value=Response(200, json={}))

        await dev_client.get("/api/a%3Fb%2Fc?x=%2F")

        request = route.calls.last.request
        assert request.url.raw_path == b"/api/a%3Fb%2Fc?x=%2F"
        assert request.url.query == b"x=%2F"

    @pytest.mark.asyncio
    async def test_unreachable_upstream_is_bad_gateway(self, dev_client: AsyncClient, respx_mock: MockRouter):
        respx_mock.get("http://localhost:4000/api/message").mock(side_effect=httpx.ConnectError("Connection refused"))

        response = await dev_client.get("/api/message")

        assert response.status_code == 502


class TestStaticAndFallback:
    @pytest.mark.asyncio
    async def test_serves_existing_asset(self, dev_client: AsyncClient):
        response = await dev_client.get("/assets/logo.svg")

        assert response.status_code == 200
        assert response.headers["content-type"].startswith("image/svg+xml")

    @pytest.mark.asyncio
    async def test_missing_path_returns_entry_document(self, dev_client: AsyncClient):
        response = await dev_client.get("/dashboard/settings")

        assert response.status_code == 200
        assert response.headers["content-type"].startswith("text/html")
        assert 'id="root"' in response.text

    @pytest.mark.asyncio
    async def test_root_returns_entry_document(self, deploy_client: AsyncClient):
        response = await deploy_client.get("/")

        assert response.status_code == 200
        assert 'id="root"' in response.text

    @pytest.mark.asyncio
    async def test_lookalike_prefix_is_not_forwarded(self, dev_client: AsyncClient, respx_mock: MockRouter):
        response = await dev_client.get("/apix")

        assert response.status_code == 200
        assert 'id="root"' in response.text
        assert not respx_mock.calls

    @pytest.mark.asyncio
    async def test_nul_byte_path_returns_entry_document(self, dev_client: AsyncClient):
        response = await dev_client.get("/foo%00bar")

        assert response.status_code == 200
        assert 'id="root"' in response.text

    @pytest.mark.asyncio
    async def test_traversal_falls_back_to_entry_document(self, dev_client: AsyncClient, static_dir):
        (static_dir.parent / "secret.txt").write_text("secret", encoding="utf-8")

        response = await dev_client.get("/assets/%2E%2E/%2E%2E/secret.txt")

        assert "secret" not in response.text

    @pytest.mark.asyncio
    async def test_gzip_when_client_accepts_it(self, dev_client: AsyncClient):
        response = await dev_client.get("/assets/app.js", headers={"Accept-Encoding": "gzip"})

        assert response.headers["content-encoding"] == "gzip"
        assert response.text.startswith("console.log")

    @pytest.mark.asyncio
    async def test_no_compression_without_accept_encoding(self, dev_client: AsyncClient):
        response = await dev_client.get("/assets/app.js", headers={"Accept-Encoding": "identity"})

        assert "content-encoding" not in response.headers

    @pytest.mark.asyncio
    async def test_missing_entry_document_is_404(self, settings, static_dir):
        (static_dir / "index.html").unlink()
        app = create_edge_application("dev", settings)

        async with AsyncClient(transport=ASGITransport(app=app), base_url="http://edge.local") as client:
            response = await client.get("/anything")

        assert response.status_code == 404


@pytest.mark.asyncio
async def test_client_through_edge_to_api(settings):
    """Client -> edge router -> API service, all in-process."""
    api = create_application(settings)
    proxy = UpstreamProxy("http://backend:4000", transport=ASGITransport(app=api))
    edge = create_edge_application("deploy", settings, proxy=proxy)

    client = MessageClient("http://edge.local", transport=ASGITransport(app=edge))

    assert await client.fetch_state() == Loaded("Hello from chaicode server")
    await proxy.close()


@pytest.mark.asyncio
async def test_shipped_entry_document_fetches_message(settings):
    """The packaged entry page requests the message itself and shows the outcome."""
    repo_static = Path(__file__).resolve().parents[1] / "static"
    shipped = settings.model_copy(update={"STATIC_DIR": str(repo_static)})
    app = create_edge_application("deploy", shipped)

    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://edge.local") as client:
        response = await client.get("/some/deep/link")

    assert response.status_code == 200
    page = response.text
    assert 'fetch("/api/message")' in page
    assert "loading..." in page
    assert "HTTP error! status: " in page
    assert '"Failed to fetch message: " + err.message' in page
    await app.state.proxy.close()
