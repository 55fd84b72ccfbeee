"""Reverse-proxy forwarding of API-prefixed requests to the API service."""

import logging
from urllib.parse import quote, urlsplit

import httpx
from starlette.background import BackgroundTask
from starlette.requests import Request
from starlette.responses import PlainTextResponse, Response, StreamingResponse

logger = logging.getLogger(__name__)

# Connection-scoped headers that must not be relayed by a proxy (RFC 9110 7.6.1)
HOP_BY_HOP_HEADERS = frozenset(
    {
        "connection",
        "keep-alive",
        "proxy-authenticate",
        "proxy-authorization",
        "te",
        "trailer",
        "transfer-encoding",
        "upgrade",
    }
)


def strip_hop_by_hop(headers: httpx.Headers) -> list[tuple[str, str]]:
    """Drop hop-by-hop headers, including any listed in `Connection`."""

    extra = {token.strip().lower() for token in headers.get("connection", "").split(",") if token.strip()}
    excluded = HOP_BY_HOP_HEADERS | extra
    return [(key, value) for key, value in headers.multi_items() if key.lower() not in excluded]


class UpstreamProxy:
    """Forward requests unchanged to one upstream base URL and relay its answer.

    `change_origin` rewrites the Host header to the upstream's address; without
    it the caller's Host is kept and the usual X-Forwarded-* headers are added.
    """

    def __init__(
        self,
        upstream: str,
        *,
        change_origin: bool = False,
        verify_tls: bool = True,
        timeout: float | None = 60.0,
        transport: httpx.AsyncBaseTransport | None = None,
    ):
        self.upstream = upstream.rstrip("/")
        self.change_origin = change_origin
        self.verify_tls = verify_tls
        self.timeout = timeout
        self._transport = transport
        self._client: httpx.AsyncClient | None = None

    @property
    def client(self) -> httpx.AsyncClient:
        """Return a lazily created HTTP client shared by all forwarded requests."""
        if self._client is None:
            self._client = httpx.AsyncClient(
                verify=self.verify_tls,
                timeout=self.timeout,
                transport=self._transport,
                follow_redirects=False,
            )
        return self._client

    async def close(self) -> None:
        """Close the shared client; invoked during application shutdown."""
        if self._client is not None:
            await self._client.aclose()
            self._client = None

    def upstream_url(self, request: Request) -> str:
        """Upstream URL for a request: same path (prefix included) and query string.

        The path is taken still percent-encoded so `%2F`, `%3F` and friends reach
        the upstream as the caller sent them.
        """
        raw_path = request.scope.get("raw_path")
        if raw_path:
            path = raw_path.split(b"?", 1)[0].decode("latin-1")
        else:
            path = quote(request.url.path)
        url = f"{self.upstream}{path}"
        query = request.scope.get("query_string", b"").decode("latin-1")
        if query:
            url = f"{url}?{query}"
        return url

    def forward_headers(self, request: Request) -> list[tuple[str, str]]:
        headers = strip_hop_by_hop(httpx.Headers(request.headers.raw))
        headers = [(key, value) for key, value in headers if key.lower() != "host"]

        if self.change_origin:
            headers.append(("host", urlsplit(self.upstream).netloc))
            return headers

        client_host = request.client.host if request.client else ""
        forwarded_for = request.headers.get("x-forwarded-for")
        headers = [(k, v) for k, v in headers if k.lower() not in ("x-forwarded-for", "x-real-ip", "x-forwarded-proto")]
        headers.extend(
            [
                ("host", request.headers.get("host", "")),
                ("x-real-ip", client_host),
                ("x-forwarded-for", f"{forwarded_for}, {client_host}" if forwarded_for else client_host),
                ("x-forwarded-proto", request.url.scheme),
            ]
        )
        return headers

    async def forward(self, request: Request) -> Response:
        """Relay the request upstream and stream the upstream response back verbatim."""

        url = self.upstream_url(request)
        upstream_request = self.client.build_request(
            method=request.method,
            url=url,
            headers=self.forward_headers(request),
            content=await request.body(),
        )

        try:
            upstream_response = await self.client.send(upstream_request, stream=True)
        except httpx.RequestError as exc:
            logger.error("Error proxying %s %s to %s: %s", request.method, request.url.path, url, exc)
            return PlainTextResponse("502 Bad Gateway", status_code=502)

        logger.info(
            "Proxied %s %s -> %s, status: %s",
            request.method,
            request.url.path,
            url,
            upstream_response.status_code,
        )

        response = StreamingResponse(
            upstream_response.aiter_raw(),
            status_code=upstream_response.status_code,
            background=BackgroundTask(upstream_response.aclose),
        )
        # Repeated headers such as Set-Cookie survive only through raw_headers
        response.raw_headers = [
            (key.lower().encode("latin-1"), value.encode("latin-1"))
            for key, value in strip_hop_by_hop(upstream_response.headers)
        ]
        return response
