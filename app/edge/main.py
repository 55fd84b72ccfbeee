"""Entrypoint for the edge router (reverse proxy + static file server).

The same rule table runs in two mutually exclusive contexts:

- ``dev``: interactive development, forwarding the API prefix to a fixed local
  address with the Host header rewritten to the target.
- ``deploy``: the packaged stack, forwarding to the API service's
  service-discovery name and passing the caller's Host through.

Usage::

    python -m app.edge.main dev
    python -m app.edge.main deploy
"""

import argparse
import logging
from contextlib import asynccontextmanager
from dataclasses import dataclass
from enum import Enum

import uvicorn
from fastapi import FastAPI, Request
from fastapi.middleware.gzip import GZipMiddleware

from app.core.config import Settings, get_settings
from app.core.logging import configure_logging
from app.edge.proxy import UpstreamProxy
from app.edge.rules import Rule, RuleTable, match_all, prefix_matcher
from app.edge.static import StaticSite

logger = logging.getLogger(__name__)

PROXY_METHODS = ["GET", "HEAD", "POST", "PUT", "PATCH", "DELETE", "OPTIONS"]


class ProfileName(str, Enum):
    DEV = "dev"
    DEPLOY = "deploy"


@dataclass(frozen=True)
class EdgeProfile:
    """Network addressing of one edge router context."""

    name: ProfileName
    listen_port: int
    upstream: str
    change_origin: bool
    verify_tls: bool

    @classmethod
    def from_settings(cls, name: ProfileName | str, settings: Settings) -> "EdgeProfile":
        name = ProfileName(name)
        if name is ProfileName.DEV:
            return cls(
                name=name,
                listen_port=settings.DEV_EDGE_PORT,
                upstream=settings.DEV_API_TARGET,
                change_origin=True,
                verify_tls=False,
            )
        return cls(
            name=name,
            listen_port=settings.EDGE_PORT,
            upstream=settings.EDGE_API_TARGET,
            change_origin=False,
            verify_tls=True,
        )


def build_rule_table(proxy: UpstreamProxy, site: StaticSite, api_prefix: str) -> RuleTable:
    """API prefix -> upstream, existing asset -> file, anything else -> entry document."""

    return RuleTable(
        [
            Rule("api", prefix_matcher(api_prefix), proxy.forward),
            Rule("static", site.has_asset, site.serve_asset),
            Rule("entry-document", match_all, site.serve_entry_document),
        ]
    )


def create_edge_application(
    profile: EdgeProfile | ProfileName | str = ProfileName.DEV,
    settings: Settings | None = None,
    proxy: UpstreamProxy | None = None,
) -> FastAPI:
    """Assemble the edge router application for one profile.

    - Builds the upstream proxy from the profile unless one is injected.
    - Applies gzip compression for clients that advertise support.
    - Routes every path and method through the rule table.
    """

    settings = settings or get_settings()
    if not isinstance(profile, EdgeProfile):
        profile = EdgeProfile.from_settings(profile, settings)

    proxy = proxy or UpstreamProxy(
        profile.upstream,
        change_origin=profile.change_origin,
        verify_tls=profile.verify_tls,
        timeout=settings.EDGE_PROXY_TIMEOUT_SECONDS,
    )
    site = StaticSite(settings.STATIC_DIR, settings.ENTRY_DOCUMENT)
    rules = build_rule_table(proxy, site, settings.API_PREFIX)

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        logger.info(
            "Edge router (%s) listening on port %s, forwarding %s to %s, static files from %s",
            profile.name.value,
            profile.listen_port,
            settings.API_PREFIX,
            profile.upstream,
            site.root,
        )
        yield
        await proxy.close()

    application = FastAPI(
        title=f"{settings.PROJECT_NAME} edge router",
        version=settings.PROJECT_VERSION,
        lifespan=lifespan,
        docs_url=None,
        redoc_url=None,
        openapi_url=None,
    )
    application.state.profile = profile
    application.state.proxy = proxy
    application.state.rules = rules

    application.add_middleware(GZipMiddleware, minimum_size=settings.EDGE_GZIP_MINIMUM_SIZE)

    @application.api_route("/{path:path}", methods=PROXY_METHODS, include_in_schema=False)
    async def route(request: Request):
        return await rules.dispatch(request)

    return application


def run(argv: list[str] | None = None) -> None:
    """Parse the profile name and serve the edge router with uvicorn."""

    parser = argparse.ArgumentParser(description="Run the edge router.")
    parser.add_argument("profile", nargs="?", choices=[p.value for p in ProfileName], default=ProfileName.DEV.value)
    args = parser.parse_args(argv)

    settings = get_settings()
    configure_logging(settings.LOG_LEVEL)
    profile = EdgeProfile.from_settings(args.profile, settings)
    uvicorn.run(create_edge_application(profile, settings), host=settings.HOST, port=profile.listen_port)


if __name__ == "__main__":
    run()
