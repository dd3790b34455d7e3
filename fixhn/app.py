from __future__ import annotations

import logging
from contextlib import asynccontextmanager
from typing import Optional

import httpx
from fastapi import FastAPI, Request, Response
from fastapi.responses import PlainTextResponse
from starlette.datastructures import QueryParams

from fixhn.config import Settings, load_settings
from fixhn.fetchers import ImageResolver, ItemFetcher
from fixhn.models import PreviewResponse
from fixhn.service import PreviewService

log = logging.getLogger(__name__)

USAGE = "fixhn - OpenGraph tags for Hacker News links\n\nUsage: /item?id=12345"
METHODS = ["GET", "HEAD", "POST", "PUT", "PATCH", "DELETE", "OPTIONS"]


def build_service(settings: Settings, client: httpx.AsyncClient) -> PreviewService:
    return PreviewService(
        settings,
        items=ItemFetcher(client, settings.api_base),
        images=ImageResolver(
            client,
            user_agent=settings.image_fetch_agent,
            timeout=settings.image_timeout,
            max_bytes=settings.image_max_bytes,
        ),
    )


def first_values(params: QueryParams) -> dict[str, str]:
    """Collapse repeated query parameters to their first value."""
    return {key: params.getlist(key)[0] for key in params.keys()}


def to_response(result: PreviewResponse) -> Response:
    return Response(
        content=result.body,
        status_code=result.status,
        media_type=result.media_type if result.body else None,
        headers=result.headers,
    )


def create_app(
    settings: Optional[Settings] = None,
    client: Optional[httpx.AsyncClient] = None,
) -> FastAPI:
    """
    Build the ASGI app.

    When no client is given the app creates its own and closes it on
    shutdown; a client passed in stays owned by the caller.
    """
    settings = settings or load_settings()
    owns_client = client is None
    if client is None:
        client = httpx.AsyncClient(timeout=settings.api_timeout, follow_redirects=True)
    service = build_service(settings, client)

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        log.info("Serving previews for %s", settings.site_base)
        yield
        if owns_client:
            await client.aclose()

    app = FastAPI(
        title="fixhn",
        description="OpenGraph previews for Hacker News links",
        docs_url=None,
        redoc_url=None,
        openapi_url=None,
        lifespan=lifespan,
    )
    app.state.service = service

    @app.api_route("/", methods=METHODS, response_class=PlainTextResponse)
    async def usage() -> str:
        return USAGE

    @app.api_route("/{path:path}", methods=METHODS)
    async def preview(request: Request) -> Response:
        result = await service.handle(
            request.url.path,
            first_values(request.query_params),
            request.headers.get("user-agent"),
        )
        return to_response(result)

    return app
