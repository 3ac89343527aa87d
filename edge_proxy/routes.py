import logging
import os
from typing import List, Mapping, Optional, Tuple
from urllib.parse import urlsplit

import httpx
from fastapi import APIRouter, Depends, Request
from fastapi.responses import JSONResponse, Response, StreamingResponse
from opentelemetry import trace
from starlette.background import BackgroundTask

from edge_proxy.config.store import ConfigStoreBase, config_store
from edge_proxy.errors import BackendUnreachable, InternalError, ProxyError
from edge_proxy.models import ForwardPlan
from edge_proxy.proxy.pipeline import build_forward_plan
from edge_proxy.vars import BACKEND_TIMEOUT

router = APIRouter()
tracer = trace.get_tracer(__name__)
logger = logging.getLogger("uvicorn.error")

# Hop-by-hop headers that should NOT be forwarded (RFC 2616)
HOP_BY_HOP_HEADERS = {
    "connection",
    "keep-alive",
    "proxy-authenticate",
    "proxy-authorization",
    "te",
    "trailers",
    "transfer-encoding",
    "upgrade",
}

# Derived by the HTTP client from the target URL and the body
CLIENT_MANAGED_HEADERS = {"host", "content-length"}

PROXY_METHODS = ["GET", "POST", "PUT", "DELETE", "PATCH", "HEAD", "OPTIONS"]

_store: Optional[ConfigStoreBase] = None


def get_config_store() -> ConfigStoreBase:
    global _store
    if _store is None:
        _store = config_store()
    return _store


def get_environ() -> Mapping[str, str]:
    return os.environ


def get_secrets() -> Mapping[str, str]:
    return os.environ


def create_http_client() -> httpx.AsyncClient:
    return httpx.AsyncClient(
        timeout=httpx.Timeout(BACKEND_TIMEOUT),
        follow_redirects=False,
    )


def _header_bytes(text: str) -> bytes:
    # Client headers arrive latin-1 decoded; other configured text goes out as UTF-8
    try:
        return text.encode("latin-1")
    except UnicodeEncodeError:
        return text.encode("utf-8")


def transport_headers(headers: List[Tuple[str, str]]) -> List[Tuple[bytes, bytes]]:
    """Drop headers the proxy hop must not pass on to the backend and encode the rest."""
    skip = HOP_BY_HOP_HEADERS | CLIENT_MANAGED_HEADERS
    return [
        (_header_bytes(name), _header_bytes(value))
        for name, value in headers
        if name.lower() not in skip
    ]


def response_headers(response: httpx.Response) -> List[Tuple[bytes, bytes]]:
    return [
        (name, value)
        for name, value in response.headers.raw
        if name.lower().decode("latin-1") not in HOP_BY_HOP_HEADERS
    ]


def original_url(request: Request) -> str:
    """Request URL with the path exactly as the client encoded it."""
    raw_path = request.scope.get("raw_path")
    if not raw_path:
        return str(request.url)
    path = raw_path.split(b"?", 1)[0].decode("latin-1")
    query = request.scope.get("query_string", b"").decode("latin-1")
    url = f"{request.url.scheme}://{request.url.netloc}{path}"
    return f"{url}?{query}" if query else url


async def _close(response: httpx.Response, client: httpx.AsyncClient) -> None:
    await response.aclose()
    await client.aclose()


async def forward_to_backend(request: Request, plan: ForwardPlan) -> Response:
    """
    Send the authorized request to the backend and stream the answer back.
    Redirects are returned to the caller, not followed.
    """
    body = await request.body()
    client = create_http_client()
    response: Optional[httpx.Response] = None

    with tracer.start_as_current_span("proxy_request") as span:
        span.set_attribute("proxy.server_key", plan.server_key)
        span.set_attribute("proxy.method", request.method)
        span.set_attribute("proxy.auth_tier", plan.tier.value)

        try:
            backend_request = client.build_request(
                method=request.method,
                url=plan.target_url,
                headers=transport_headers(plan.headers),
                content=body,
            )
            response = await client.send(backend_request, stream=True)
        except httpx.RequestError as e:
            origin = "{0.scheme}://{0.netloc}".format(urlsplit(plan.target_url))
            logger.error(
                f'[Proxy] Backend request failed for server "{plan.server_key}" '
                f'(target: "{origin}"): {type(e).__name__}'
            )
            span.set_attribute("proxy.error", "backend_unreachable")
            raise BackendUnreachable() from e
        finally:
            if response is None:
                await client.aclose()

        span.set_attribute("proxy.status_code", response.status_code)

    streaming = StreamingResponse(
        response.aiter_raw(),
        status_code=response.status_code,
        background=BackgroundTask(_close, response, client),
    )
    streaming.raw_headers = response_headers(response)
    return streaming


async def proxy_error_handler(request: Request, exc: ProxyError) -> JSONResponse:
    return JSONResponse({"error": exc.message}, status_code=exc.status_code)


@router.api_route("/{path:path}", methods=PROXY_METHODS)
async def proxy_all(
    request: Request,
    path: str,
    store: ConfigStoreBase = Depends(get_config_store),
    environ: Mapping[str, str] = Depends(get_environ),
    secrets: Mapping[str, str] = Depends(get_secrets),
):
    """Catch-all route that authorizes and proxies requests by first path segment."""
    try:
        plan = await build_forward_plan(
            original_url(request), request.headers, store, environ, secrets
        )
        return await forward_to_backend(request, plan)
    except ProxyError:
        raise
    except Exception as e:
        logger.error(
            f"[Proxy] Unexpected error processing request to {request.url.path}: {e}",
            exc_info=True,
        )
        raise InternalError() from e
