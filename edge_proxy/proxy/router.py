from typing import Optional
from urllib.parse import urlsplit

from edge_proxy.models import RequestContext


def get_server_key(pathname: str) -> Optional[str]:
    """
    First non-empty path segment, which selects the downstream server.

    ``/api/users/123`` gives ``api``; ``/`` gives None.
    """
    segments = [segment for segment in pathname.split("/") if segment]
    return segments[0] if segments else None


def build_backend_url(base_url: str, original_url: str, server_key: str) -> str:
    """
    Drop the server key segment from the original path, append the remainder
    to the base URL and keep the query string.

    ``("https://api.example.com", "https://proxy/api/users?x=1", "api")``
    gives ``https://api.example.com/users?x=1``.
    """
    url = urlsplit(original_url)
    pathname = url.path

    prefix = f"/{server_key}"
    remaining = pathname[len(prefix):] if pathname.startswith(prefix) else pathname

    base = base_url[:-1] if base_url.endswith("/") else base_url
    if not remaining.startswith("/"):
        remaining = f"/{remaining}"

    query = f"?{url.query}" if url.query else ""
    return f"{base}{remaining}{query}"


def extract_request_context(original_url: str) -> Optional[RequestContext]:
    pathname = urlsplit(original_url).path
    server_key = get_server_key(pathname)
    if not server_key:
        return None
    return RequestContext(server_key=server_key, pathname=pathname, original_url=original_url)
