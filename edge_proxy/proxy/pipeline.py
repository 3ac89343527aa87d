"""
Per-request authorization pipeline.

route -> server config -> secret interpolation -> validation -> auth merge ->
global auth -> two-tier decision -> outbound headers.

Each stage raises a ``ProxyError`` subclass; the HTTP layer renders it. Logs
carry the server key and header names, never configured or presented values.
"""

import json
import logging
from typing import Any, Mapping

from opentelemetry import trace

from edge_proxy.auth.checker import decide
from edge_proxy.auth.global_auth import load_global_auth
from edge_proxy.auth.merger import merge_auth_entries
from edge_proxy.config.secret_interpolation import process_server_config
from edge_proxy.config.store import ConfigStoreBase
from edge_proxy.config.validator import parse_server_config, validate_processed_config
from edge_proxy.errors import (
    ConfigInvalid,
    ConfigLoadFailure,
    ConfigStoreError,
    ConfigValidationError,
    MissingSecretError,
    RouteUnresolved,
    ServerNotFound,
    Unauthorized,
)
from edge_proxy.headers.processor import HeaderSource, build_outbound_headers
from edge_proxy.models import ForwardPlan, ServerConfig
from edge_proxy.proxy.router import build_backend_url, extract_request_context
from edge_proxy.utils import header_names
from edge_proxy.utils.traced_requests import traced_request

logger = logging.getLogger("uvicorn.error")
tracer = trace.get_tracer(__name__)


async def load_server_config(server_key: str, store: ConfigStoreBase) -> ServerConfig:
    try:
        raw: Any = await store.get(server_key)
    except ConfigStoreError as e:
        logger.error(f'[Proxy] Config load failed for server "{server_key}": {e}')
        raise ConfigLoadFailure() from e

    if raw is None:
        logger.warning(f'[Proxy] No configuration found for server key "{server_key}"')
        raise ServerNotFound()

    if isinstance(raw, str):
        try:
            raw = json.loads(raw)
        except ValueError as e:
            logger.error(
                f'[Proxy] Config record for server "{server_key}" is not valid JSON'
            )
            raise ConfigLoadFailure() from e

    try:
        return parse_server_config(raw)
    except ConfigValidationError as e:
        logger.error(
            f'[Proxy] Config structure invalid for server "{server_key}": {e.context}'
        )
        raise ConfigInvalid(e.message) from e


async def build_forward_plan(
    original_url: str,
    headers: HeaderSource,
    store: ConfigStoreBase,
    environ: Mapping[str, str],
    secrets: Mapping[str, str],
) -> ForwardPlan:
    """Authorize the request and work out where and with which headers to send it."""
    context = extract_request_context(original_url)
    if context is None:
        raise RouteUnresolved()
    server_key = context.server_key

    with traced_request(
        tracer,
        operation="authorize_request",
        server_key=server_key,
        start_message=f"[Proxy] Authorizing request for server {server_key}",
    ) as span:
        config = await load_server_config(server_key, store)

        try:
            processed = process_server_config(config, secrets)
        except MissingSecretError as e:
            logger.error(
                f'[Proxy] Config processing failed for server "{server_key}": '
                f"missing secret {e.secret_name}"
            )
            raise ConfigInvalid() from e

        try:
            validate_processed_config(processed)
        except ConfigValidationError as e:
            logger.error(
                f'[Proxy] Config validation failed for server "{server_key}": {e.context}'
            )
            raise ConfigInvalid(e.message) from e

        server_entries = merge_auth_entries(processed)
        global_entries = await load_global_auth(environ, store, secrets)

        decision = decide(headers, global_entries, server_entries)
        if not decision.allowed:
            span.set_attribute("proxy.auth_denied", True)
            logger.warning(
                f'[Proxy] Authentication failed for server "{server_key}" using headers: '
                f"global=[{header_names(global_entries)}] "
                f"server=[{header_names(server_entries)}]"
            )
            raise Unauthorized()

        span.set_attribute("proxy.auth_tier", decision.tier.value)

        target_url = build_backend_url(processed.url, context.original_url, server_key)
        outbound = build_outbound_headers(
            headers, global_entries, server_entries, processed.headers
        )
        return ForwardPlan(
            server_key=server_key,
            target_url=target_url,
            headers=outbound,
            tier=decision.tier,
        )
