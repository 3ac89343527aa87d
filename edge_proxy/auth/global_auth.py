"""
Loading of the process-wide global auth policy.

The ``GLOBAL_AUTH_CONFIGS`` environment variable wins; when it is unset or
empty the store record ``global-auth-configs`` is used. Both sources hold a
JSON array of ``{"header": ..., "value": ...}`` objects.

Any malformed source raises ``GlobalAuthConfigInvalid``. A broken global
policy must never read as "no global policy".
"""

from functools import lru_cache
import json
import logging
from typing import Any, List, Mapping, Tuple

from edge_proxy.config.secret_interpolation import process_auth_entries
from edge_proxy.config.store import ConfigStoreBase
from edge_proxy.config.validator import parse_auth_entries, validate_auth_entries
from edge_proxy.errors import (
    ConfigLoadFailure,
    ConfigStoreError,
    ConfigValidationError,
    GlobalAuthConfigInvalid,
    MissingSecretError,
)
from edge_proxy.models import AuthEntry
from edge_proxy.vars import GLOBAL_AUTH_CONFIGS_ENV, GLOBAL_AUTH_STORE_KEY

logger = logging.getLogger("uvicorn.error")


def parse_global_auth_json(raw: str) -> Tuple[AuthEntry, ...]:
    try:
        data = json.loads(raw)
    except ValueError as e:
        raise ConfigValidationError(
            "Failed to parse global auth configuration", f"JSON error at position {e.pos}"
        ) from e
    return tuple(parse_auth_entries(data))


# The environment binding is fixed for the life of the process
_parse_env_value = lru_cache(maxsize=8)(parse_global_auth_json)


def _parse_store_record(record: Any) -> Tuple[AuthEntry, ...]:
    if isinstance(record, str):
        return parse_global_auth_json(record)
    if isinstance(record, list):
        return tuple(parse_auth_entries(record))
    raise ConfigValidationError(
        "Global auth record has an unsupported type",
        f"expected JSON array or string, got {type(record).__name__}",
    )


def _fail(source: str, error: Exception) -> GlobalAuthConfigInvalid:
    if isinstance(error, MissingSecretError):
        logger.error(
            f"[GlobalAuth] Secret interpolation failed for global auth from {source}: "
            f"missing secret {error.secret_name}"
        )
    else:
        logger.error(
            f"[GlobalAuth] Invalid global auth configuration from {source}: "
            f"{error} {getattr(error, 'context', '')}".rstrip()
        )
    return GlobalAuthConfigInvalid()


async def load_global_auth(
    environ: Mapping[str, str],
    store: ConfigStoreBase,
    secrets: Mapping[str, str],
) -> List[AuthEntry]:
    """Return the resolved global entries; an empty list means not configured."""
    raw = environ.get(GLOBAL_AUTH_CONFIGS_ENV)

    if raw:
        source = "environment"
        try:
            entries = _parse_env_value(raw)
        except ConfigValidationError as e:
            raise _fail(source, e)
    else:
        source = "store"
        try:
            record = await store.get(GLOBAL_AUTH_STORE_KEY)
        except ConfigStoreError as e:
            logger.error(f"[GlobalAuth] Failed to load global auth from store: {e}")
            raise ConfigLoadFailure() from e
        if record is None or record == "":
            return []
        try:
            entries = _parse_store_record(record)
        except ConfigValidationError as e:
            raise _fail(source, e)

    if not entries:
        return []

    try:
        processed = process_auth_entries(entries, secrets)
        validate_auth_entries(processed)
    except (MissingSecretError, ConfigValidationError) as e:
        raise _fail(source, e)

    return processed
