"""
Validation of resolved server configurations.

Every check raises ``ConfigValidationError`` on the first failure; nothing is
partially applied. Error messages are generic and safe for clients, the
``context`` names the offending field or index but never a configured value.
"""

from typing import Any, Iterable, List, Mapping, Optional
from urllib.parse import urlsplit

from jsonschema import ValidationError as SchemaValidationError
from pydantic import ValidationError as ModelValidationError

from edge_proxy.errors import (
    CONFIG_INVALID_REVIEW,
    CONFIG_INVALID_URL,
    ConfigValidationError,
)
from edge_proxy.headers.processor import is_valid_header_name, is_valid_header_value
from edge_proxy.json.schema_validation import (
    GLOBAL_AUTH_SCHEMA,
    SERVER_CONFIG_SCHEMA,
    validate_schema,
)
from edge_proxy.models import AuthEntry, ServerConfig


def _schema_context(error: SchemaValidationError) -> str:
    return f"{error.json_path} failed '{error.validator}' check"


def parse_server_config(raw: Any) -> ServerConfig:
    """Structurally validate a raw JSON record and build the typed config."""
    try:
        validate_schema(SERVER_CONFIG_SCHEMA, raw)
    except SchemaValidationError as e:
        raise ConfigValidationError(CONFIG_INVALID_REVIEW, _schema_context(e))
    try:
        return ServerConfig.model_validate(raw)
    except ModelValidationError as e:
        raise ConfigValidationError(CONFIG_INVALID_REVIEW, f"{e.error_count()} model errors")


def parse_auth_entries(raw: Any) -> List[AuthEntry]:
    """Structurally validate a raw JSON array of auth entries."""
    try:
        validate_schema(GLOBAL_AUTH_SCHEMA, raw)
    except SchemaValidationError as e:
        raise ConfigValidationError(CONFIG_INVALID_REVIEW, _schema_context(e))
    return [AuthEntry.model_validate(item) for item in raw]


def validate_backend_url(url: str) -> None:
    try:
        parsed = urlsplit(url)
        # Accessing the port parses it and rejects malformed values
        parsed.port
    except (ValueError, TypeError, AttributeError) as e:
        raise ConfigValidationError(
            CONFIG_INVALID_URL, f"Failed to parse backend URL: {type(e).__name__}"
        )

    if not parsed.scheme or not parsed.netloc:
        raise ConfigValidationError(CONFIG_INVALID_URL, "Backend URL is not absolute")

    if parsed.scheme != "https":
        raise ConfigValidationError(
            CONFIG_INVALID_URL,
            f'Backend URL uses scheme "{parsed.scheme}" instead of "https"',
        )

    if not parsed.hostname:
        raise ConfigValidationError(CONFIG_INVALID_URL, "Backend URL has no hostname")


def validate_auth_entry(entry: AuthEntry) -> None:
    if not entry.header or not entry.header.strip():
        raise ConfigValidationError(
            "Configuration invalid: Auth header name cannot be empty.",
            "AuthConfig.header is required but empty",
        )

    if not is_valid_header_name(entry.header):
        raise ConfigValidationError(
            "Configuration invalid: Auth header name contains invalid characters.",
            "AuthConfig.header contains invalid characters",
        )

    if not entry.value or not entry.value.strip():
        raise ConfigValidationError(
            "Configuration invalid: Auth header value cannot be empty.",
            f'AuthConfig.value for header "{entry.header}" is required but empty',
        )

    if not is_valid_header_value(entry.value):
        raise ConfigValidationError(
            "Configuration invalid: Auth header value contains invalid characters.",
            f'AuthConfig.value for header "{entry.header}" contains invalid characters',
        )


def validate_auth_entries(entries: Optional[Iterable[AuthEntry]]) -> None:
    if entries is None:
        return
    for index, entry in enumerate(entries):
        try:
            validate_auth_entry(entry)
        except ConfigValidationError as e:
            raise ConfigValidationError(e.message, f"{e.context} (at index {index})")


def validate_unique_headers(entries: Optional[Iterable[AuthEntry]]) -> None:
    seen = set()
    for index, entry in enumerate(entries or []):
        name = entry.header.lower()
        if name in seen:
            raise ConfigValidationError(
                "Configuration invalid: Auth header names must be unique.",
                f'Duplicate auth header "{entry.header}" (at index {index})',
            )
        seen.add(name)


def validate_headers(headers: Optional[Mapping[str, str]]) -> None:
    if headers is None:
        return

    if not isinstance(headers, Mapping):
        raise ConfigValidationError(
            "Configuration invalid: Headers must be an object.",
            "Headers configuration is not a valid object",
        )

    for name, value in headers.items():
        if not isinstance(name, str) or not name.strip():
            raise ConfigValidationError(
                "Configuration invalid: Header names must be non-empty strings.",
                "Invalid custom header name",
            )
        if not isinstance(value, str):
            raise ConfigValidationError(
                "Configuration invalid: Header values must be strings.",
                f'Header "{name}" has invalid value type: {type(value).__name__}',
            )


def validate_processed_config(config: ServerConfig) -> None:
    """
    Validate a secret-resolved config: URL, legacy and modern auth entries,
    then custom headers.
    """
    validate_backend_url(config.url)

    if config.legacy_auth_value is not None:
        try:
            validate_auth_entry(
                AuthEntry(
                    header=config.effective_legacy_header,
                    value=config.legacy_auth_value,
                )
            )
        except ConfigValidationError as e:
            raise ConfigValidationError(e.message, f"{e.context} (legacy auth)")

    validate_auth_entries(config.auth_entries)
    validate_unique_headers(config.auth_entries)
    validate_headers(config.headers)
