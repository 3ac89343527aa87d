"""
Secret interpolation for configuration values.

Placeholders have the form ``${NAME}`` with ``NAME`` made of letters, digits,
``_`` and ``-``. Substitution is a single left-to-right pass: a secret whose
value itself contains ``${...}`` is inserted literally and never expanded
again.

Strict mode applies to every value that takes part in an authentication
decision and raises ``MissingSecretError`` for an undefined secret. Non-strict
mode applies to forwarded header values and keeps the literal placeholder.
"""

import re
from typing import Iterable, List, Mapping, Optional

from edge_proxy.errors import MissingSecretError
from edge_proxy.models import AuthEntry, ServerConfig

SECRET_PATTERN = re.compile(r"\$\{([A-Za-z0-9_-]+)\}")


def interpolate(value: str, secrets: Mapping[str, str], strict: bool = False) -> str:
    def _replace(match: re.Match) -> str:
        name = match.group(1)
        secret = secrets.get(name)
        if secret is not None:
            return secret
        if strict:
            raise MissingSecretError(name)
        return match.group(0)

    return SECRET_PATTERN.sub(_replace, value)


def has_placeholders(value: str) -> bool:
    return SECRET_PATTERN.search(value) is not None


def extract_secret_names(value: str) -> List[str]:
    """Names referenced by ``value`` in order of appearance, duplicates kept."""
    return SECRET_PATTERN.findall(value)


def secrets_available(names: Iterable[str], secrets: Mapping[str, str]) -> bool:
    return all(secrets.get(name) is not None for name in names)


def process_auth_entries(
    entries: Optional[Iterable[AuthEntry]], secrets: Mapping[str, str]
) -> Optional[List[AuthEntry]]:
    """Strictly interpolate the expected value of every entry."""
    if entries is None:
        return None
    return [
        AuthEntry(header=entry.header, value=interpolate(entry.value, secrets, strict=True))
        for entry in entries
    ]


def process_server_config(
    config: ServerConfig, secrets: Mapping[str, str]
) -> ServerConfig:
    """
    Return a new config with secrets resolved.

    Auth-bearing values are interpolated strictly, forwarded header values
    non-strictly. The URL and all header names are left untouched.
    """
    update = {}

    if config.legacy_auth_value is not None:
        update["legacy_auth_value"] = interpolate(
            config.legacy_auth_value, secrets, strict=True
        )

    if config.auth_entries is not None:
        update["auth_entries"] = process_auth_entries(config.auth_entries, secrets)

    if config.headers:
        update["headers"] = {
            name: interpolate(value, secrets, strict=False)
            for name, value in config.headers.items()
        }

    return config.model_copy(update=update)
